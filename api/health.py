"""Health check endpoint."""

import os

from cashoffer.services.inspection_scheduler import INSPECTION_TIMEZONE, local_today
from cashoffer.services.valuation import MAX_WAIT_MS, MIN_WAIT_MS
from cashoffer.utils.http import json_response
from cashoffer.utils.logging import correlation_context, get_structured_logger
from cashoffer.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)

SERVICE_NAME = "cashoffer-backend"

REQUIRED_ENV = {
    "store": ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"),
    "auth": ("SUPABASE_URL", "SUPABASE_ANON_KEY"),
}


def check_configuration() -> dict:
    """Which backing services have the settings they need; no network calls."""
    checks = {}
    for name, keys in REQUIRED_ENV.items():
        missing = [key for key in keys if not os.environ.get(key)]
        checks[name] = {"ok": not missing, "missing": missing}
    checks["valuation"] = {
        "ok": 0 < MIN_WAIT_MS <= MAX_WAIT_MS,
        "wait_ms": [MIN_WAIT_MS, MAX_WAIT_MS],
    }
    checks["inspections"] = {
        "ok": True,
        "timezone": str(INSPECTION_TIMEZONE),
        "today": local_today().isoformat(),
    }
    return checks


def handler(request):
    """GET or POST; 200 when every check passes, 503 otherwise."""
    with correlation_context():
        checks = check_configuration()
        healthy = all(check["ok"] for check in checks.values())
        if not healthy:
            failing = [name for name, check in checks.items() if not check["ok"]]
            logger.warning("Health check degraded", failing=failing)
        return json_response(200 if healthy else 503, {
            "status": "ok" if healthy else "degraded",
            "service": SERVICE_NAME,
            "checks": checks,
        })
