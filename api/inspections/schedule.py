"""Inspection booking endpoint.

POST ``{"quote_id": ..., "date": "YYYY-MM-DD", "slot": "morning", "notes": ...}``.
"""

from datetime import date

from cashoffer.services.identity import resolve_session
from cashoffer.services.inspection_scheduler import schedule_inspection
from cashoffer.utils.errors import StepValidationError
from cashoffer.utils.http import bearer_token, error_response, json_response, parse_body, run
from cashoffer.utils.logging import correlation_context
from cashoffer.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()


def _parse_date(value) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise StepValidationError({"date": "Date must be in YYYY-MM-DD format"}) from None


async def schedule(request: dict) -> dict:
    body = parse_body(request)
    errors = {}
    if not body.get("quote_id"):
        errors["quote_id"] = "quote_id is required"
    if not body.get("date"):
        errors["date"] = "Please select an inspection date"
    if not body.get("slot"):
        errors["slot"] = "Please select a time slot"
    if errors:
        raise StepValidationError(errors)

    session = await resolve_session(bearer_token(request))
    inspection = await schedule_inspection(
        session,
        body["quote_id"],
        _parse_date(body["date"]),
        body["slot"],
        notes=body.get("notes"),
    )
    return {"ok": True, "inspection": inspection}


def handler(request):
    with correlation_context():
        try:
            return json_response(201, run(schedule(request)))
        except Exception as e:
            return error_response(e)
