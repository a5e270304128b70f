"""Valuation sweep endpoint (called via Vercel cron)."""

from cashoffer.services.valuation import process_due_valuations
from cashoffer.utils.errors import StepValidationError
from cashoffer.utils.http import error_response, json_response, query_param, run
from cashoffer.utils.logging import correlation_context, get_structured_logger
from cashoffer.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)

DEFAULT_BATCH = 50
MAX_BATCH = 200


def _parse_limit(raw) -> int:
    try:
        limit = int(str(raw).strip())
    except (TypeError, ValueError):
        raise StepValidationError({"max_quotes": "max_quotes must be a whole number"}) from None
    if limit < 1:
        raise StepValidationError({"max_quotes": "max_quotes must be at least 1"})
    return min(limit, MAX_BATCH)


def handler(request):
    """
    Complete due valuations and start stranded ones.

    Can be called manually or via Vercel cron job.
    """
    with correlation_context():
        try:
            limit = _parse_limit(query_param(request, "max_quotes", str(DEFAULT_BATCH)))
            counts = run(process_due_valuations(limit=limit))
            return json_response(200, {"ok": True, "max_quotes": limit, **counts})
        except StepValidationError as e:
            logger.warning("Rejected valuation sweep request", errors=e.errors)
            return error_response(e)
        except Exception as e:
            logger.error("Error processing valuations", error=str(e), exc_info=True)
            return error_response(e)
