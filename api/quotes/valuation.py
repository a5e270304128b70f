"""Valuation status endpoint.

POST ``{"quote_id": ...}`` starts the countdown on first call and completes
the valuation once it is due; clients poll it while showing the countdown.
"""

from cashoffer.services.identity import resolve_session
from cashoffer.services.supabase_client import get_quote_by_id
from cashoffer.services.valuation import refresh_valuation
from cashoffer.utils.errors import PreconditionError, StepValidationError
from cashoffer.utils.http import bearer_token, error_response, json_response, parse_body, run
from cashoffer.utils.logging import correlation_context, get_structured_logger
from cashoffer.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


async def refresh(request: dict) -> dict:
    body = parse_body(request)
    quote_id = body.get("quote_id")
    if not quote_id:
        raise StepValidationError({"quote_id": "quote_id is required"})

    session = await resolve_session(bearer_token(request))
    if session is None:
        raise PreconditionError("You must be signed in to view a quote", missing=["authentication"])
    if await get_quote_by_id(quote_id, user_id=session.user_id) is None:
        raise PreconditionError(f"Quote not found: {quote_id}", missing=["quote"])

    quote = await refresh_valuation(quote_id)
    details = quote.calculation_details
    return {
        "quote_id": quote.id,
        "status": quote.status.value,
        "amount": quote.display_amount,
        "calculation_details": details.model_dump(mode="json", exclude_none=True) if details else None,
    }


def handler(request):
    with correlation_context():
        try:
            return json_response(200, run(refresh(request)))
        except Exception as e:
            return error_response(e)
