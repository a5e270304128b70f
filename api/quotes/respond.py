"""Accept or decline a formal offer: POST ``{"quote_id": ..., "status": "accepted" | "declined"}``."""

from cashoffer.services.identity import resolve_session
from cashoffer.services.quote_review import respond_to_quote
from cashoffer.utils.errors import StepValidationError
from cashoffer.utils.http import bearer_token, error_response, json_response, parse_body, run
from cashoffer.utils.logging import correlation_context
from cashoffer.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()


async def respond(request: dict) -> dict:
    body = parse_body(request)
    quote_id = body.get("quote_id")
    if not quote_id:
        raise StepValidationError({"quote_id": "quote_id is required"})

    session = await resolve_session(bearer_token(request))
    quote = await respond_to_quote(session, quote_id, body.get("status"))
    return {
        "success": True,
        "quote": {"id": quote.id, "status": quote.status.value, "amount": quote.amount},
    }


def handler(request):
    with correlation_context():
        try:
            return json_response(200, run(respond(request)))
        except Exception as e:
            return error_response(e)
