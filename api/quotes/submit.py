"""Quote request submission endpoint.

POST body carries all four wizard steps::

    {"address": {...}, "details": {...}, "condition": {...}, "contact": {...}}
"""

from cashoffer.models.form import STEP_MODELS, STEP_NAMES
from cashoffer.services.identity import resolve_session
from cashoffer.services.wizard import WizardController
from cashoffer.utils.errors import PreconditionError
from cashoffer.utils.http import bearer_token, error_response, json_response, parse_body, run
from cashoffer.utils.logging import correlation_context, get_structured_logger
from cashoffer.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


async def submit(request: dict) -> str:
    body = parse_body(request)
    session = await resolve_session(bearer_token(request))
    if session is None:
        raise PreconditionError(
            "You must be logged in to submit a property. Please log in and try again.",
            missing=["authentication"],
        )

    wizard = WizardController(session)
    for step in (1, 2, 3):
        wizard.advance(STEP_MODELS[step].model_validate(body.get(STEP_NAMES[step]) or {}))
    return await wizard.submit(STEP_MODELS[4].model_validate(body.get(STEP_NAMES[4]) or {}))


def handler(request):
    """Validate the wizard payload and create the property and quote."""
    with correlation_context():
        try:
            quote_id = run(submit(request))
            return json_response(201, {"ok": True, "quote_id": quote_id})
        except Exception as e:
            logger.warning("Quote submission rejected", error_type=type(e).__name__, error=str(e))
            return error_response(e)
