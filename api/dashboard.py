"""Seller dashboard endpoint (GET)."""

from cashoffer.services.dashboard import get_dashboard
from cashoffer.services.identity import resolve_session
from cashoffer.utils.http import bearer_token, error_response, json_response, run
from cashoffer.utils.logging import correlation_context
from cashoffer.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()


async def load(request: dict) -> dict:
    session = await resolve_session(bearer_token(request))
    dashboard = await get_dashboard(session)
    return {
        "stats": dashboard.stats.model_dump(),
        "quotes": [
            {
                **summary.quote.model_dump(mode="json", exclude_none=True),
                "amount": summary.display_amount,
                "property": summary.property_row,
            }
            for summary in dashboard.quotes
        ],
    }


def handler(request):
    with correlation_context():
        try:
            return json_response(200, run(load(request)))
        except Exception as e:
            return error_response(e)
