"""Seller dashboard - quotes joined to their properties, plus summary stats."""

from typing import Optional

from pydantic import BaseModel

from cashoffer.models.quote import Quote, QuoteStatus
from cashoffer.models.session import UserSession
from cashoffer.services.supabase_client import get_properties_by_ids, get_quotes_by_user
from cashoffer.services.valuation import ValuationScheduler, get_valuation_scheduler
from cashoffer.utils.errors import PreconditionError
from cashoffer.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

COMPLETED_STATUSES = (QuoteStatus.ACCEPTED, QuoteStatus.CLOSED)


class DashboardStats(BaseModel):
    active_quotes: int = 0
    total_offers: int = 0
    properties: int = 0
    completed: int = 0


class QuoteSummary(BaseModel):
    """A quote as the dashboard shows it; amount is hidden while calculating."""
    quote: Quote
    property_row: Optional[dict] = None

    @property
    def display_amount(self) -> Optional[float]:
        return self.quote.display_amount


class Dashboard(BaseModel):
    quotes: list[QuoteSummary]
    stats: DashboardStats


def compute_stats(quotes: list[Quote]) -> DashboardStats:
    return DashboardStats(
        active_quotes=sum(1 for q in quotes if q.is_calculating),
        total_offers=len(quotes),
        properties=len({q.property_id for q in quotes if q.property_id}),
        completed=sum(1 for q in quotes if q.status in COMPLETED_STATUSES),
    )


@timed("load_dashboard")
async def get_dashboard(
    session: Optional[UserSession],
    scheduler: Optional[ValuationScheduler] = None,
) -> Dashboard:
    """Load the seller's quotes newest first and resume any pending valuations."""
    if session is None:
        raise PreconditionError("You must be signed in to view your dashboard", missing=["authentication"])

    rows = await get_quotes_by_user(session.user_id)
    quotes = [Quote.from_row(row) for row in rows]
    properties = {
        p["id"]: p for p in await get_properties_by_ids({q.property_id for q in quotes if q.property_id})
    }

    scheduler = scheduler or get_valuation_scheduler()
    for quote in quotes:
        if quote.is_calculating:
            try:
                await scheduler.ensure_started(quote.id)
            except Exception as e:
                # The cron sweep picks the quote up later.
                logger.warning("Could not resume valuation", quote_id=quote.id, error=str(e))

    dashboard = Dashboard(
        quotes=[QuoteSummary(quote=q, property_row=properties.get(q.property_id)) for q in quotes],
        stats=compute_stats(quotes),
    )
    logger.info(
        "Dashboard loaded",
        user_id=mask_user_id(session.user_id),
        **dashboard.stats.model_dump(),
    )
    return dashboard
