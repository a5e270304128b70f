"""Seller response to a formal offer (accept or decline)."""

from datetime import datetime, timezone
from typing import Optional

from cashoffer.models.notification import NotificationType
from cashoffer.models.quote import Quote, QuoteStatus
from cashoffer.models.session import UserSession
from cashoffer.services.notifications import notify_quietly
from cashoffer.services.supabase_client import (
    create_property_history,
    get_property_by_id,
    get_quote_by_id,
    update_quote,
)
from cashoffer.utils.errors import PreconditionError, StepValidationError, SupabaseError
from cashoffer.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

DECISIONS = (QuoteStatus.ACCEPTED.value, QuoteStatus.DECLINED.value)


@timed("respond_to_quote")
async def respond_to_quote(session: Optional[UserSession], quote_id: str, decision: str) -> Quote:
    """Record the seller's decision on a quote awaiting their review."""
    if decision not in DECISIONS:
        raise StepValidationError({"status": 'Invalid status. Must be "accepted" or "declined"'})
    if session is None:
        raise PreconditionError("You must be signed in to respond to an offer", missing=["authentication"])

    row = await get_quote_by_id(quote_id, user_id=session.user_id)
    if row is None:
        raise PreconditionError(f"Quote not found: {quote_id}", missing=["quote"])

    quote = Quote.from_row(row)
    target = QuoteStatus(decision)
    if quote.status != QuoteStatus.AWAITING_CUSTOMER_REVIEW or not quote.status.can_transition_to(target):
        raise PreconditionError(
            f"Quote {quote_id} is {quote.status.value}; only offers awaiting review can be {decision}",
            missing=["awaiting_customer_review"],
        )

    now = datetime.now(timezone.utc).isoformat()
    updated = await update_quote(
        quote_id,
        {"status": target.value, "updated_at": now},
        expected_statuses=[QuoteStatus.AWAITING_CUSTOMER_REVIEW.value],
    )
    if updated is None:
        raise PreconditionError(f"Quote {quote_id} changed state before the response was recorded")

    logger.info(
        "Offer response recorded",
        quote_id=quote_id,
        decision=decision,
        user_id=mask_user_id(session.user_id),
    )

    property_row = await get_property_by_id(quote.property_id) if quote.property_id else None
    address = property_row.get("address") if property_row else "your property"

    if target == QuoteStatus.ACCEPTED:
        title = "Offer Accepted!"
        message = (
            f"You've accepted our offer of ${quote.amount:,.0f} for {address}. "
            "We'll contact you shortly to begin the closing process."
        )
        notification_type = NotificationType.OFFER_ACCEPTED
    else:
        title = "Offer Declined"
        message = f"You've declined our offer for {address}. Thank you for considering us."
        notification_type = NotificationType.OFFER_DECLINED

    await notify_quietly(
        session.user_id,
        title,
        message,
        notification_type=notification_type,
        property_id=quote.property_id,
        quote_id=quote_id,
    )

    try:
        await create_property_history({
            "property_id": quote.property_id,
            "changed_by": session.user_id,
            "change_type": f"quote_{decision}",
            "old_values": {"status": quote.status.value},
            "new_values": {"quote_id": quote_id, "status": decision, "timestamp": now},
        })
    except SupabaseError as e:
        logger.warning("Failed to write property history", quote_id=quote_id, error=str(e))

    return Quote.from_row(updated)
