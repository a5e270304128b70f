"""Inspection scheduling for quotes whose valuation is complete."""

import os
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from cashoffer.models.inspection import InspectionStatus, PropertyInspection, TimeSlot
from cashoffer.models.notification import NotificationType
from cashoffer.models.quote import Quote, QuoteStatus
from cashoffer.models.session import UserSession
from cashoffer.services.notifications import notify
from cashoffer.services.supabase_client import create_inspection, get_quote_by_id, update_quote
from cashoffer.utils.errors import PreconditionError, SchedulingError, SupabaseError
from cashoffer.utils.logging import get_structured_logger, log_timing, mask_user_id

logger = get_structured_logger(__name__)

INSPECTION_TIMEZONE = ZoneInfo(os.environ.get("INSPECTION_TIMEZONE", "America/Chicago"))

# Earliest selectable day is two days out; thirty days are offered.
FIRST_SELECTABLE_OFFSET_DAYS = 2
SELECTABLE_DAYS = 30


def local_today(now: Optional[datetime] = None) -> date:
    return (now or datetime.now(timezone.utc)).astimezone(INSPECTION_TIMEZONE).date()


def selectable_date_window(today: date) -> tuple[date, date]:
    """Inclusive (first, last) dates a seller may pick."""
    first = today + timedelta(days=FIRST_SELECTABLE_OFFSET_DAYS)
    return first, first + timedelta(days=SELECTABLE_DAYS - 1)


def selectable_dates(today: date) -> list[date]:
    first, _ = selectable_date_window(today)
    return [first + timedelta(days=offset) for offset in range(SELECTABLE_DAYS)]


def build_scheduled_at(inspection_date: date, slot: TimeSlot) -> datetime:
    """Slot start on the given date, in the inspection timezone."""
    return datetime.combine(inspection_date, slot.start_time, tzinfo=INSPECTION_TIMEZONE)


def _coerce_slot(slot) -> TimeSlot:
    try:
        return TimeSlot(slot)
    except ValueError:
        raise PreconditionError(
            f"Invalid time slot: {slot}. Choose morning, afternoon or evening.",
            missing=["time_slot"],
        ) from None


async def schedule_inspection(
    session: Optional[UserSession],
    quote_id: str,
    inspection_date: date,
    slot,
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> dict:
    """Book an inspection and advance the quote to ``awaiting_formal_offer``.

    Every precondition is checked before the first write. The three writes
    are not transactional: a failure part way raises SchedulingError and
    leaves the earlier writes in place.

    Returns the created ``property_inspections`` row.
    """
    if session is None:
        raise PreconditionError("You must be signed in to schedule an inspection", missing=["authentication"])

    time_slot = _coerce_slot(slot)
    row = await get_quote_by_id(quote_id, user_id=session.user_id)
    if row is None:
        raise PreconditionError(f"Quote not found: {quote_id}", missing=["quote"])
    quote = Quote.from_row(row)

    if quote.status != QuoteStatus.AWAITING_INSPECTION:
        raise PreconditionError(
            f"Quote {quote_id} is {quote.status.value}; inspections can only be scheduled "
            "once the offer range is ready",
            missing=["awaiting_inspection"],
        )

    first, last = selectable_date_window(today or local_today())
    if not first <= inspection_date <= last:
        raise PreconditionError(
            f"Inspection date must be between {first.isoformat()} and {last.isoformat()}",
            missing=["inspection_date"],
        )

    scheduled_at = build_scheduled_at(inspection_date, time_slot)
    inspection = PropertyInspection(
        property_id=quote.property_id,
        scheduled_date=scheduled_at.isoformat(),
        status=InspectionStatus.SCHEDULED,
        notes=(notes or "").strip() or None,
    )

    log_fields = {"quote_id": quote_id, "user_id": mask_user_id(session.user_id)}
    try:
        with log_timing("schedule_inspection", logger=logger, **log_fields):
            inspection_row = await create_inspection(
                inspection.model_dump(mode="json", exclude_none=True, exclude={"id", "created_at", "updated_at"})
            )
            logger.info("Inspection created", inspection_id=inspection_row.get("id"), **log_fields)

            await notify(
                session.user_id,
                "Inspection scheduled",
                f"Your property inspection is booked for {inspection_date.strftime('%A, %B %d, %Y')}, "
                f"{time_slot.label}.",
                notification_type=NotificationType.INSPECTION_SCHEDULED,
                property_id=quote.property_id,
                quote_id=quote_id,
            )

            updated = await update_quote(
                quote_id,
                {
                    "status": QuoteStatus.AWAITING_FORMAL_OFFER.value,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                expected_statuses=[QuoteStatus.AWAITING_INSPECTION.value],
            )
    except SupabaseError as e:
        logger.error("Inspection scheduling failed", error=str(e), **log_fields)
        raise SchedulingError(f"Failed to schedule inspection: {e}") from e

    if updated is None:
        logger.error("Quote changed state while scheduling", **log_fields)
        raise SchedulingError(f"Quote {quote_id} is no longer awaiting inspection")

    logger.info(
        "Quote awaiting formal offer",
        scheduled_at=scheduled_at.isoformat(),
        time_slot=time_slot.value,
        **log_fields,
    )
    return inspection_row
