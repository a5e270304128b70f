"""Submission pipeline - turn a completed wizard into property and quote rows."""

import os
from datetime import datetime, timedelta, timezone

from cashoffer.models.form import AddressStep, QuoteRequestForm
from cashoffer.models.property import Property, PropertyStatus
from cashoffer.models.quote import CalculatingDetails, QuoteStatus, dump_calculation_details
from cashoffer.models.session import UserSession
from cashoffer.services.form_validators import parse_bathrooms, parse_bedrooms
from cashoffer.services.supabase_client import create_property, create_quote, delete_property
from cashoffer.utils.errors import (
    PreconditionError,
    PropertyCreationError,
    QuoteCreationError,
    SupabaseError,
)
from cashoffer.utils.logging import (
    get_structured_logger,
    log_timing,
    mask_user_id,
    sanitize_free_text,
)

logger = get_structured_logger(__name__)

QUOTE_EXPIRY_DAYS = int(os.environ.get("QUOTE_EXPIRY_DAYS", "7"))


def compose_address(address: AddressStep) -> str:
    """'123 Main St, Springfield, IL 62704'."""
    return (
        f"{address.address.strip()}, {address.city.strip()}, "
        f"{address.state.strip().upper()} {address.zip_code.strip()}"
    )


def build_property_row(form: QuoteRequestForm, user_id: str) -> dict:
    """Map the address, details and condition steps onto a properties row."""
    address, details, condition = form.address, form.details, form.condition
    prop = Property(
        user_id=user_id,
        address=compose_address(address),
        city=address.city.strip(),
        state=address.state.strip().upper(),
        zip_code=address.zip_code.strip(),
        bedrooms=parse_bedrooms(details.bedrooms),
        bathrooms=parse_bathrooms(details.bathrooms),
        square_feet=int(float(details.square_feet)),
        year_built=int(float(details.year_built)),
        property_type=details.property_type,
        lot_size=details.lot_size.strip() or None,
        condition=condition.condition,
        description=condition.additional_notes.strip() or None,
        status=PropertyStatus.ACTIVE,
    )
    return prop.model_dump(mode="json", exclude_none=True, exclude={"id", "created_at", "updated_at"})


def build_quote_row(form: QuoteRequestForm, user_id: str, property_id: str, now: datetime) -> dict:
    """A fresh quote: zero amount, pending, calculating since ``now``."""
    return {
        "property_id": property_id,
        "user_id": user_id,
        "amount": 0,
        "status": QuoteStatus.PENDING.value,
        "timeline": form.contact.timeline,
        "motivation": form.contact.motivation.strip(),
        "expires_at": (now + timedelta(days=QUOTE_EXPIRY_DAYS)).isoformat(),
        "calculation_details": dump_calculation_details(CalculatingDetails(started_at=now)),
    }


async def submit_quote_request(form: QuoteRequestForm, session: UserSession) -> str:
    """Persist the property, then the quote, and return the new quote id.

    If the quote insert fails the property is deleted again so no orphan is
    left behind; when that delete also fails the orphan id is carried on the
    raised QuoteCreationError.
    """
    if session is None:
        raise PreconditionError("You must be signed in to submit a property", missing=["authentication"])
    missing = form.missing_steps()
    if missing:
        raise PreconditionError(f"Missing form step: {missing[0]}", missing=missing)

    user_id = session.user_id
    now = datetime.now(timezone.utc)

    logger.info(
        "Submitting quote request",
        user_id=mask_user_id(user_id),
        zip_code=form.address.zip_code,
        property_type=form.details.property_type,
        timeline=form.contact.timeline,
        motivation_preview=sanitize_free_text(form.contact.motivation, max_length=80),
    )

    try:
        with log_timing("create_property", logger=logger, user_id=mask_user_id(user_id)):
            property_row = await create_property(build_property_row(form, user_id))
    except SupabaseError as e:
        logger.error("Property creation failed", user_id=mask_user_id(user_id), error=str(e))
        raise PropertyCreationError(str(e)) from e

    property_id = property_row["id"]
    logger.info("Property created", property_id=property_id, user_id=mask_user_id(user_id))

    try:
        with log_timing("create_quote", logger=logger, property_id=property_id):
            quote_row = await create_quote(build_quote_row(form, user_id, property_id, now))
    except SupabaseError as e:
        logger.error("Quote creation failed", property_id=property_id, error=str(e))
        orphaned = None
        try:
            await delete_property(property_id)
            logger.info("Rolled back property after quote failure", property_id=property_id)
        except SupabaseError as cleanup_error:
            orphaned = property_id
            logger.error(
                "Compensating property delete failed; property left orphaned",
                property_id=property_id,
                error=str(cleanup_error),
            )
        raise QuoteCreationError(str(e), property_id=property_id, orphaned_property_id=orphaned) from e

    quote_id = quote_row["id"]
    logger.info(
        "Quote created",
        quote_id=quote_id,
        property_id=property_id,
        user_id=mask_user_id(user_id),
    )
    return quote_id
