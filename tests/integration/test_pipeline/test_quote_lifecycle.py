"""End-to-end tests: wizard to valuation to inspection, against the in-memory store."""

import pytest
from datetime import datetime, time, timedelta, timezone
from cashoffer.models.form import AddressStep, ConditionStep, ContactStep, DetailsStep
from cashoffer.models.quote import QuoteStatus
from cashoffer.services.inspection_scheduler import schedule_inspection
from cashoffer.services.valuation import complete_calculation, start_calculation
from cashoffer.services.wizard import WizardController
from cashoffer.utils.errors import PreconditionError
from tests.utils.assertions import assert_calculating_row, assert_price_range_bounds

SPRINGFIELD_ADDRESS = AddressStep(address="123 Main St", city="Springfield", state="IL", zip_code="62704")
SPRINGFIELD_DETAILS = DetailsStep(
    bedrooms="3",
    bathrooms="2",
    square_feet="1500",
    year_built="1995",
    property_type="single_family",
)


async def submit_springfield(session):
    wizard = WizardController(session)
    wizard.advance(SPRINGFIELD_ADDRESS)
    wizard.advance(SPRINGFIELD_DETAILS)
    wizard.advance(ConditionStep(condition="good"))
    return await wizard.submit(ContactStep(timeline="30_days"))


@pytest.mark.integration
@pytest.mark.asyncio
async def test_submission_creates_property_and_calculating_quote(fake_supabase, session):
    """Scenario A: one property row and one pending quote with zero amount."""
    quote_id = await submit_springfield(session)

    properties = fake_supabase.rows("properties")
    quotes = fake_supabase.rows("quotes")
    assert len(properties) == 1
    assert len(quotes) == 1
    assert properties[0]["address"] == "123 Main St, Springfield, IL 62704"
    assert properties[0]["square_feet"] == 1500
    assert properties[0]["condition"] == "good"
    assert quotes[0]["id"] == quote_id
    assert quotes[0]["timeline"] == "30_days"
    assert_calculating_row(quotes[0])


@pytest.mark.integration
@pytest.mark.asyncio
async def test_valuation_completes_with_band_around_base_price(fake_supabase, session, rng):
    """Scenario B: 1500 sqft values around 270000 and awaits inspection."""
    quote_id = await submit_springfield(session)

    details = await start_calculation(quote_id, rng=rng)
    quote = await complete_calculation(quote_id, rng=rng, now=details.due_at)

    assert quote.status == QuoteStatus.AWAITING_INSPECTION
    assert_price_range_bounds(quote.price_range, 1500)
    assert quote.amount == (quote.price_range.low + quote.price_range.high) // 2
    assert await complete_calculation(quote_id, rng=rng) is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_inspection_moves_quote_to_formal_offer(fake_supabase, session, rng):
    """Scenario C: afternoon slot five days out books 14:00; pending quotes are refused."""
    quote_id = await submit_springfield(session)
    today = datetime.now(timezone.utc).date()

    with pytest.raises(PreconditionError):
        await schedule_inspection(session, quote_id, today + timedelta(days=5), "afternoon", today=today)

    await start_calculation(quote_id, rng=rng)
    await complete_calculation(quote_id, rng=rng)
    inspection = await schedule_inspection(session, quote_id, today + timedelta(days=5), "afternoon", today=today)

    assert datetime.fromisoformat(inspection["scheduled_date"]).time() == time(14, 0)
    assert fake_supabase.rows("quotes")[0]["status"] == "awaiting_formal_offer"
    assert len(fake_supabase.rows("property_inspections")) == 1
