"""Tests for the seller dashboard."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from cashoffer.services.dashboard import get_dashboard
from cashoffer.utils.errors import PreconditionError
from tests.utils.factories import create_property_row, create_quote_row


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dashboard_stats_and_join(fake_supabase, session):
    home = fake_supabase.seed("properties", create_property_row(user_id=session.user_id))
    cabin = fake_supabase.seed("properties", create_property_row(user_id=session.user_id))
    calculating = fake_supabase.seed("quotes", create_quote_row(home["id"], session.user_id))
    fake_supabase.seed("quotes", create_quote_row(home["id"], session.user_id, status="accepted", amount=300000))
    fake_supabase.seed("quotes", create_quote_row(cabin["id"], session.user_id, status="awaiting_inspection"))
    fake_supabase.seed("quotes", create_quote_row(cabin["id"], "someone-else"))
    scheduler = MagicMock()
    scheduler.ensure_started = AsyncMock()

    dashboard = await get_dashboard(session, scheduler=scheduler)

    assert dashboard.stats.total_offers == 3
    assert dashboard.stats.active_quotes == 1
    assert dashboard.stats.properties == 2
    assert dashboard.stats.completed == 1
    scheduler.ensure_started.assert_awaited_once_with(calculating["id"])

    by_id = {s.quote.id: s for s in dashboard.quotes}
    assert by_id[calculating["id"]].display_amount is None
    assert by_id[calculating["id"]].property_row["id"] == home["id"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dashboard_survives_scheduler_failure(fake_supabase, session):
    home = fake_supabase.seed("properties", create_property_row(user_id=session.user_id))
    fake_supabase.seed("quotes", create_quote_row(home["id"], session.user_id))
    scheduler = MagicMock()
    scheduler.ensure_started = AsyncMock(side_effect=RuntimeError("boom"))

    dashboard = await get_dashboard(session, scheduler=scheduler)

    assert dashboard.stats.active_quotes == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dashboard_requires_session(fake_supabase):
    with pytest.raises(PreconditionError):
        await get_dashboard(None)
