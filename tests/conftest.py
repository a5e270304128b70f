"""Shared pytest fixtures and configuration."""

import os
import random
import pytest
from types import SimpleNamespace
from unittest.mock import patch

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("AUTH_REDIRECT_URL", "https://test.example.com/auth/verify")
os.environ.setdefault("INSPECTION_TIMEZONE", "America/Chicago")
os.environ.setdefault("LOG_FORMAT", "text")

from tests.utils.factories import create_session  # noqa: E402
from tests.utils.fakes import FakeSupabaseClient  # noqa: E402


@pytest.fixture
def fake_supabase():
    """In-memory Supabase client wired into every store helper."""
    client = FakeSupabaseClient()
    with patch("cashoffer.services.supabase_client.get_supabase_client", return_value=client), \
            patch("cashoffer.services.identity.get_supabase_auth_client", return_value=client):
        yield client


@pytest.fixture
def session():
    """Verified seller."""
    return create_session()


@pytest.fixture
def unverified_session():
    return create_session(verified=False)


@pytest.fixture
def signed_in(fake_supabase, session):
    """Make the fake auth provider accept the test bearer token as ``session``."""
    fake_supabase.auth.get_user.return_value = SimpleNamespace(
        user=SimpleNamespace(
            id=session.user_id,
            email=session.email,
            email_confirmed_at=session.email_verified_at,
            user_metadata={"first_name": session.first_name, "last_name": session.last_name},
        )
    )
    return session


@pytest.fixture
def rng():
    """Seeded RNG for deterministic waits and price bands."""
    return random.Random(42)


@pytest.fixture(autouse=True)
def reset_valuation_scheduler():
    """Keep the process-wide scheduler from leaking timers between tests."""
    import cashoffer.services.valuation as valuation

    valuation._valuation_scheduler = None
    yield
    valuation._valuation_scheduler = None

