"""Supabase client wrapper with async context manager support."""

import os
from typing import Iterable, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from cashoffer.utils.errors import SupabaseError
import logging

logger = logging.getLogger(__name__)

# Global client instances (singleton pattern)
_client: Optional[Client] = None
_auth_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create the service-role client used for table access."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


def get_supabase_auth_client() -> Client:
    """Get or create the anon-key client used for Supabase Auth calls."""
    global _auth_client

    if _auth_client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_ANON_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _auth_client = create_client(url, key, options)
        logger.info("Supabase auth client initialized", extra={"url": url})

    return _auth_client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


# Properties table operations
async def create_property(property_data: dict) -> dict:
    """Create a new property record."""
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").insert(property_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create property: {e}")
        if result.data and len(result.data) > 0:
            return result.data[0]
        raise SupabaseError("Failed to create property: no data returned")


async def delete_property(property_id: str) -> None:
    """Hard-delete a property (only used to undo a half-finished submission)."""
    async with SupabaseClient() as client:
        try:
            client.table("properties").delete().eq("id", property_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete property: {e}")


async def get_property_by_id(property_id: str) -> Optional[dict]:
    """Get property by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").select("*").eq("id", property_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get property: {e}")
        return result.data[0] if result.data and len(result.data) > 0 else None


async def get_properties_by_ids(property_ids: Iterable[str]) -> list[dict]:
    """Get several properties in one round trip."""
    ids = [pid for pid in property_ids if pid]
    if not ids:
        return []
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").select("*").in_("id", ids).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get properties: {e}")
        return result.data if result.data else []


# Quotes table operations
async def create_quote(quote_data: dict) -> dict:
    """Create a new quote record."""
    async with SupabaseClient() as client:
        try:
            result = client.table("quotes").insert(quote_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create quote: {e}")
        if result.data and len(result.data) > 0:
            return result.data[0]
        raise SupabaseError("Failed to create quote: no data returned")


async def get_quote_by_id(quote_id: str, user_id: Optional[str] = None) -> Optional[dict]:
    """Get quote by ID, optionally scoped to its owner."""
    async with SupabaseClient() as client:
        try:
            query = client.table("quotes").select("*").eq("id", quote_id)
            if user_id is not None:
                query = query.eq("user_id", user_id)
            result = query.execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get quote: {e}")
        return result.data[0] if result.data and len(result.data) > 0 else None


async def get_quotes_by_user(user_id: str) -> list[dict]:
    """Get all quotes for a user, newest first."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("quotes")
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to get quotes: {e}")
        return result.data if result.data else []


async def get_calculating_quotes(limit: int = 50) -> list[dict]:
    """Get quotes whose valuation has not completed, oldest first."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("quotes")
                .select("*")
                .in_("status", ["pending", "calculating"])
                .order("created_at")
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to get calculating quotes: {e}")
        return result.data if result.data else []


async def update_quote(
    quote_id: str,
    updates: dict,
    expected_statuses: Optional[list[str]] = None,
    expected_calculation_status: Optional[str] = None,
    expect_countdown_unstarted: bool = False,
) -> Optional[dict]:
    """Update a quote.

    With ``expected_statuses``, ``expected_calculation_status`` or
    ``expect_countdown_unstarted`` the update only applies while the row
    still matches; a miss returns None instead of raising. Unconditional updates that match nothing raise.
    """
    conditional = (
        expected_statuses is not None
        or expected_calculation_status is not None
        or expect_countdown_unstarted
    )
    async with SupabaseClient() as client:
        try:
            query = client.table("quotes").update(updates).eq("id", quote_id)
            if expected_statuses is not None:
                query = query.in_("status", list(expected_statuses))
            if expected_calculation_status is not None:
                query = query.eq("calculation_details->>status", expected_calculation_status)
            if expect_countdown_unstarted:
                query = query.is_("calculation_details->>estimated_wait_time", "null")
            result = query.execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update quote: {e}")
        if result.data and len(result.data) > 0:
            return result.data[0]
        if conditional:
            return None
        raise SupabaseError(f"Failed to update quote: {quote_id}")


# Inspection, notification and history operations
async def create_inspection(inspection_data: dict) -> dict:
    """Create a property inspection record."""
    async with SupabaseClient() as client:
        try:
            result = client.table("property_inspections").insert(inspection_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create inspection: {e}")
        if result.data and len(result.data) > 0:
            return result.data[0]
        raise SupabaseError("Failed to create inspection: no data returned")


async def create_notification(notification_data: dict) -> dict:
    """Create a notification record."""
    async with SupabaseClient() as client:
        try:
            result = client.table("notifications").insert(notification_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create notification: {e}")
        if result.data and len(result.data) > 0:
            return result.data[0]
        raise SupabaseError("Failed to create notification: no data returned")


async def create_property_history(history_data: dict) -> dict:
    """Append a property_history audit row."""
    async with SupabaseClient() as client:
        try:
            result = client.table("property_history").insert(history_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create property history: {e}")
        if result.data and len(result.data) > 0:
            return result.data[0]
        raise SupabaseError("Failed to create property history: no data returned")


async def create_user_profile(profile_data: dict) -> dict:
    """Create a user_profiles record."""
    async with SupabaseClient() as client:
        try:
            result = client.table("user_profiles").insert(profile_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create user profile: {e}")
        if result.data and len(result.data) > 0:
            return result.data[0]
        raise SupabaseError("Failed to create user profile: no data returned")

