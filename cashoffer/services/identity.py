"""Identity collaborator over Supabase Auth.

Everything here produces or consumes a ``UserSession``; the rest of the
backend never talks to the auth provider directly.
"""

import os
import re
from typing import Any, Optional

from cashoffer.models.session import UserSession
from cashoffer.services.supabase_client import create_user_profile, get_supabase_auth_client
from cashoffer.utils.errors import IdentityError, SupabaseError
from cashoffer.utils.logging import get_structured_logger, mask_email, mask_user_id

logger = get_structured_logger(__name__)

AUTH_REDIRECT_URL = os.environ.get("AUTH_REDIRECT_URL", "http://localhost:3000/auth/verify")

MIN_PASSWORD_LENGTH = 8


def validate_password(password: str, confirm_password: Optional[str] = None) -> None:
    """Password rules from the sign-up form; raises IdentityError."""
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise IdentityError(IdentityError.WEAK_PASSWORD, "Password must be at least 8 characters")
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)):
        raise IdentityError(
            IdentityError.WEAK_PASSWORD,
            "Password must contain at least one uppercase letter, one lowercase letter, and one number",
        )
    if confirm_password is not None and confirm_password != password:
        raise IdentityError(IdentityError.PASSWORD_MISMATCH, "Passwords don't match")


def _classify(error: Exception) -> IdentityError:
    message = str(error)
    lowered = message.lower()
    if "already registered" in lowered:
        reason = IdentityError.EMAIL_ALREADY_REGISTERED
    elif "invalid login credentials" in lowered:
        reason = IdentityError.INVALID_CREDENTIALS
    elif "email not confirmed" in lowered:
        reason = IdentityError.EMAIL_NOT_VERIFIED
    else:
        reason = IdentityError.UNKNOWN
    return IdentityError(reason, message)


def session_from_user(user: Any, access_token: Optional[str] = None) -> UserSession:
    """Project a Supabase Auth user onto a UserSession."""
    metadata = getattr(user, "user_metadata", None) or {}
    return UserSession(
        user_id=str(user.id),
        email=getattr(user, "email", None),
        email_verified_at=getattr(user, "email_confirmed_at", None),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        phone=metadata.get("phone"),
        access_token=access_token,
    )


async def resolve_session(access_token: Optional[str]) -> Optional[UserSession]:
    """Look up the user behind a bearer token; None when absent or invalid."""
    if not access_token:
        return None
    client = get_supabase_auth_client()
    try:
        response = client.auth.get_user(access_token)
    except Exception as e:
        logger.info("Access token rejected", error=str(e))
        return None
    if response is None or response.user is None:
        return None
    return session_from_user(response.user, access_token=access_token)


async def get_current_session() -> Optional[UserSession]:
    """Session held by the auth client, if any."""
    client = get_supabase_auth_client()
    try:
        session = client.auth.get_session()
    except Exception as e:
        logger.warning("Failed to read current session", error=str(e))
        return None
    if session is None or session.user is None:
        return None
    return session_from_user(session.user, access_token=session.access_token)


async def sign_up(
    email: str,
    password: str,
    confirm_password: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> Optional[UserSession]:
    """Register a seller; the returned session is unverified until the email link is used."""
    validate_password(password, confirm_password)

    user_data = None
    if first_name or last_name:
        user_data = {"first_name": first_name, "last_name": last_name, "phone": phone}

    options: dict = {"email_redirect_to": AUTH_REDIRECT_URL}
    if user_data:
        options["data"] = user_data

    client = get_supabase_auth_client()
    try:
        response = client.auth.sign_up({"email": email, "password": password, "options": options})
    except Exception as e:
        error = _classify(e)
        logger.info("Sign up rejected", email=mask_email(email), reason=error.reason)
        raise error from e

    user = response.user
    if user is None:
        return None
    logger.info("User signed up", user_id=mask_user_id(str(user.id)), email=mask_email(email))

    if user_data:
        try:
            await create_user_profile({
                "user_id": str(user.id),
                "first_name": first_name,
                "last_name": last_name,
                "phone": phone,
                "user_type": "seller",
            })
        except SupabaseError as e:
            # Sign-up stands even without a profile row.
            logger.warning("User profile creation failed", user_id=mask_user_id(str(user.id)), error=str(e))

    session = getattr(response, "session", None)
    return session_from_user(user, access_token=getattr(session, "access_token", None))


async def sign_in(email: str, password: str) -> UserSession:
    client = get_supabase_auth_client()
    try:
        response = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        error = _classify(e)
        logger.info("Sign in rejected", email=mask_email(email), reason=error.reason)
        raise error from e

    session = response.session
    logger.info("User signed in", user_id=mask_user_id(str(response.user.id)))
    return session_from_user(response.user, access_token=getattr(session, "access_token", None))


async def sign_out() -> None:
    client = get_supabase_auth_client()
    try:
        client.auth.sign_out()
    except Exception as e:
        raise _classify(e) from e
    logger.info("User signed out")


async def resend_verification(email: str) -> None:
    """Send the sign-up confirmation email again."""
    client = get_supabase_auth_client()
    try:
        client.auth.resend({
            "type": "signup",
            "email": email,
            "options": {"email_redirect_to": AUTH_REDIRECT_URL},
        })
    except Exception as e:
        error = _classify(e)
        logger.warning("Resend verification failed", email=mask_email(email), reason=error.reason)
        raise error from e
    logger.info("Verification email sent", email=mask_email(email))
