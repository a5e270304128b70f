"""Error handling utilities."""

from typing import Optional


class CashOfferError(Exception):
    """Base exception for the cash offer backend."""
    pass


class SupabaseError(CashOfferError):
    """Supabase operation error."""
    pass


class StepValidationError(CashOfferError):
    """One or more wizard fields failed validation."""

    def __init__(self, errors: dict[str, str], step: Optional[int] = None):
        self.errors = dict(errors)
        self.step = step
        fields = ", ".join(sorted(self.errors))
        prefix = f"Step {step}" if step else "Form"
        super().__init__(f"{prefix} has invalid fields: {fields}")


class PreconditionError(CashOfferError):
    """Operation invoked out of order or without a required piece."""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        self.missing = list(missing or [])
        super().__init__(message)


class PropertyCreationError(CashOfferError):
    """Property insert failed; no quote was attempted."""
    pass


class QuoteCreationError(CashOfferError):
    """Quote insert failed after the property was created."""

    def __init__(self, message: str, property_id: Optional[str] = None,
                 orphaned_property_id: Optional[str] = None):
        self.property_id = property_id
        self.orphaned_property_id = orphaned_property_id
        super().__init__(message)


class SchedulingError(CashOfferError):
    """Inspection scheduling failed part way; earlier writes are not rolled back."""
    pass


class StaleCalculationError(CashOfferError):
    """A valuation countdown ran past its due time without completing."""

    def __init__(self, quote_id: Optional[str], overdue_seconds: float):
        self.quote_id = quote_id
        self.overdue_seconds = overdue_seconds
        super().__init__(
            f"Valuation for quote {quote_id} is {overdue_seconds:.0f}s overdue"
        )


class IdentityError(CashOfferError):
    """Authentication provider rejected the request."""

    EMAIL_ALREADY_REGISTERED = "EmailAlreadyRegistered"
    INVALID_CREDENTIALS = "InvalidCredentials"
    EMAIL_NOT_VERIFIED = "EmailNotVerified"
    WEAK_PASSWORD = "WeakPassword"
    PASSWORD_MISMATCH = "PasswordMismatch"
    UNKNOWN = "Unknown"

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message)
