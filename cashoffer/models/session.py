"""Read-only projection of the authenticated user."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class UserSession(BaseModel):
    """Identity handed explicitly to every component that needs a user."""
    user_id: str = Field(..., description="Auth user ID")
    email: Optional[str] = None
    email_verified_at: Optional[datetime] = Field(None, description="Null until the email is confirmed")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    access_token: Optional[str] = Field(None, repr=False)

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None
