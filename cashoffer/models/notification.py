"""Notification model - activity feed entries."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    QUOTE_READY = "quote_ready"
    INSPECTION_SCHEDULED = "inspection_scheduled"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_DECLINED = "offer_declined"
    GENERAL = "general"


class Notification(BaseModel):
    """Row in the ``notifications`` table."""
    id: Optional[str] = None
    user_id: str = Field(..., description="Recipient")
    title: str = Field(..., max_length=120)
    message: str
    notification_type: NotificationType = Field(default=NotificationType.GENERAL)
    related_property_id: Optional[str] = None
    related_quote_id: Optional[str] = None
    is_read: bool = False
    read_at: Optional[str] = None
    created_at: Optional[str] = None
