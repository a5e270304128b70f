"""Activity-feed notifications written as side effects of quote events."""

from typing import Optional

from cashoffer.models.notification import Notification, NotificationType
from cashoffer.services.supabase_client import create_notification
from cashoffer.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


async def notify(
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.GENERAL,
    property_id: Optional[str] = None,
    quote_id: Optional[str] = None,
) -> dict:
    """Write a notification; store failures propagate as SupabaseError."""
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        related_property_id=property_id,
        related_quote_id=quote_id,
    )
    row = await create_notification(
        notification.model_dump(mode="json", exclude_none=True, exclude={"id", "created_at"})
    )
    logger.info(
        "Notification created",
        user_id=mask_user_id(user_id),
        notification_type=notification_type.value,
        quote_id=quote_id,
    )
    return row


async def notify_quietly(*args, **kwargs) -> Optional[dict]:
    """Fire-and-forget variant: a failed write is logged, never raised."""
    try:
        return await notify(*args, **kwargs)
    except Exception as e:
        logger.warning(
            "Failed to write notification",
            quote_id=kwargs.get("quote_id"),
            error=str(e),
        )
        return None
