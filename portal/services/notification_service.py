"""
Unified Notification Service
Fans one event out to email, SMS and Telegram. Every channel is best effort:
failures are logged and reported in the result, never raised.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from ..models import User
from .sms_service import get_sms_client
from .telegram_service import send_admin_notification, send_telegram_message

logger = logging.getLogger(__name__)


async def send_notification(
    user: User,
    notification_type: str,
    email_func: Optional[Callable[..., Awaitable[Any]]] = None,
    email_kwargs: Optional[dict] = None,
    sms_content: Optional[str] = None,
    telegram_message: Optional[str] = None,
    admin_message: Optional[str] = None,
) -> dict:
    """
    Notify a customer (and optionally staff) about one event

    Args:
        user: Customer being notified; consent flags gate SMS and Telegram
        notification_type: Label used in logs
        email_func: Email coroutine to call
        email_kwargs: Kwargs for email function
        sms_content: SMS body, sent only with sms consent
        telegram_message: Customer Telegram text, sent only when telegram is enabled
        admin_message: Telegram text for the operations chat

    Returns:
        Dict with per-channel sent flags and errors
    """
    result = {
        "email_sent": False,
        "sms_sent": False,
        "telegram_sent": False,
        "admin_notified": False,
        "email_error": None,
        "sms_error": None,
    }

    if email_func:
        try:
            logger.info(f"📧 Sending {notification_type} email for user {user.id}")
            await email_func(**(email_kwargs or {}))
            result["email_sent"] = True
        except Exception as e:
            result["email_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} email for user {user.id}: {e}")

    if sms_content and user.sms_consent and user.phone:
        try:
            sms_result = await get_sms_client().send(user.phone, sms_content)
            result["sms_sent"] = sms_result.get("success", False)
            result["sms_error"] = sms_result.get("error")
        except Exception as e:
            result["sms_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} SMS for user {user.id}: {e}")

    if telegram_message and user.telegram_enabled and user.telegram_chat_id:
        try:
            result["telegram_sent"], _ = await send_telegram_message(user.telegram_chat_id, telegram_message)
        except Exception as e:
            logger.error(f"❌ Failed to send {notification_type} Telegram message for user {user.id}: {e}")

    if admin_message:
        result["admin_notified"] = await notify_admin(admin_message)

    return result


async def notify_admin(message: str) -> bool:
    """Telegram alert to staff that never raises"""
    try:
        return await send_admin_notification(message)
    except Exception as e:
        logger.error(f"❌ Failed to send admin notification: {e}")
        return False
