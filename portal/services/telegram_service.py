"""
Telegram Bot Service
Admin alerts and opt-in customer notifications via sendMessage (HTML parse mode)
"""

import logging
from datetime import datetime
from typing import Optional

import httpx

from ..config import HTTP_TIMEOUT_SECONDS, TELEGRAM_ADMIN_CHAT_ID, TELEGRAM_BOT_TOKEN

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


async def send_telegram_message(
    chat_id: str,
    message: str,
    parse_mode: str = "HTML",
    disable_notification: bool = False,
) -> tuple[bool, Optional[str]]:
    """
    Send a text message to a chat

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not TELEGRAM_BOT_TOKEN:
        logger.debug("Telegram bot token not configured")
        return False, "Bot token not configured"

    if not chat_id:
        return False, "No chat id"

    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(
                f"{TELEGRAM_API_BASE}/bot{TELEGRAM_BOT_TOKEN}/sendMessage",
                json={
                    "chat_id": chat_id,
                    "text": message,
                    "parse_mode": parse_mode,
                    "disable_notification": disable_notification,
                },
            )
        data = response.json()
        if not data.get("ok"):
            logger.error(f"❌ Telegram send failed: {data.get('description')}")
            return False, data.get("description")
        return True, None
    except Exception as e:
        logger.error(f"❌ Telegram send error: {e}")
        return False, str(e)


async def send_admin_notification(message: str) -> bool:
    """Best-effort alert to the operations chat"""
    if not TELEGRAM_ADMIN_CHAT_ID:
        logger.debug("TELEGRAM_ADMIN_CHAT_ID not configured, skipping admin alert")
        return False
    success, _ = await send_telegram_message(TELEGRAM_ADMIN_CHAT_ID, message)
    return success


def _format_date(value: datetime) -> str:
    return f"{value.year}년 {value.month}월 {value.day}일"


def format_custom_message(title: str, content: str) -> str:
    return f"📬 <b>[Polarad] {title}</b>\n\n{content}"


def format_new_submission_message(client_name: str, user_name: str) -> str:
    return format_custom_message("새 자료 제출 시작", f"<b>클라이언트:</b> {client_name}\n<b>담당자:</b> {user_name}")


def format_contract_submitted_message(
    company_name: str, contract_number: str, package_name: str, monthly_fee: int, contract_period: int
) -> str:
    return (
        "📝 <b>[Polarad] 계약 신청 접수</b>\n\n"
        f"<b>회사명:</b> {company_name}\n"
        f"<b>계약번호:</b> {contract_number}\n"
        f"<b>패키지:</b> {package_name}\n"
        f"<b>월 이용료:</b> {monthly_fee:,}원\n"
        f"<b>계약기간:</b> {contract_period}개월"
    )


def format_new_inquiry_message(client_name: str, title: str, content: str, is_reply: bool = False) -> str:
    heading = "문의 답글" if is_reply else "새 문의"
    preview = content if len(content) <= 200 else f"{content[:200]}..."
    return f"💬 <b>[Polarad] {heading}</b>\n\n<b>클라이언트:</b> {client_name}\n<b>제목:</b> {title}\n\n{preview}"


def format_token_expiry_message(client_name: str, days_until_expiry: int, expires_at: datetime) -> str:
    if days_until_expiry <= 3:
        urgency_emoji, urgency_text = "🚨", "긴급"
    elif days_until_expiry <= 7:
        urgency_emoji, urgency_text = "⚠️", "경고"
    else:
        urgency_emoji, urgency_text = "📢", "알림"

    return (
        f"{urgency_emoji} <b>[Polarad] 토큰 만료 {urgency_text}</b>\n\n"
        f"<b>클라이언트:</b> {client_name}\n"
        f"<b>만료일:</b> {_format_date(expires_at)}\n"
        f"<b>남은 기간:</b> {days_until_expiry}일\n\n"
        "토큰이 만료되면 광고 데이터 수집이 중단됩니다.\n"
        "Meta 비즈니스 관리자에서 토큰을 갱신해 주세요."
    )


def format_auth_status_alert(client_name: str, status: str) -> str:
    reason = "재인증이 필요합니다" if status == "AUTH_REQUIRED" else "토큰 갱신에 실패했습니다"
    return f"🚨 <b>[Polarad] Meta 인증 오류</b>\n\n<b>클라이언트:</b> {client_name}\n<b>상태:</b> {status}\n{reason}"
