"""
Slack Service
Per-customer submission channels on the Slack Web API.

- A channel named polarad-YYYYMMDD-<romanized client> is created once per customer
- Sensitive documents (ID card, bank book, business license) are posted from memory and never stored
- Ordinary files already in R2 are re-shared into the channel by URL
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from ..config import HTTP_TIMEOUT_SECONDS, SLACK_ADMIN_EMAILS, SLACK_BOT_TOKEN
from ..utils.romanize import SLACK_CHANNEL_MAX_LENGTH, to_slack_channel_name

logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api"

SENSITIVE_FILE_LABELS = {
    "businessLicense": "사업자등록증",
    "idCard": "신분증",
    "bankBook": "통장사본",
}


class SlackAPIError(Exception):
    """Slack answered with ok=false"""


async def _call(
    method: str,
    http_method: str = "POST",
    json_body: Optional[dict] = None,
    data: Optional[dict] = None,
    params: Optional[dict] = None,
) -> dict[str, Any]:
    if not SLACK_BOT_TOKEN:
        raise SlackAPIError("SLACK_BOT_TOKEN not configured")

    headers = {"Authorization": f"Bearer {SLACK_BOT_TOKEN}"}
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
        response = await client.request(
            http_method,
            f"{SLACK_API_BASE}/{method}",
            headers=headers,
            json=json_body,
            data=data,
            params=params,
        )
    response.raise_for_status()
    payload = response.json()
    if not payload.get("ok"):
        raise SlackAPIError(f"{method} failed: {payload.get('error', 'unknown_error')}")
    return payload


def generate_channel_name(client_name: str, today: Optional[datetime] = None) -> str:
    """polarad-20251210-<romanized client name>, capped at 80 characters"""
    date_str = (today or datetime.utcnow()).strftime("%Y%m%d")
    return f"polarad-{date_str}-{to_slack_channel_name(client_name)}"[:SLACK_CHANNEL_MAX_LENGTH]


async def find_channel_by_name(channel_name: str) -> Optional[str]:
    """Look a channel up by exact name, following pagination cursors"""
    cursor = None
    while True:
        params = {"types": "public_channel,private_channel", "limit": 1000, "exclude_archived": "true"}
        if cursor:
            params["cursor"] = cursor
        payload = await _call("conversations.list", http_method="GET", params=params)
        for channel in payload.get("channels", []):
            if channel.get("name") == channel_name:
                return channel.get("id")
        cursor = payload.get("response_metadata", {}).get("next_cursor")
        if not cursor:
            return None


async def find_user_by_email(email: str) -> Optional[str]:
    try:
        payload = await _call("users.lookupByEmail", http_method="GET", params={"email": email})
        return payload.get("user", {}).get("id")
    except Exception as e:
        logger.warning(f"⚠️ Slack user lookup failed for {email}: {e}")
        return None


async def create_submission_channel(
    client_name: str, user_name: str, user_email: str, user_phone: str
) -> Optional[str]:
    """
    Create (or reuse) the customer's submission channel and invite admins.

    Returns:
        Channel id, or None if Slack is unavailable
    """
    channel_name = generate_channel_name(client_name)
    logger.info(f"🔄 Ensuring Slack channel {channel_name}")

    try:
        existing = await find_channel_by_name(channel_name)
        if existing:
            logger.info(f"✅ Reusing Slack channel {channel_name} ({existing})")
            return existing

        payload = await _call("conversations.create", json_body={"name": channel_name, "is_private": False})
        channel_id = payload["channel"]["id"]
    except Exception as e:
        logger.error(f"❌ Failed to create Slack channel {channel_name}: {e}")
        return None

    invited = []
    for email in SLACK_ADMIN_EMAILS:
        slack_user_id = await find_user_by_email(email)
        if not slack_user_id:
            continue
        try:
            await _call("conversations.invite", json_body={"channel": channel_id, "users": slack_user_id})
            invited.append(slack_user_id)
        except Exception as e:
            logger.error(f"Failed to invite admin {email} to {channel_name}: {e}")

    mentions = " ".join(f"<@{uid}>" for uid in invited)
    blocks = [
        {"type": "header", "text": {"type": "plain_text", "text": "📋 새 클라이언트 자료 제출"}},
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*클라이언트명:*\n{client_name}"},
                {"type": "mrkdwn", "text": f"*담당자:*\n{user_name}"},
                {"type": "mrkdwn", "text": f"*연락처:*\n{user_phone}"},
                {"type": "mrkdwn", "text": f"*이메일:*\n{user_email}"},
            ],
        },
    ]
    if mentions:
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"👋 {mentions} 새로운 클라이언트 자료가 제출되었습니다!"}})
    await post_message(channel_id, "📋 새 클라이언트 자료 제출", blocks)

    logger.info(f"✅ Slack channel created: {channel_name} ({channel_id})")
    return channel_id


async def post_message(channel_id: str, text: str, blocks: Optional[list] = None) -> bool:
    try:
        body = {"channel": channel_id, "text": text}
        if blocks:
            body["blocks"] = blocks
        await _call("chat.postMessage", json_body=body)
        return True
    except Exception as e:
        logger.error(f"Failed to post Slack message to {channel_id}: {e}")
        return False


async def upload_file(
    channel_id: str,
    content: bytes,
    filename: str,
    title: str,
    initial_comment: Optional[str] = None,
) -> None:
    """
    Upload bytes to a channel with the external upload flow.
    Raises on failure; callers decide whether that is fatal.
    """
    ticket = await _call(
        "files.getUploadURLExternal",
        data={"filename": filename, "length": str(len(content))},
    )

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
        response = await client.post(ticket["upload_url"], content=content)
        response.raise_for_status()

    complete = {
        "files": json.dumps([{"id": ticket["file_id"], "title": title}]),
        "channel_id": channel_id,
    }
    if initial_comment:
        complete["initial_comment"] = initial_comment
    await _call("files.completeUploadExternal", data=complete)


async def upload_sensitive_file(
    channel_id: str, content: bytes, filename: str, file_type: str, user_name: str
) -> bool:
    """Post a sensitive document straight from memory. Nothing is written to disk or storage."""
    label = SENSITIVE_FILE_LABELS.get(file_type, file_type)
    try:
        await upload_file(
            channel_id,
            content,
            filename,
            title=f"🔒 {label}",
            initial_comment=f"🔒 *{label}* ({user_name}) - 민감정보로 서버에 저장되지 않습니다",
        )
        logger.info(f"✅ Sensitive document {file_type} delivered to Slack channel {channel_id}")
        return True
    except Exception as e:
        logger.error(f"❌ Sensitive document upload to Slack failed ({file_type}): {e}")
        return False


async def upload_file_from_url(channel_id: str, file_url: str, filename: str, title: str) -> bool:
    """Fetch an already-public file (R2) and re-post it to the channel"""
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(file_url)
            response.raise_for_status()
        await upload_file(channel_id, response.content, filename, title)
        return True
    except Exception as e:
        logger.error(f"Failed to share {file_url} to Slack: {e}")
        return False


async def send_submission_summary(channel_id: str, client_name: str, fields: dict[str, Optional[str]]) -> bool:
    """Post the submitted field values as one block message"""
    lines = [f"*{label}:* {value}" for label, value in fields.items() if value]
    blocks = [
        {"type": "header", "text": {"type": "plain_text", "text": f"✅ {client_name} 자료 제출 완료"}},
        {"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(lines) or "-"}},
    ]
    return await post_message(channel_id, f"✅ {client_name} 자료 제출 완료", blocks)
