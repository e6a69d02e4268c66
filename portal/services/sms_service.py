"""
SMS Service (Naver Cloud SENS)
Requests are signed with HMAC-SHA256 over "METHOD URI\\nTIMESTAMP\\nACCESS_KEY"
"""

import base64
import hashlib
import hmac
import logging
import time
from typing import Optional

import httpx

from ..config import HTTP_TIMEOUT_SECONDS, NCP_ACCESS_KEY, NCP_SECRET_KEY, NCP_SENDER_PHONE, NCP_SERVICE_ID
from ..utils.sanitization import digits_only

logger = logging.getLogger(__name__)

SENS_BASE_URL = "https://sens.apigw.ntruss.com"


class SMSClient:
    """Thin SENS v2 client. SMS holds 90 bytes, LMS up to 2000."""

    def __init__(
        self,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        service_id: Optional[str] = None,
        sender_phone: Optional[str] = None,
    ):
        self.access_key = access_key or NCP_ACCESS_KEY or ""
        self.secret_key = secret_key or NCP_SECRET_KEY or ""
        self.service_id = service_id or NCP_SERVICE_ID or ""
        self.sender_phone = sender_phone or NCP_SENDER_PHONE or ""

    def is_configured(self) -> bool:
        return bool(self.access_key and self.secret_key and self.service_id and self.sender_phone)

    @property
    def uri(self) -> str:
        return f"/sms/v2/services/{self.service_id}/messages"

    def make_signature(self, timestamp: str, method: str = "POST", uri: Optional[str] = None) -> str:
        message = f"{method} {uri or self.uri}\n{timestamp}\n{self.access_key}"
        digest = hmac.new(self.secret_key.encode(), message.encode(), hashlib.sha256).digest()
        return base64.b64encode(digest).decode()

    async def send_bulk(self, phones: list[str], content: str, sms_type: str = "LMS") -> dict:
        """
        Send one message to many recipients

        Returns:
            Dict with success, requestId/statusCode on success, error otherwise
        """
        if not self.is_configured():
            logger.error("❌ NCP SENS credentials not configured")
            return {"success": False, "error": "SMS not configured"}

        timestamp = str(int(time.time() * 1000))
        body = {
            "type": sms_type,
            "from": digits_only(self.sender_phone),
            "content": content,
            "messages": [{"to": digits_only(phone)} for phone in phones],
        }
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "x-ncp-apigw-timestamp": timestamp,
            "x-ncp-iam-access-key": self.access_key,
            "x-ncp-apigw-signature-v2": self.make_signature(timestamp),
        }

        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
                response = await client.post(f"{SENS_BASE_URL}{self.uri}", json=body, headers=headers)
            result = response.json()
        except Exception as e:
            logger.error(f"❌ SMS send error: {e}")
            return {"success": False, "error": str(e)}

        if response.status_code < 300 and result.get("statusCode") == "202":
            logger.info(f"📱 SMS sent to {len(phones)} recipient(s)")
            return {
                "success": True,
                "requestId": result.get("requestId"),
                "statusCode": result.get("statusCode"),
                "count": len(phones),
            }

        error = result.get("statusMessage") or result.get("error") or "Unknown error"
        logger.error(f"❌ SMS send failed: {error}")
        return {"success": False, "error": error, "statusCode": result.get("statusCode")}

    async def send(self, to: str, content: str, sms_type: str = "LMS") -> dict:
        return await self.send_bulk([to], content, sms_type)


_sms_client: Optional[SMSClient] = None


def get_sms_client() -> SMSClient:
    global _sms_client
    if _sms_client is None:
        _sms_client = SMSClient()
    return _sms_client


def contract_received_sms(company_name: str, contract_number: str) -> str:
    return (
        f"[Polarad] {company_name}님, 계약 신청이 접수되었습니다.\n"
        f"계약번호: {contract_number}\n"
        "검토 후 승인 결과를 안내해 드리겠습니다."
    )
