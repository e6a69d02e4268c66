"""
Meta access token manager

ensure_valid_token() must run before any data collection. Tokens that are expired or
expire within the next hour are exchanged for a new long-lived token first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ... import config
from ...models_meta import Client, TokenRefreshLog
from ..notification_service import notify_admin
from ..telegram_service import format_auth_status_alert, format_token_expiry_message
from .encryption import decrypt, encrypt

logger = logging.getLogger(__name__)

REFRESH_BUFFER = timedelta(hours=1)
ALERT_STATUSES = ("AUTH_REQUIRED", "TOKEN_EXPIRED")


class MetaTokenError(Exception):
    """No usable access token could be obtained"""


@dataclass
class TokenRefreshResult:
    success: bool
    access_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    error: Optional[str] = None


class TokenManager:
    """Keeps each Client's Meta token fresh and records every refresh attempt"""

    def __init__(self, db: Session):
        self.db = db

    def _get_client(self, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(Client.id == client_id).first()

    async def ensure_valid_token(self, client_id: int) -> str:
        """
        Return a decrypted access token that is valid for at least another hour.

        Raises:
            MetaTokenError when the client is missing or the refresh fails
        """
        client = self._get_client(client_id)
        if not client:
            raise MetaTokenError(f"Client not found: {client_id}")

        now = datetime.utcnow()
        expires_at = client.token_expires_at
        is_expired = expires_at is None or expires_at < now
        is_expiring_soon = expires_at is None or expires_at < now + REFRESH_BUFFER

        if not is_expiring_soon and client.meta_access_token:
            try:
                access_token = decrypt(client.meta_access_token)
            except ValueError as e:
                logger.warning(f"⚠️ Stored access token for {client.client_name} is unreadable: {e}")
                access_token = None
            if access_token:
                logger.info(f"✅ Token is valid for client {client.client_name}")
                return access_token

        if is_expired:
            logger.info(f"⚠️ Token EXPIRED for {client.client_name}, refreshing...")
        else:
            logger.info(f"⏰ Token expiring soon for {client.client_name}, refreshing...")

        result = await self.refresh_token(client_id)
        if not result.success or not result.access_token:
            raise MetaTokenError(result.error or "Failed to refresh token")

        logger.info(f"✅ Token refreshed successfully for {client.client_name}")
        return result.access_token

    async def refresh_token(self, client_id: int) -> TokenRefreshResult:
        """Exchange the stored long-lived token for a fresh one"""
        client = self._get_client(client_id)
        if not client:
            return TokenRefreshResult(success=False, error="Client not found")

        if not client.meta_refresh_token:
            await self.update_auth_status(client_id, "AUTH_REQUIRED")
            return TokenRefreshResult(success=False, error="No refresh token found")

        try:
            refresh_token = decrypt(client.meta_refresh_token)
        except ValueError as e:
            logger.error(f"❌ Failed to decrypt refresh token for {client.client_name}: {e}")
            refresh_token = None
        if not refresh_token:
            await self.update_auth_status(client_id, "AUTH_REQUIRED")
            return TokenRefreshResult(success=False, error="Failed to decrypt refresh token")

        if not config.META_APP_ID or not config.META_APP_SECRET:
            return TokenRefreshResult(success=False, error="META_APP_ID or META_APP_SECRET not configured")

        try:
            async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as http:
                response = await http.get(
                    f"{config.META_GRAPH_URL}/oauth/access_token",
                    params={
                        "grant_type": "fb_exchange_token",
                        "client_id": config.META_APP_ID,
                        "client_secret": config.META_APP_SECRET,
                        "fb_exchange_token": refresh_token,
                    },
                )

            if response.status_code >= 400:
                try:
                    message = response.json().get("error", {}).get("message")
                except ValueError:
                    message = None
                error = f"Failed to refresh token: {message or response.reason_phrase}"
                self._log_refresh(client_id, success=False, error_message=error)
                await self.update_auth_status(client_id, "TOKEN_EXPIRED")
                return TokenRefreshResult(success=False, error=error)

            data = response.json()
            access_token = data.get("access_token")
            if not access_token:
                error = "No access_token in Meta API response"
                self._log_refresh(client_id, success=False, error_message=error)
                return TokenRefreshResult(success=False, error=error)

            expires_at = datetime.utcnow() + timedelta(seconds=int(data.get("expires_in", 0)))
            client.meta_access_token = encrypt(access_token)
            client.token_expires_at = expires_at
            client.auth_status = "ACTIVE"
            self.db.add(TokenRefreshLog(client_id=client_id, success=True, expires_at=expires_at))
            self.db.commit()

            logger.info(f"🔄 Token refreshed for {client.client_name}: expires at {expires_at.isoformat()}")
            return TokenRefreshResult(success=True, access_token=access_token, expires_at=expires_at)
        except Exception as e:
            self.db.rollback()
            self._log_refresh(client_id, success=False, error_message=str(e))
            await self.update_auth_status(client_id, "TOKEN_EXPIRED")
            logger.error(f"❌ Token refresh failed for client {client_id}: {e}")
            return TokenRefreshResult(success=False, error=str(e))

    def _log_refresh(self, client_id: int, success: bool, error_message: Optional[str] = None) -> None:
        self.db.add(TokenRefreshLog(client_id=client_id, success=success, error_message=error_message))
        self.db.commit()

    async def update_auth_status(self, client_id: int, status: str) -> None:
        """Persist the auth status; failure states also alert staff"""
        client = self._get_client(client_id)
        if not client:
            return

        client.auth_status = status
        self.db.commit()
        logger.info(f"🔐 Auth status for {client.client_name} set to {status}")

        if status in ALERT_STATUSES:
            await notify_admin(format_auth_status_alert(client.client_name, status))

    def check_expiring_tokens(self, days: int = 7) -> list[Client]:
        """Active clients whose token expires within the given number of days"""
        threshold = datetime.utcnow() + timedelta(days=days)
        return (
            self.db.query(Client)
            .filter(
                Client.is_active.is_(True),
                Client.token_expires_at.isnot(None),
                Client.token_expires_at <= threshold,
            )
            .order_by(Client.token_expires_at)
            .all()
        )

    async def notify_expiring_tokens(self, days: int = 7) -> int:
        """Send one expiry alert per client returned by check_expiring_tokens"""
        now = datetime.utcnow()
        sent = 0
        for client in self.check_expiring_tokens(days):
            days_left = max((client.token_expires_at - now).days, 0)
            if await notify_admin(format_token_expiry_message(client.client_name, days_left, client.token_expires_at)):
                sent += 1
        return sent
