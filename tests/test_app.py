"""Application wiring: health checks, error envelopes and notification fan-out."""

import asyncio
from types import SimpleNamespace

from portal.services import notification_service


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").status_code == 200


def test_http_errors_use_error_envelope(client):
    res = client.get("/api/submissions")
    assert res.status_code == 401
    assert res.json() == {"error": "인증이 필요합니다"}


def test_malformed_body_is_bad_request(auth_client):
    res = auth_client.put("/api/submissions", json={"brandName": ["not", "a", "string"]})
    assert res.status_code == 400
    assert res.json() == {"error": "잘못된 요청입니다"}


def test_unknown_route(client):
    assert client.get("/api/nothing-here").status_code == 404


class TestSendNotification:
    def make_user(self, **overrides):
        values = {"id": 1, "phone": "010-1234-5678", "sms_consent": False, "telegram_enabled": False, "telegram_chat_id": None}
        values.update(overrides)
        return SimpleNamespace(**values)

    def test_email_failure_is_reported_not_raised(self, external):
        async def failing_email(**kwargs):
            raise RuntimeError("smtp down")

        result = asyncio.run(
            notification_service.send_notification(
                user=self.make_user(),
                notification_type="test",
                email_func=failing_email,
                sms_content="문자",
                admin_message="관리자 알림",
            )
        )
        assert result["email_sent"] is False
        assert result["email_error"] == "smtp down"
        # No consent, no SMS
        assert result["sms_sent"] is False
        assert result["sms_error"] is None
        assert result["admin_notified"] is True
        assert external.admin_messages == ["관리자 알림"]

    def test_customer_telegram_needs_opt_in(self, monkeypatch):
        sent = []

        async def fake_telegram(chat_id, message):
            sent.append(chat_id)
            return True, None

        monkeypatch.setattr(notification_service, "send_telegram_message", fake_telegram)
        asyncio.run(
            notification_service.send_notification(
                user=self.make_user(), notification_type="test", telegram_message="안녕하세요"
            )
        )
        asyncio.run(
            notification_service.send_notification(
                user=self.make_user(telegram_enabled=True, telegram_chat_id="42"),
                notification_type="test",
                telegram_message="안녕하세요",
            )
        )
        assert sent == ["42"]
