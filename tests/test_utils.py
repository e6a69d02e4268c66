"""Helpers: romanization, input cleanup and request signing."""

import asyncio
import base64
import hashlib
import hmac
from datetime import datetime

import pytest

from portal.security_utils import sanitize_filename, strip_markup
from portal.services.slack_service import generate_channel_name
from portal.services.sms_service import SMSClient
from portal.utils.romanize import korean_to_roman, to_slack_channel_name
from portal.utils.sanitization import clean_optional, digits_only, get_client_ip


class TestRomanize:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("한글", "hangeul"),
            ("폴라애드", "polraaedeu"),
            ("ABC 123", "ABC 123"),
        ],
    )
    def test_korean_to_roman(self, text, expected):
        assert korean_to_roman(text) == expected

    def test_slack_channel_name_is_lowercase_ascii(self):
        assert to_slack_channel_name("폴라애드 Test!") == "polraaedeu_test"

    def test_slack_channel_name_is_capped(self):
        assert len(to_slack_channel_name("가" * 100)) == 80

    def test_generated_channel_name(self):
        assert generate_channel_name("폴라애드", datetime(2025, 12, 10)) == "polarad-20251210-polraaedeu"


class TestSanitization:
    def test_clean_optional(self):
        assert clean_optional("  값  ") == "값"
        assert clean_optional("   ") is None
        assert clean_optional(None) is None

    def test_digits_only(self):
        assert digits_only("010-1234-5678") == "01012345678"
        assert digits_only(None) == ""

    def test_strip_markup(self):
        assert strip_markup("<b>굵게</b> 글씨") == "굵게 글씨"

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("../../etc/passwd", "passwd"),
            ("my photo", "my_photo"),
        ],
    )
    def test_sanitize_filename(self, name, expected):
        assert sanitize_filename(name) == expected

    def test_sanitize_filename_never_empty(self):
        assert sanitize_filename("...").startswith("file_")
        assert sanitize_filename("사진").startswith("file_")

    def test_client_ip(self):
        assert get_client_ip({"x-forwarded-for": "1.2.3.4, 10.0.0.1"}) == "1.2.3.4"
        assert get_client_ip({"x-real-ip": "5.6.7.8"}) == "5.6.7.8"
        assert get_client_ip({}) == "unknown"


class TestSMSSignature:
    def test_signature_covers_method_uri_timestamp_and_key(self):
        client = SMSClient(access_key="access", secret_key="secret", service_id="svc", sender_phone="02-000-0000")
        message = "POST /sms/v2/services/svc/messages\n1700000000000\naccess"
        expected = base64.b64encode(hmac.new(b"secret", message.encode(), hashlib.sha256).digest()).decode()
        assert client.make_signature("1700000000000") == expected
        assert client.make_signature("1700000000001") != expected

    def test_unconfigured_client_does_not_send(self, monkeypatch):
        client = SMSClient(access_key="access", secret_key="secret", service_id="svc", sender_phone="02-000-0000")
        monkeypatch.setattr(client, "sender_phone", "")
        result = asyncio.run(client.send("010-1234-5678", "안녕하세요"))
        assert result == {"success": False, "error": "SMS not configured"}
