"""
Shared pytest fixtures for the client portal test suite.

Provides:
    - app: FastAPI application (session-scoped)
    - _setup_db: Per-test table creation/teardown on in-memory SQLite (autouse)
    - db: SQLAlchemy session for arranging and inspecting rows
    - client: FastAPI TestClient without a session
    - external: recorder standing in for Slack, Telegram and R2 (autouse)
    - user / auth_client: a signed-up customer and a client logged in as them
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ["TELEGRAM_ADMIN_CHAT_ID"] = ""
os.environ["RESEND_API_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from portal.database import Base, SessionLocal, engine  # noqa: E402
from portal.main import app as _app  # noqa: E402
from portal.models import User  # noqa: E402

DEFAULT_PIN = "1234"


class ExternalRecorder:
    """Collects every call that would leave the process"""

    def __init__(self):
        self.channels_created = []
        self.sensitive_uploads = []
        self.summaries = []
        self.shared_urls = []
        self.slack_messages = []
        self.admin_messages = []
        self.r2_objects = {}
        self.channel_id = "C0TEST"
        self.slack_upload_ok = True


class FakeR2Client:
    def __init__(self, recorder: ExternalRecorder):
        self.recorder = recorder

    def put_object(self, Bucket, Key, Body, ContentType):
        self.recorder.r2_objects[Key] = {"bucket": Bucket, "body": Body, "content_type": ContentType}


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    return _app


@pytest.fixture(autouse=True)
def _setup_db():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture(autouse=True)
def external(monkeypatch):
    """Replace Slack, Telegram admin alerts and R2 with in-memory recorders."""
    from portal.routes import upload
    from portal.services import notification_service, slack_service

    recorder = ExternalRecorder()

    async def fake_create_channel(client_name, user_name, user_email, user_phone):
        recorder.channels_created.append(client_name)
        return recorder.channel_id

    async def fake_upload_sensitive(channel_id, content, filename, file_type, user_name):
        recorder.sensitive_uploads.append((channel_id, file_type, len(content)))
        return recorder.slack_upload_ok

    async def fake_summary(channel_id, client_name, fields):
        recorder.summaries.append((channel_id, fields))
        return True

    async def fake_share(channel_id, file_url, filename, title):
        recorder.shared_urls.append(file_url)
        return True

    async def fake_post(channel_id, text, blocks=None):
        recorder.slack_messages.append((channel_id, text))
        return True

    async def fake_admin(message):
        recorder.admin_messages.append(message)
        return True

    monkeypatch.setattr(slack_service, "create_submission_channel", fake_create_channel)
    monkeypatch.setattr(slack_service, "upload_sensitive_file", fake_upload_sensitive)
    monkeypatch.setattr(slack_service, "send_submission_summary", fake_summary)
    monkeypatch.setattr(slack_service, "upload_file_from_url", fake_share)
    monkeypatch.setattr(slack_service, "post_message", fake_post)
    monkeypatch.setattr(notification_service, "send_admin_notification", fake_admin)
    monkeypatch.setattr(upload, "get_r2_client", lambda: FakeR2Client(recorder))
    monkeypatch.setattr(upload, "R2_PUBLIC_URL", "https://files.polarad.test")
    return recorder


# ── Account helpers ──────────────────────────────────────────────────────


def signup_payload(**overrides):
    payload = {
        "clientName": "폴라애드 테스트",
        "name": "홍길동",
        "email": "owner@example.com",
        "phone": "010-1234-5678",
        "password": DEFAULT_PIN,
    }
    payload.update(overrides)
    return payload


def signup_and_login(test_client: TestClient, **overrides) -> dict:
    payload = signup_payload(**overrides)
    res = test_client.post("/api/auth/signup", json=payload)
    assert res.status_code == 201, res.json()
    res = test_client.post(
        "/api/auth/login",
        json={"clientName": payload["clientName"], "phone": payload["phone"], "password": payload["password"]},
    )
    assert res.status_code == 200, res.json()
    return res.json()["user"]


@pytest.fixture
def user(app):
    """A signed-up customer, returned as the User row id and payload."""
    test_client = TestClient(app)
    summary = signup_and_login(test_client)
    return {"id": summary["id"], "client": test_client}


@pytest.fixture
def auth_client(user):
    return user["client"]


@pytest.fixture
def other_client(app):
    """A second, unrelated customer."""
    test_client = TestClient(app)
    signup_and_login(test_client, clientName="다른 회사", email="other@example.com", phone="010-9999-0000")
    return test_client


@pytest.fixture
def user_row(db, user):
    return db.query(User).filter(User.id == user["id"]).first()
