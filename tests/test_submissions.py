"""Submission intake: uploads, receipts, completion, edit-mode lock and Slack channel."""

import io

import pytest
from PIL import Image

from portal.models import Submission
from portal.security_utils import generate_receipt_token

SENSITIVE_TYPES = ("businessLicense", "idCard", "bankBook")


def png_bytes(size=(32, 32)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def upload(test_client, file_type, content=b"%PDF-1.4 test", filename="doc.pdf", content_type="application/pdf"):
    return test_client.post(
        "/api/upload",
        files={"file": (filename, content, content_type)},
        data={"fileType": file_type},
    )


def receipts_for(test_client, file_types=SENSITIVE_TYPES) -> list[str]:
    receipts = []
    for file_type in file_types:
        res = upload(test_client, file_type)
        assert res.status_code == 200, res.json()
        receipts.append(res.json()["receipt"])
    return receipts


def ordinary_fields(photo_url="https://files.polarad.test/uploads/1/photo.webp") -> dict:
    return {
        "profilePhoto": photo_url,
        "brandName": "폴라애드",
        "contactEmail": "hello@polarad.co.kr",
        "contactPhone": "02-1234-5678",
        "bankAccount": "국민 123-456-789",
    }


def get_submission(db, user_id) -> Submission:
    db.expire_all()
    return db.query(Submission).filter(Submission.user_id == user_id).one()


class TestUpload:
    def test_image_is_compressed_and_stored(self, auth_client, external, user):
        res = upload(auth_client, "profilePhoto", png_bytes(), "My Photo.png", "image/png")
        assert res.status_code == 200
        body = res.json()
        assert body["isSensitive"] is False
        assert body["key"].startswith(f"uploads/{user['id']}/")
        assert body["key"].endswith("-My_Photo.webp")
        assert body["publicUrl"] == f"https://files.polarad.test/{body['key']}"
        assert body["url"] == body["publicUrl"]
        assert external.r2_objects[body["key"]]["content_type"] == "image/webp"

    def test_unreadable_image_keeps_original_bytes(self, auth_client, external):
        res = upload(auth_client, "profilePhoto", b"not really a png", "broken.png", "image/png")
        assert res.status_code == 200
        stored = external.r2_objects[res.json()["key"]]
        assert stored["body"] == b"not really a png"
        assert stored["content_type"] == "image/png"

    def test_pdf_is_stored_as_is(self, auth_client, external):
        res = upload(auth_client, "portfolio")
        assert res.status_code == 200
        assert res.json()["key"].endswith(".pdf")

    def test_rejects_unsupported_type(self, auth_client):
        res = upload(auth_client, "portfolio", b"GIF89a", "anim.gif", "image/gif")
        assert res.status_code == 400

    def test_rejects_oversized_file(self, auth_client):
        res = upload(auth_client, "portfolio", b"0" * (10 * 1024 * 1024 + 1))
        assert res.status_code == 400
        assert "10MB" in res.json()["error"]

    def test_requires_file_type(self, auth_client):
        res = auth_client.post("/api/upload", files={"file": ("doc.pdf", b"%PDF", "application/pdf")})
        assert res.status_code == 400

    def test_requires_login(self, client):
        assert upload(client, "portfolio").status_code == 401


class TestSensitiveUpload:
    def test_goes_to_slack_only_and_returns_receipt(self, auth_client, external, db, user):
        res = upload(auth_client, "idCard")
        assert res.status_code == 200
        body = res.json()
        assert body["isSensitive"] is True
        assert body["fileType"] == "idCard"
        assert body["receipt"]
        assert "url" not in body

        assert external.r2_objects == {}
        assert external.sensitive_uploads == [("C0TEST", "idCard", len(b"%PDF-1.4 test"))]

        # The channel is created ahead of completion and remembered
        assert external.channels_created == ["폴라애드 테스트"]
        assert get_submission(db, user["id"]).slack_channel_id == "C0TEST"

    def test_channel_is_created_once(self, auth_client, external):
        receipts_for(auth_client)
        assert len(external.channels_created) == 1
        assert len(external.sensitive_uploads) == 3

    def test_slack_failure_is_server_error(self, auth_client, external):
        external.slack_upload_ok = False
        res = upload(auth_client, "bankBook")
        assert res.status_code == 500
        assert "receipt" not in res.json()


class TestSaveSubmission:
    def test_get_returns_empty_draft_after_signup(self, auth_client):
        res = auth_client.get("/api/submissions")
        assert res.status_code == 200
        submission = res.json()["submission"]
        assert submission["status"] == "DRAFT"
        assert submission["isLocked"] is False
        assert submission["sensitiveDocuments"] == {}

    def test_uploaded_public_url_round_trips(self, auth_client):
        uploaded = upload(auth_client, "profilePhoto", png_bytes(), "face.png", "image/png").json()
        res = auth_client.put("/api/submissions", json={"profilePhoto": uploaded["publicUrl"]})
        assert res.status_code == 200
        assert auth_client.get("/api/submissions").json()["submission"]["profilePhoto"] == uploaded["publicUrl"]

    def test_partial_save_stays_draft(self, auth_client):
        res = auth_client.put("/api/submissions", json={"brandName": "  폴라애드  "})
        body = res.json()
        assert body["submission"]["status"] == "DRAFT"
        assert body["submission"]["brandName"] == "폴라애드"
        assert body["submission"]["isComplete"] is False

    def test_fields_without_receipts_are_not_complete(self, auth_client):
        res = auth_client.put("/api/submissions", json=ordinary_fields())
        submission = res.json()["submission"]
        assert submission["isComplete"] is False
        assert submission["status"] == "DRAFT"
        assert submission["isLocked"] is False

    def test_first_save_notifies_staff_once(self, auth_client, external):
        auth_client.put("/api/submissions", json={"brandName": "폴라애드"})
        auth_client.put("/api/submissions", json={"contactEmail": "hello@polarad.co.kr"})
        assert len(external.admin_messages) == 1
        assert "폴라애드 테스트" in external.admin_messages[0]

    def test_complete_save(self, auth_client, external, db, user):
        receipts = receipts_for(auth_client)
        res = auth_client.put("/api/submissions", json={**ordinary_fields(), "sensitiveReceipts": receipts})
        assert res.status_code == 200
        submission = res.json()["submission"]
        assert submission["isComplete"] is True
        assert submission["status"] == "SUBMITTED"
        assert submission["isLocked"] is True
        assert set(submission["sensitiveDocuments"]) == set(SENSITIVE_TYPES)
        assert submission["submittedAt"] is not None
        assert submission["completedAt"] is not None

        row = get_submission(db, user["id"])
        assert row.slack_channel_id == "C0TEST"
        assert len(external.summaries) == 1
        assert external.summaries[0][1]["브랜드명"] == "폴라애드"
        assert external.shared_urls == ["https://files.polarad.test/uploads/1/photo.webp"]

    def test_receipts_accumulate_across_saves(self, auth_client):
        first = receipts_for(auth_client, ("businessLicense",))
        auth_client.put("/api/submissions", json={**ordinary_fields(), "sensitiveReceipts": first})
        rest = receipts_for(auth_client, ("idCard", "bankBook"))
        res = auth_client.put("/api/submissions", json={"sensitiveReceipts": rest})
        assert res.json()["submission"]["isComplete"] is True

    def test_foreign_receipt_is_rejected(self, auth_client):
        forged = generate_receipt_token(9999, "idCard")
        res = auth_client.put("/api/submissions", json={"sensitiveReceipts": [forged]})
        assert res.status_code == 400

    def test_tampered_receipt_is_rejected(self, auth_client):
        receipt = receipts_for(auth_client, ("idCard",))[0]
        res = auth_client.put("/api/submissions", json={"sensitiveReceipts": [receipt + "x"]})
        assert res.status_code == 400

    def test_unknown_file_type_receipt_is_rejected(self, auth_client, user):
        receipt = generate_receipt_token(user["id"], "profilePhoto")
        res = auth_client.put("/api/submissions", json={"sensitiveReceipts": [receipt]})
        assert res.status_code == 400

    def test_expired_receipt_is_rejected(self, auth_client, monkeypatch):
        from portal.domain.submissions import service

        receipt = receipts_for(auth_client, ("idCard",))[0]
        original = service.verify_receipt_token
        monkeypatch.setattr(service, "verify_receipt_token", lambda token: original(token, max_age=-1))
        res = auth_client.put("/api/submissions", json={"sensitiveReceipts": [receipt]})
        assert res.status_code == 400


class TestEditMode:
    @pytest.fixture
    def completed(self, auth_client):
        receipts = receipts_for(auth_client)
        res = auth_client.put("/api/submissions", json={**ordinary_fields(), "sensitiveReceipts": receipts})
        assert res.json()["submission"]["isLocked"] is True
        return auth_client

    def test_locked_submission_rejects_changes(self, completed):
        res = completed.put("/api/submissions", json={"brandName": "바뀐 이름"})
        assert res.status_code == 400
        assert completed.get("/api/submissions").json()["submission"]["brandName"] == "폴라애드"

    def test_edit_mode_unlocks_until_next_complete_save(self, completed, external):
        res = completed.post("/api/submissions/edit-mode")
        assert res.status_code == 200
        assert res.json()["submission"]["isLocked"] is False

        res = completed.put("/api/submissions", json={"brandName": "새 브랜드"})
        assert res.status_code == 200
        submission = res.json()["submission"]
        assert submission["brandName"] == "새 브랜드"
        assert submission["isLocked"] is True

        # Completion side effects ran only the first time
        assert len(external.channels_created) == 1
        assert len(external.summaries) == 1

    def test_missing_channel_is_retried_on_next_complete_save(self, auth_client, external, db, user):
        receipts = receipts_for(auth_client)
        row = get_submission(db, user["id"])
        row.slack_channel_id = None
        db.commit()
        external.channel_id = None

        res = auth_client.put("/api/submissions", json={**ordinary_fields(), "sensitiveReceipts": receipts})
        assert res.json()["submission"]["isComplete"] is True
        assert external.summaries == []

        external.channel_id = "C0RETRY"
        auth_client.post("/api/submissions/edit-mode")
        res = auth_client.put("/api/submissions", json={"brandName": "폴라애드"})
        assert res.status_code == 200
        assert [channel for channel, _ in external.summaries] == ["C0RETRY"]
        assert get_submission(db, user["id"]).slack_channel_id == "C0RETRY"

    def test_reviewed_submission_cannot_be_unlocked(self, completed, db, user):
        row = get_submission(db, user["id"])
        row.status = "APPROVED"
        db.commit()

        res = completed.post("/api/submissions/edit-mode")
        assert res.status_code == 400

    def test_approved_status_is_preserved(self, completed, db, user):
        completed.post("/api/submissions/edit-mode")
        row = get_submission(db, user["id"])
        row.status = "APPROVED"
        db.commit()

        res = completed.put("/api/submissions", json={"additionalNote": "추가 메모"})
        assert res.json()["submission"]["status"] == "APPROVED"
