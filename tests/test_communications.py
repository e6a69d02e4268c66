"""Support threads between customers and staff."""

from datetime import datetime, timedelta

from portal.models import CommunicationMessage, CommunicationThread


def open_thread(test_client, title="홈페이지 문의", content="메뉴 구성을 바꾸고 싶어요", **extra) -> dict:
    res = test_client.post("/api/communications", json={"title": title, "content": content, **extra})
    assert res.status_code == 201, res.json()
    return res.json()["thread"]


def add_admin_reply(db, thread_id, content="확인했습니다") -> None:
    db.add(
        CommunicationMessage(
            thread_id=thread_id,
            author_type="admin",
            author_id="staff",
            author_name="담당자",
            content=content,
            is_read_by_admin=True,
            is_read_by_user=False,
        )
    )
    db.commit()


class TestCreateThread:
    def test_creates_thread_with_first_message(self, auth_client, external):
        res = auth_client.post(
            "/api/communications",
            json={"title": "홈페이지 문의", "content": "<script>x</script>메뉴 변경", "attachments": ["https://f/1.png"]},
        )
        assert res.status_code == 201
        body = res.json()
        assert body["message"] == "문의가 등록되었습니다"
        thread = body["thread"]
        assert thread["status"] == "OPEN"
        assert thread["category"] == "일반"
        assert len(thread["messages"]) == 1
        message = thread["messages"][0]
        assert message["authorType"] == "user"
        assert "<script>" not in message["content"]
        assert message["attachments"] == ["https://f/1.png"]
        assert message["isReadByUser"] is True
        assert message["isReadByAdmin"] is False

        assert len(external.admin_messages) == 1
        assert "홈페이지 문의" in external.admin_messages[0]

    def test_keeps_given_category(self, auth_client):
        assert open_thread(auth_client, category="디자인")["category"] == "디자인"

    def test_title_and_content_required(self, auth_client, db):
        assert auth_client.post("/api/communications", json={"title": "", "content": "내용"}).status_code == 400
        assert auth_client.post("/api/communications", json={"title": "제목", "content": "  "}).status_code == 400
        assert db.query(CommunicationThread).count() == 0


class TestReadThreads:
    def test_list_orders_by_latest_activity(self, auth_client, db):
        older = open_thread(auth_client, title="첫 문의")
        newer = open_thread(auth_client, title="두번째 문의")
        row = db.query(CommunicationThread).filter(CommunicationThread.id == older["id"]).one()
        row.last_reply_at = datetime.utcnow() + timedelta(minutes=5)
        db.commit()

        threads = auth_client.get("/api/communications").json()["threads"]
        assert [t["id"] for t in threads] == [older["id"], newer["id"]]
        assert threads[0]["messageCount"] == 1

    def test_unread_admin_reply_is_flagged_and_marked_read(self, auth_client, db):
        thread = open_thread(auth_client)
        add_admin_reply(db, thread["id"])

        summary = auth_client.get("/api/communications").json()["threads"][0]
        assert summary["hasUnreadAdminMessage"] is True
        assert summary["lastMessage"]["authorType"] == "admin"

        detail = auth_client.get(f"/api/communications/{thread['id']}").json()["thread"]
        admin_message = [m for m in detail["messages"] if m["authorType"] == "admin"][0]
        assert admin_message["isReadByUser"] is True
        assert admin_message["readByUserAt"] is not None

        summary = auth_client.get("/api/communications").json()["threads"][0]
        assert summary["hasUnreadAdminMessage"] is False

    def test_foreign_thread_looks_missing(self, auth_client, other_client):
        thread = open_thread(auth_client)
        assert other_client.get(f"/api/communications/{thread['id']}").status_code == 404
        assert other_client.get("/api/communications").json()["threads"] == []


class TestReply:
    def test_reply_reopens_thread(self, auth_client, db, external):
        thread = open_thread(auth_client)
        row = db.query(CommunicationThread).filter(CommunicationThread.id == thread["id"]).one()
        row.status = "IN_PROGRESS"
        db.commit()

        res = auth_client.post(f"/api/communications/{thread['id']}/messages", json={"content": "추가 질문입니다"})
        assert res.status_code == 201
        assert res.json()["message"]["content"] == "추가 질문입니다"

        db.expire_all()
        assert db.query(CommunicationThread).filter(CommunicationThread.id == thread["id"]).one().status == "OPEN"
        assert len(external.admin_messages) == 2

    def test_resolved_thread_rejects_replies(self, auth_client, db):
        thread = open_thread(auth_client)
        row = db.query(CommunicationThread).filter(CommunicationThread.id == thread["id"]).one()
        row.status = "RESOLVED"
        db.commit()

        res = auth_client.post(f"/api/communications/{thread['id']}/messages", json={"content": "다시 열어주세요"})
        assert res.status_code == 400
        assert db.query(CommunicationMessage).filter(CommunicationMessage.thread_id == thread["id"]).count() == 1

    def test_empty_reply_is_rejected(self, auth_client):
        thread = open_thread(auth_client)
        res = auth_client.post(f"/api/communications/{thread['id']}/messages", json={"content": ""})
        assert res.status_code == 400

    def test_reply_to_foreign_thread(self, auth_client, other_client):
        thread = open_thread(auth_client)
        res = other_client.post(f"/api/communications/{thread['id']}/messages", json={"content": "안녕하세요"})
        assert res.status_code == 404
