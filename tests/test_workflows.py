"""Customer actions on production workflows."""

import pytest
from fastapi import HTTPException

from portal.domain.workflows.service import WorkflowService
from portal.models import User, Workflow, WorkflowLog


def workflow_of(db, user_id, workflow_type, status=None) -> Workflow:
    workflow = db.query(Workflow).filter(Workflow.user_id == user_id, Workflow.type == workflow_type).one()
    if status:
        workflow.status = status
        db.commit()
    return workflow


class TestListWorkflows:
    def test_signup_creates_default_workflows(self, auth_client):
        res = auth_client.get("/api/user/workflows")
        assert res.status_code == 200
        types = [wf["type"] for wf in res.json()["workflows"]]
        assert types == ["NAMECARD", "NAMETAG", "CONTRACT", "ENVELOPE", "WEBSITE"]
        assert {wf["status"] for wf in res.json()["workflows"]} == {"PENDING"}

    def test_detail_of_foreign_workflow_is_forbidden(self, db, user, other_client):
        workflow = workflow_of(db, user["id"], "NAMECARD")
        assert other_client.get(f"/api/user/workflows/{workflow.id}").status_code == 403

    def test_missing_workflow(self, auth_client):
        assert auth_client.get("/api/user/workflows/9999").status_code == 404


class TestApprove:
    def test_printed_item_moves_to_order_request(self, auth_client, db, user):
        workflow = workflow_of(db, user["id"], "NAMECARD", "DESIGN_UPLOADED")
        res = auth_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "approve"})
        assert res.status_code == 200
        body = res.json()["workflow"]
        assert body["status"] == "ORDER_REQUESTED"
        assert body["orderRequestedAt"] is not None
        assert body["logs"][0]["fromStatus"] == "DESIGN_UPLOADED"
        assert body["logs"][0]["toStatus"] == "ORDER_REQUESTED"
        assert body["logs"][0]["changedBy"] == f"user:{user['id']}"

    def test_digital_item_completes(self, auth_client, db, user):
        workflow = workflow_of(db, user["id"], "WEBSITE", "DESIGN_UPLOADED")
        res = auth_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "approve"})
        body = res.json()["workflow"]
        assert body["status"] == "COMPLETED"
        assert body["completedAt"] is not None

    @pytest.mark.parametrize("status", ["PENDING", "IN_PROGRESS", "ORDER_REQUESTED", "COMPLETED"])
    def test_only_while_design_uploaded(self, auth_client, db, user, status):
        workflow = workflow_of(db, user["id"], "NAMECARD", status)
        res = auth_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "approve"})
        assert res.status_code == 400
        db.expire_all()
        assert db.query(WorkflowLog).count() == 0

    def test_foreign_workflow_is_forbidden(self, db, user, other_client):
        workflow = workflow_of(db, user["id"], "NAMECARD", "DESIGN_UPLOADED")
        res = other_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "approve"})
        assert res.status_code == 403

    def test_unknown_action(self, auth_client, db, user):
        workflow = workflow_of(db, user["id"], "NAMECARD", "DESIGN_UPLOADED")
        res = auth_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "ship"})
        assert res.status_code == 400


class TestRevision:
    def test_returns_to_in_progress_with_note(self, auth_client, db, user):
        workflow = workflow_of(db, user["id"], "ENVELOPE", "DESIGN_UPLOADED")
        res = auth_client.patch(
            f"/api/user/workflows/{workflow.id}",
            json={"action": "revision", "revisionNote": "<b>로고</b>를 더 크게 해주세요"},
        )
        assert res.status_code == 200
        body = res.json()["workflow"]
        assert body["status"] == "IN_PROGRESS"
        assert body["revisionCount"] == 1
        assert body["revisionNote"] == "로고를 더 크게 해주세요"

    def test_requires_note(self, auth_client, db, user):
        workflow = workflow_of(db, user["id"], "ENVELOPE", "DESIGN_UPLOADED")
        res = auth_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "revision", "revisionNote": "  "})
        assert res.status_code == 400


class TestConcurrentTransition:
    def test_stale_version_is_rejected(self, db, user):
        workflow = workflow_of(db, user["id"], "NAMECARD", "DESIGN_UPLOADED")
        owner = db.query(User).filter(User.id == user["id"]).one()

        # Another request bumps the row behind this session's back
        db.query(Workflow).filter(Workflow.id == workflow.id).update(
            {"version": workflow.version + 1}, synchronize_session=False
        )

        with pytest.raises(HTTPException) as exc_info:
            WorkflowService(db).apply_action(workflow.id, owner, "approve")
        assert exc_info.value.status_code == 400

        db.expire_all()
        assert db.query(Workflow).filter(Workflow.id == workflow.id).one().status == "DESIGN_UPLOADED"
        assert db.query(WorkflowLog).count() == 0

    def test_second_approval_is_rejected(self, auth_client, db, user):
        workflow = workflow_of(db, user["id"], "NAMECARD", "DESIGN_UPLOADED")
        first = auth_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "approve"})
        second = auth_client.patch(f"/api/user/workflows/{workflow.id}", json={"action": "approve"})
        assert first.status_code == 200
        assert second.status_code == 400
