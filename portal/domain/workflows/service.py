"""Workflow service - Business logic for workflow operations"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import DIGITAL_WORKFLOW_TYPES, User, Workflow
from ...security_utils import strip_markup
from .repository import WorkflowRepository

logger = logging.getLogger(__name__)

ACTIONABLE_STATUS = "DESIGN_UPLOADED"


def user_actor(user: User) -> str:
    return f"user:{user.id}"


class WorkflowService:
    """Service layer for workflow business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WorkflowRepository()

    def get_workflows(self, user: User) -> list[Workflow]:
        return self.repo.get_workflows(self.db, user.id)

    def get_workflow(self, workflow_id: int, user: User) -> Workflow:
        """Get a workflow owned by the user"""
        workflow = self.repo.get_workflow_by_id(self.db, workflow_id)
        if not workflow:
            raise HTTPException(status_code=404, detail="워크플로우를 찾을 수 없습니다")
        if workflow.user_id != user.id:
            raise HTTPException(status_code=403, detail="접근 권한이 없습니다")
        return workflow

    def apply_action(self, workflow_id: int, user: User, action: str, revision_note: Optional[str] = None) -> Workflow:
        """
        approve: digital deliverables finish immediately, printed ones go to order request.
        revision: back to IN_PROGRESS with the customer's note.
        Both are only allowed while the design is waiting for customer review.
        """
        workflow = self.get_workflow(workflow_id, user)

        if action not in ("approve", "revision"):
            raise HTTPException(status_code=400, detail="잘못된 액션입니다")

        if workflow.status != ACTIONABLE_STATUS:
            raise HTTPException(status_code=400, detail="시안 확인 단계에서만 가능합니다")

        now = datetime.utcnow()
        from_status = workflow.status

        if action == "approve":
            if workflow.type in DIGITAL_WORKFLOW_TYPES:
                updates = {"status": "COMPLETED", "completed_at": now}
            else:
                updates = {"status": "ORDER_REQUESTED", "order_requested_at": now}
            note = "고객 시안 승인"
        else:
            revision_note = strip_markup(revision_note).strip() if revision_note else ""
            if not revision_note:
                raise HTTPException(status_code=400, detail="수정 요청 내용을 입력해주세요")
            updates = {
                "status": "IN_PROGRESS",
                "revision_count": workflow.revision_count + 1,
                "revision_note": revision_note,
                "design_started_at": now,
            }
            note = f"수정 요청: {revision_note}"

        if not self.repo.compare_and_set(self.db, workflow.id, from_status, workflow.version, updates):
            self.db.rollback()
            logger.warning(f"⚠️ Concurrent update rejected for workflow {workflow.id} ({action})")
            raise HTTPException(status_code=400, detail="다른 요청으로 상태가 변경되었습니다. 새로고침 후 다시 시도해주세요")

        self.repo.add_log(self.db, workflow.id, from_status, updates["status"], user_actor(user), note)
        self.db.commit()
        self.db.refresh(workflow)

        logger.info(f"✅ Workflow {workflow.id} ({workflow.type}) {from_status} -> {workflow.status} by user {user.id}")
        return workflow
