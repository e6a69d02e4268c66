"""Design service - Business logic for design review"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Design, User
from ...security_utils import strip_markup
from ...services import slack_service
from ..workflows.repository import WorkflowRepository
from ..workflows.service import user_actor
from .repository import DesignRepository

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_MESSAGE = "시안을 확정합니다."

# design approval only moves a workflow forward from these
PRE_ORDER_STATUSES = ("PENDING", "SUBMITTED", "IN_PROGRESS", "DESIGN_UPLOADED")

ACTION_MESSAGES = {
    "approve": "시안이 확정되었습니다",
    "request_revision": "수정 요청이 전달되었습니다",
    "feedback": "피드백이 등록되었습니다",
}


class DesignService:
    """Service layer for design review logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DesignRepository()
        self.workflow_repo = WorkflowRepository()

    def get_designs(self, user: User) -> list[Design]:
        return self.repo.get_designs(self.db, user.id)

    def _get_visible_design(self, design_id: int, user: User) -> Design:
        design = self.repo.get_design_by_id(self.db, design_id)
        if not design:
            raise HTTPException(status_code=404, detail="시안을 찾을 수 없습니다")
        if design.workflow.user_id != user.id:
            raise HTTPException(status_code=403, detail="접근 권한이 없습니다")
        if design.status == "DRAFT":
            raise HTTPException(status_code=403, detail="아직 공개되지 않은 시안입니다")
        return design

    def get_design(self, design_id: int, user: User) -> Design:
        """Get a design and mark admin feedback on it as read"""
        design = self._get_visible_design(design_id, user)
        if self.repo.mark_admin_feedback_read(self.db, design.id):
            self.db.commit()
            self.db.refresh(design)
        return design

    def perform_action(self, design_id: int, user: User, action: str, content: Optional[str] = None) -> Design:
        """Apply a review action to the latest version. Everything commits together."""
        design = self._get_visible_design(design_id, user)

        if action not in ACTION_MESSAGES:
            raise HTTPException(status_code=400, detail="잘못된 액션입니다")
        if design.status == "APPROVED":
            raise HTTPException(status_code=400, detail="이미 확정된 시안입니다")

        latest = self.repo.get_latest_version(self.db, design.id)
        if not latest:
            raise HTTPException(status_code=404, detail="시안 버전이 없습니다")

        content = strip_markup(content).strip() if content else ""

        if action == "approve":
            now = datetime.utcnow()
            design.status = "APPROVED"
            design.approved_at = now
            design.approved_version = design.current_version
            self.repo.add_feedback(self.db, latest.id, str(user.id), user.name, content or DEFAULT_APPROVAL_MESSAGE)

            workflow = design.workflow
            from_status = workflow.status
            if from_status in PRE_ORDER_STATUSES:
                updates = {"status": "ORDER_REQUESTED", "order_requested_at": now}
                if not self.workflow_repo.compare_and_set(self.db, workflow.id, from_status, workflow.version, updates):
                    self.db.rollback()
                    logger.warning(f"⚠️ Concurrent update rejected for workflow {workflow.id} (design {design.id} approve)")
                    raise HTTPException(status_code=400, detail="다른 요청으로 상태가 변경되었습니다. 새로고침 후 다시 시도해주세요")
                self.workflow_repo.add_log(
                    self.db, workflow.id, from_status, "ORDER_REQUESTED", user_actor(user), f"시안 v{design.current_version} 확정"
                )
            else:
                logger.info(f"Workflow {workflow.id} already {from_status}, left unchanged by design approval")

        elif action == "request_revision":
            if not content:
                raise HTTPException(status_code=400, detail="수정 요청 내용을 입력해주세요")
            design.status = "REVISION_REQUESTED"
            self.repo.add_feedback(self.db, latest.id, str(user.id), user.name, content)

        else:
            if not content:
                raise HTTPException(status_code=400, detail="피드백 내용을 입력해주세요")
            self.repo.add_feedback(self.db, latest.id, str(user.id), user.name, content)

        self.db.commit()
        self.db.refresh(design)
        logger.info(f"✅ Design {design.id} {action} by user {user.id} (status={design.status})")
        return design

    async def notify_slack(self, design: Design, user: User, action: str, content: Optional[str]) -> None:
        """Best-effort notice to the customer's Slack channel"""
        channel_id = self.repo.get_slack_channel_id(self.db, user.id)
        if not channel_id:
            return

        labels = {"approve": "✅ 시안 확정", "request_revision": "✏️ 수정 요청", "feedback": "💬 피드백"}
        text = f"{labels.get(action, action)} - {user.client_name} / {design.title} v{design.current_version}"
        if content:
            text += f"\n> {content}"

        try:
            await slack_service.post_message(channel_id, text)
        except Exception as e:
            logger.error(f"Failed to send design notification to Slack: {e}")
