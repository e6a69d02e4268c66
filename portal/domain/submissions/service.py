"""Submission service - Business logic for onboarding material intake"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import SENSITIVE_FILE_TYPES, Submission, User
from ...security_utils import verify_receipt_token
from ...services import slack_service
from ...services.notification_service import notify_admin
from ...services.telegram_service import format_new_submission_message
from ...utils.sanitization import clean_optional
from .repository import SubmissionRepository
from .schemas import SubmissionUpdate

logger = logging.getLogger(__name__)

# request field -> model attribute
ORDINARY_FIELDS = {
    "profilePhoto": "profile_photo",
    "brandName": "brand_name",
    "contactEmail": "contact_email",
    "contactPhone": "contact_phone",
    "bankAccount": "bank_account",
    "deliveryAddress": "delivery_address",
    "websiteStyle": "website_style",
    "websiteColor": "website_color",
    "blogDesignNote": "blog_design_note",
    "additionalNote": "additional_note",
}

REQUIRED_FIELDS = ("profile_photo", "brand_name", "contact_email", "contact_phone", "bank_account")

FROZEN_STATUSES = ("APPROVED", "REJECTED")

SUMMARY_LABELS = {
    "brand_name": "브랜드명",
    "contact_email": "대표 이메일",
    "contact_phone": "대표 번호",
    "bank_account": "계좌 정보",
    "delivery_address": "배송 주소",
    "website_style": "홈페이지 스타일",
    "website_color": "홈페이지 색상",
    "blog_design_note": "블로그 디자인 요청",
    "additional_note": "추가 요청사항",
}


@dataclass
class SaveResult:
    submission: Submission
    first_save: bool
    publish_to_slack: bool


def is_submission_complete(submission: Submission) -> bool:
    """Every required ordinary field is filled and every sensitive document was delivered"""
    delivered = submission.sensitive_documents or {}
    return all(getattr(submission, field) for field in REQUIRED_FIELDS) and all(
        file_type in delivered for file_type in SENSITIVE_FILE_TYPES
    )


def _is_empty(submission: Submission) -> bool:
    return not any(getattr(submission, attr) for attr in ORDINARY_FIELDS.values()) and not submission.sensitive_documents


class SubmissionService:
    """Service layer for submission business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SubmissionRepository()

    def get_submission(self, user: User) -> Optional[Submission]:
        return self.repo.get_by_user(self.db, user.id)

    def _get_or_create(self, user: User) -> Submission:
        submission = self.repo.get_by_user(self.db, user.id)
        if not submission:
            submission = self.repo.create_empty(self.db, user.id)
            self.db.flush()
        return submission

    def _verify_receipts(self, user: User, receipts: list[str]) -> dict[str, str]:
        """Validate receipts and return {fileType: delivered-at} for each one"""
        delivered = {}
        for token in receipts:
            data = verify_receipt_token(token)
            if not data or data.get("userId") != user.id or data.get("fileType") not in SENSITIVE_FILE_TYPES:
                logger.warning(f"❌ Rejected sensitive document receipt for user {user.id}")
                raise HTTPException(status_code=400, detail="유효하지 않은 업로드 확인 정보입니다. 파일을 다시 업로드해주세요")
            delivered[data["fileType"]] = datetime.utcnow().isoformat()
        return delivered

    def update_submission(self, user: User, data: SubmissionUpdate) -> SaveResult:
        """
        Upsert the user's submission.

        Completed submissions are locked; they only accept writes after edit mode
        is enabled. Status follows completeness unless staff already approved or rejected.
        """
        submission = self._get_or_create(user)

        if submission.is_locked:
            raise HTTPException(status_code=400, detail="제출된 자료는 수정 모드에서만 변경할 수 있습니다")

        delivered = self._verify_receipts(user, data.sensitiveReceipts)
        first_save = _is_empty(submission)

        for request_field, attr in ORDINARY_FIELDS.items():
            value = getattr(data, request_field)
            if value is not None:
                setattr(submission, attr, clean_optional(value))

        if delivered:
            # New dict so the JSON column is flagged dirty
            submission.sensitive_documents = {**(submission.sensitive_documents or {}), **delivered}

        now = datetime.utcnow()
        complete = is_submission_complete(submission)
        # first completion, or a completion whose channel was never created
        publish_to_slack = complete and (submission.completed_at is None or not submission.slack_channel_id)

        if submission.status not in FROZEN_STATUSES:
            submission.status = "SUBMITTED" if complete else "DRAFT"
        if complete:
            submission.submitted_at = submission.submitted_at or now
            submission.completed_at = submission.completed_at or now
        submission.is_complete = complete
        submission.is_locked = complete

        submission = self.repo.save(self.db, submission)
        logger.info(
            f"✅ Submission saved for user {user.id}: status={submission.status}, complete={submission.is_complete}"
        )
        return SaveResult(submission=submission, first_save=first_save, publish_to_slack=publish_to_slack)

    def enable_edit_mode(self, user: User) -> Submission:
        """Unlock a completed submission for further changes"""
        submission = self.repo.get_by_user(self.db, user.id)
        if not submission:
            raise HTTPException(status_code=404, detail="제출 자료를 찾을 수 없습니다")
        if submission.status in FROZEN_STATUSES:
            raise HTTPException(status_code=400, detail="검토가 완료된 자료는 수정할 수 없습니다")

        submission.is_locked = False
        submission = self.repo.save(self.db, submission)
        logger.info(f"🔓 Edit mode enabled for submission {submission.id}")
        return submission

    # ========================================================================
    # SLACK CHANNEL
    # ========================================================================

    async def ensure_slack_channel(self, user: User) -> Optional[str]:
        """
        Return the customer's channel id, creating the channel on first use.
        The id is stored once and reused afterwards.
        """
        submission = self._get_or_create(user)
        if submission.slack_channel_id:
            return submission.slack_channel_id

        channel_id = await slack_service.create_submission_channel(
            client_name=user.client_name,
            user_name=user.name,
            user_email=user.email,
            user_phone=user.phone,
        )
        if not channel_id:
            self.db.rollback()
            return None

        submission.slack_channel_id = channel_id
        self.repo.save(self.db, submission)
        logger.info(f"✅ Slack channel {channel_id} linked to submission {submission.id}")
        return channel_id

    async def publish_completion(self, user: User, submission: Submission) -> None:
        """Share the completed submission in the customer's channel. Never raises."""
        try:
            channel_id = await self.ensure_slack_channel(user)
            if not channel_id:
                logger.error(f"❌ No Slack channel for submission {submission.id}, summary not posted")
                return

            fields = {label: getattr(submission, attr) for attr, label in SUMMARY_LABELS.items()}
            await slack_service.send_submission_summary(channel_id, user.client_name, fields)

            if submission.profile_photo:
                filename = submission.profile_photo.rsplit("/", 1)[-1]
                await slack_service.upload_file_from_url(channel_id, submission.profile_photo, filename, "프로필 사진")
        except Exception as e:
            logger.error(f"Failed to publish submission {submission.id} to Slack: {e}")

    async def notify_first_save(self, user: User) -> None:
        await notify_admin(format_new_submission_message(user.client_name, user.name))
