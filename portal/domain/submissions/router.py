"""Submission router - FastAPI endpoints for onboarding materials"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Submission, User
from .schemas import SubmissionEnvelope, SubmissionResponse, SubmissionUpdate
from .service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/submissions", tags=["Submissions"])


def get_submission_service(db: Session = Depends(get_db)) -> SubmissionService:
    """Dependency injection for SubmissionService"""
    return SubmissionService(db)


def submission_to_response(submission: Optional[Submission]) -> Optional[SubmissionResponse]:
    if submission is None:
        return None
    return SubmissionResponse(
        id=submission.id,
        profilePhoto=submission.profile_photo,
        brandName=submission.brand_name,
        contactEmail=submission.contact_email,
        contactPhone=submission.contact_phone,
        bankAccount=submission.bank_account,
        deliveryAddress=submission.delivery_address,
        websiteStyle=submission.website_style,
        websiteColor=submission.website_color,
        blogDesignNote=submission.blog_design_note,
        additionalNote=submission.additional_note,
        sensitiveDocuments=submission.sensitive_documents or {},
        status=submission.status,
        isComplete=submission.is_complete,
        isLocked=submission.is_locked,
        slackChannelId=submission.slack_channel_id,
        submittedAt=submission.submitted_at,
        completedAt=submission.completed_at,
        reviewedAt=submission.reviewed_at,
        updatedAt=submission.updated_at,
    )


@router.get("", response_model=SubmissionEnvelope)
async def get_submission(
    current_user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    return SubmissionEnvelope(submission=submission_to_response(service.get_submission(current_user)))


@router.put("", response_model=SubmissionEnvelope)
async def save_submission(
    data: SubmissionUpdate,
    current_user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """Save onboarding materials; completion locks the submission and opens the Slack channel"""
    result = service.update_submission(current_user, data)

    if result.first_save:
        await service.notify_first_save(current_user)
    if result.publish_to_slack:
        await service.publish_completion(current_user, result.submission)

    message = "자료 제출이 완료되었습니다" if result.submission.is_complete else "임시 저장되었습니다"
    return SubmissionEnvelope(submission=submission_to_response(result.submission), message=message)


@router.post("/edit-mode", response_model=SubmissionEnvelope)
async def enable_edit_mode(
    current_user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """Unlock a completed submission"""
    submission = service.enable_edit_mode(current_user)
    return SubmissionEnvelope(submission=submission_to_response(submission), message="수정 모드가 활성화되었습니다")
