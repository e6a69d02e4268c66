"""Design router - FastAPI endpoints for design review"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Design, DesignVersion, User
from .schemas import (
    DesignActionEnvelope,
    DesignActionRequest,
    DesignDetailEnvelope,
    DesignDetailResponse,
    DesignFeedbackResponse,
    DesignListEnvelope,
    DesignSummaryResponse,
    DesignVersionResponse,
)
from .service import ACTION_MESSAGES, DesignService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/designs", tags=["Designs"])


def get_design_service(db: Session = Depends(get_db)) -> DesignService:
    """Dependency injection for DesignService"""
    return DesignService(db)


def version_to_response(version: DesignVersion, include_feedback: bool = True) -> DesignVersionResponse:
    return DesignVersionResponse(
        id=version.id,
        version=version.version,
        url=version.url,
        note=version.note,
        uploadedBy=version.uploaded_by,
        createdAt=version.created_at,
        feedback=[
            DesignFeedbackResponse(
                id=fb.id,
                authorType=fb.author_type,
                authorName=fb.author_name,
                content=fb.content,
                isRead=fb.is_read,
                createdAt=fb.created_at,
            )
            for fb in version.feedback
        ]
        if include_feedback
        else [],
    )


def design_to_detail(design: Design) -> DesignDetailResponse:
    return DesignDetailResponse(
        id=design.id,
        title=design.title,
        status=design.status,
        currentVersion=design.current_version,
        approvedVersion=design.approved_version,
        approvedAt=design.approved_at,
        workflowId=design.workflow_id,
        workflowType=design.workflow.type,
        workflowStatus=design.workflow.status,
        versions=[version_to_response(v) for v in design.versions],
    )


@router.get("", response_model=DesignListEnvelope)
async def get_designs(
    current_user: User = Depends(get_current_user),
    service: DesignService = Depends(get_design_service),
):
    """List designs awaiting or past review"""
    result = []
    for design in service.get_designs(current_user):
        latest = design.versions[0] if design.versions else None
        result.append(
            DesignSummaryResponse(
                id=design.id,
                title=design.title,
                status=design.status,
                currentVersion=design.current_version,
                approvedVersion=design.approved_version,
                approvedAt=design.approved_at,
                workflowId=design.workflow_id,
                workflowType=design.workflow.type,
                workflowStatus=design.workflow.status,
                latestVersion=version_to_response(latest, include_feedback=False) if latest else None,
                hasUnreadAdminFeedback=service.repo.has_unread_admin_feedback(service.db, design.id),
                updatedAt=design.updated_at,
            )
        )
    return DesignListEnvelope(designs=result)


@router.get("/{design_id}", response_model=DesignDetailEnvelope)
async def get_design(
    design_id: int,
    current_user: User = Depends(get_current_user),
    service: DesignService = Depends(get_design_service),
):
    design = service.get_design(design_id, current_user)
    return DesignDetailEnvelope(design=design_to_detail(design))


@router.post("/{design_id}", response_model=DesignActionEnvelope)
async def design_action(
    design_id: int,
    data: DesignActionRequest,
    current_user: User = Depends(get_current_user),
    service: DesignService = Depends(get_design_service),
):
    """Approve, request a revision, or leave feedback on the latest version"""
    design = service.perform_action(design_id, current_user, data.action, data.content)
    await service.notify_slack(design, current_user, data.action, data.content)
    return DesignActionEnvelope(message=ACTION_MESSAGES[data.action], design=design_to_detail(design))
