"""Workflow router - FastAPI endpoints for the customer's production tasks"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User, Workflow
from .schemas import (
    WorkflowActionRequest,
    WorkflowDetailResponse,
    WorkflowListResponse,
    WorkflowLogResponse,
    WorkflowResponse,
)
from .service import WorkflowService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user/workflows", tags=["Workflows"])

RECENT_LOG_LIMIT = 5


def get_workflow_service(db: Session = Depends(get_db)) -> WorkflowService:
    """Dependency injection for WorkflowService"""
    return WorkflowService(db)


def workflow_to_response(workflow: Workflow, logs: list) -> WorkflowResponse:
    return WorkflowResponse(
        id=workflow.id,
        type=workflow.type,
        status=workflow.status,
        designUrl=workflow.design_url,
        finalUrl=workflow.final_url,
        courier=workflow.courier,
        trackingNumber=workflow.tracking_number,
        revisionCount=workflow.revision_count,
        revisionNote=workflow.revision_note,
        submittedAt=workflow.submitted_at,
        designStartedAt=workflow.design_started_at,
        designUploadedAt=workflow.design_uploaded_at,
        orderRequestedAt=workflow.order_requested_at,
        orderApprovedAt=workflow.order_approved_at,
        completedAt=workflow.completed_at,
        shippedAt=workflow.shipped_at,
        createdAt=workflow.created_at,
        logs=[
            WorkflowLogResponse(
                id=log.id,
                fromStatus=log.from_status,
                toStatus=log.to_status,
                changedBy=log.changed_by,
                note=log.note,
                createdAt=log.created_at,
            )
            for log in logs
        ],
    )


# ============================================================================
# READ OPERATIONS
# ============================================================================


@router.get("", response_model=WorkflowListResponse)
async def get_workflows(
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """List the user's workflows with their latest log entries"""
    workflows = service.get_workflows(current_user)
    return WorkflowListResponse(
        workflows=[
            workflow_to_response(wf, service.repo.get_logs(service.db, wf.id, RECENT_LOG_LIMIT)) for wf in workflows
        ]
    )


@router.get("/{workflow_id}", response_model=WorkflowDetailResponse)
async def get_workflow(
    workflow_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    workflow = service.get_workflow(workflow_id, current_user)
    return WorkflowDetailResponse(workflow=workflow_to_response(workflow, service.repo.get_logs(service.db, workflow.id)))


# ============================================================================
# USER ACTIONS
# ============================================================================


@router.patch("/{workflow_id}", response_model=WorkflowDetailResponse)
async def update_workflow(
    workflow_id: int,
    data: WorkflowActionRequest,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Approve the uploaded design or request a revision"""
    workflow = service.apply_action(workflow_id, current_user, data.action, data.revisionNote)
    return WorkflowDetailResponse(workflow=workflow_to_response(workflow, service.repo.get_logs(service.db, workflow.id)))
