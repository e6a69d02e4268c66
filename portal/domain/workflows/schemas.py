"""Workflow domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class WorkflowActionRequest(BaseModel):
    """Schema for a user action on a workflow"""

    action: str  # approve | revision
    revisionNote: Optional[str] = None


class WorkflowLogResponse(BaseModel):
    id: int
    fromStatus: Optional[str]
    toStatus: str
    changedBy: str
    note: Optional[str]
    createdAt: Optional[datetime]


class WorkflowResponse(BaseModel):
    """Schema for workflow response"""

    id: int
    type: str
    status: str
    designUrl: Optional[str]
    finalUrl: Optional[str]
    courier: Optional[str]
    trackingNumber: Optional[str]
    revisionCount: int
    revisionNote: Optional[str]
    submittedAt: Optional[datetime]
    designStartedAt: Optional[datetime]
    designUploadedAt: Optional[datetime]
    orderRequestedAt: Optional[datetime]
    orderApprovedAt: Optional[datetime]
    completedAt: Optional[datetime]
    shippedAt: Optional[datetime]
    createdAt: Optional[datetime]
    logs: list[WorkflowLogResponse] = []


class WorkflowListResponse(BaseModel):
    success: bool = True
    workflows: list[WorkflowResponse]


class WorkflowDetailResponse(BaseModel):
    success: bool = True
    workflow: WorkflowResponse
