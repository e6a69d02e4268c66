"""Design domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DesignActionRequest(BaseModel):
    """Schema for a review action on the latest design version"""

    action: str  # approve | request_revision | feedback
    content: Optional[str] = None


class DesignFeedbackResponse(BaseModel):
    id: int
    authorType: str
    authorName: str
    content: str
    isRead: bool
    createdAt: Optional[datetime]


class DesignVersionResponse(BaseModel):
    id: int
    version: int
    url: str
    note: Optional[str]
    uploadedBy: Optional[str]
    createdAt: Optional[datetime]
    feedback: list[DesignFeedbackResponse] = []


class DesignSummaryResponse(BaseModel):
    """Schema for design list items"""

    id: int
    title: str
    status: str
    currentVersion: int
    approvedVersion: Optional[int]
    approvedAt: Optional[datetime]
    workflowId: int
    workflowType: str
    workflowStatus: str
    latestVersion: Optional[DesignVersionResponse] = None
    hasUnreadAdminFeedback: bool = False
    updatedAt: Optional[datetime]


class DesignDetailResponse(BaseModel):
    id: int
    title: str
    status: str
    currentVersion: int
    approvedVersion: Optional[int]
    approvedAt: Optional[datetime]
    workflowId: int
    workflowType: str
    workflowStatus: str
    versions: list[DesignVersionResponse]


class DesignListEnvelope(BaseModel):
    success: bool = True
    designs: list[DesignSummaryResponse]


class DesignDetailEnvelope(BaseModel):
    success: bool = True
    design: DesignDetailResponse


class DesignActionEnvelope(BaseModel):
    success: bool = True
    message: str
    design: DesignDetailResponse
