"""Submission domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SubmissionUpdate(BaseModel):
    """Schema for saving onboarding materials. Omitted fields are left unchanged."""

    profilePhoto: Optional[str] = None
    brandName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    bankAccount: Optional[str] = None
    deliveryAddress: Optional[str] = None
    websiteStyle: Optional[str] = None
    websiteColor: Optional[str] = None
    blogDesignNote: Optional[str] = None
    additionalNote: Optional[str] = None
    # Receipts returned by the upload endpoint for sensitive documents
    sensitiveReceipts: list[str] = []


class SubmissionResponse(BaseModel):
    """Schema for submission response"""

    id: int
    profilePhoto: Optional[str]
    brandName: Optional[str]
    contactEmail: Optional[str]
    contactPhone: Optional[str]
    bankAccount: Optional[str]
    deliveryAddress: Optional[str]
    websiteStyle: Optional[str]
    websiteColor: Optional[str]
    blogDesignNote: Optional[str]
    additionalNote: Optional[str]
    sensitiveDocuments: dict[str, str]
    status: str
    isComplete: bool
    isLocked: bool
    slackChannelId: Optional[str]
    submittedAt: Optional[datetime]
    completedAt: Optional[datetime]
    reviewedAt: Optional[datetime]
    updatedAt: Optional[datetime]


class SubmissionEnvelope(BaseModel):
    success: bool = True
    submission: Optional[SubmissionResponse]
    message: Optional[str] = None
