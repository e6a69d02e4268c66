"""Communication domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ThreadCreate(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None
    content: Optional[str] = None
    attachments: list[str] = []


class MessageCreate(BaseModel):
    content: Optional[str] = None
    attachments: list[str] = []


class MessageResponse(BaseModel):
    id: int
    authorType: str
    authorName: str
    content: str
    attachments: list[str]
    isReadByUser: bool
    isReadByAdmin: bool
    readByUserAt: Optional[datetime]
    createdAt: Optional[datetime]


class ThreadSummaryResponse(BaseModel):
    """Schema for thread list items"""

    id: int
    title: str
    category: str
    status: str
    lastReplyAt: datetime
    createdAt: Optional[datetime]
    lastMessage: Optional[MessageResponse]
    messageCount: int
    hasUnreadAdminMessage: bool


class ThreadDetailResponse(BaseModel):
    id: int
    title: str
    category: str
    status: str
    lastReplyAt: datetime
    createdAt: Optional[datetime]
    messages: list[MessageResponse]


class ThreadListEnvelope(BaseModel):
    success: bool = True
    threads: list[ThreadSummaryResponse]


class ThreadDetailEnvelope(BaseModel):
    success: bool = True
    thread: ThreadDetailResponse
    message: Optional[str] = None


class MessageEnvelope(BaseModel):
    success: bool = True
    message: MessageResponse
