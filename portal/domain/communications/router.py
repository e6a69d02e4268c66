"""Communication router - FastAPI endpoints for support threads"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import CommunicationMessage, CommunicationThread, User
from .schemas import (
    MessageCreate,
    MessageEnvelope,
    MessageResponse,
    ThreadCreate,
    ThreadDetailEnvelope,
    ThreadDetailResponse,
    ThreadListEnvelope,
    ThreadSummaryResponse,
)
from .service import CommunicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/communications", tags=["Communications"])


def get_communication_service(db: Session = Depends(get_db)) -> CommunicationService:
    """Dependency injection for CommunicationService"""
    return CommunicationService(db)


def message_to_response(message: CommunicationMessage) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        authorType=message.author_type,
        authorName=message.author_name,
        content=message.content,
        attachments=message.attachments or [],
        isReadByUser=message.is_read_by_user,
        isReadByAdmin=message.is_read_by_admin,
        readByUserAt=message.read_by_user_at,
        createdAt=message.created_at,
    )


def thread_to_detail(thread: CommunicationThread) -> ThreadDetailResponse:
    return ThreadDetailResponse(
        id=thread.id,
        title=thread.title,
        category=thread.category,
        status=thread.status,
        lastReplyAt=thread.last_reply_at,
        createdAt=thread.created_at,
        messages=[message_to_response(m) for m in thread.messages],
    )


@router.get("", response_model=ThreadListEnvelope)
async def get_threads(
    current_user: User = Depends(get_current_user),
    service: CommunicationService = Depends(get_communication_service),
):
    """List the user's threads, most recently active first"""
    result = []
    for thread in service.get_threads(current_user):
        last = service.repo.get_last_message(service.db, thread.id)
        result.append(
            ThreadSummaryResponse(
                id=thread.id,
                title=thread.title,
                category=thread.category,
                status=thread.status,
                lastReplyAt=thread.last_reply_at,
                createdAt=thread.created_at,
                lastMessage=message_to_response(last) if last else None,
                messageCount=service.repo.count_messages(service.db, thread.id),
                hasUnreadAdminMessage=bool(last and last.author_type == "admin" and not last.is_read_by_user),
            )
        )
    return ThreadListEnvelope(threads=result)


@router.post("", response_model=ThreadDetailEnvelope, status_code=201)
async def create_thread(
    data: ThreadCreate,
    current_user: User = Depends(get_current_user),
    service: CommunicationService = Depends(get_communication_service),
):
    thread = service.create_thread(current_user, data)
    await service.notify_admin(current_user, thread, thread.messages[0].content, is_reply=False)
    return ThreadDetailEnvelope(thread=thread_to_detail(thread), message="문의가 등록되었습니다")


@router.get("/{thread_id}", response_model=ThreadDetailEnvelope)
async def get_thread(
    thread_id: int,
    current_user: User = Depends(get_current_user),
    service: CommunicationService = Depends(get_communication_service),
):
    thread = service.get_thread(thread_id, current_user)
    return ThreadDetailEnvelope(thread=thread_to_detail(thread))


@router.post("/{thread_id}/messages", response_model=MessageEnvelope, status_code=201)
async def add_message(
    thread_id: int,
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: CommunicationService = Depends(get_communication_service),
):
    message = service.add_message(thread_id, current_user, data)
    await service.notify_admin(current_user, message.thread, message.content, is_reply=True)
    return MessageEnvelope(message=message_to_response(message))
