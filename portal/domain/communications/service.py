"""Communication service - Business logic for support threads"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import CommunicationMessage, CommunicationThread, User
from ...security_utils import strip_markup
from ...services.notification_service import notify_admin
from ...services.telegram_service import format_new_inquiry_message
from .repository import CommunicationRepository
from .schemas import MessageCreate, ThreadCreate

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "일반"


def _clean_text(value) -> str:
    return strip_markup(value).strip() if value else ""


class CommunicationService:
    """Service layer for communication business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CommunicationRepository()

    def get_threads(self, user: User) -> list[CommunicationThread]:
        return self.repo.get_threads(self.db, user.id)

    def _get_user_thread(self, thread_id: int, user: User) -> CommunicationThread:
        # Foreign threads are reported as missing
        thread = self.repo.get_user_thread(self.db, thread_id, user.id)
        if not thread:
            raise HTTPException(status_code=404, detail="문의를 찾을 수 없습니다")
        return thread

    def create_thread(self, user: User, data: ThreadCreate) -> CommunicationThread:
        """Open a thread together with its first message"""
        title = _clean_text(data.title)
        content = _clean_text(data.content)
        if not title or not content:
            raise HTTPException(status_code=400, detail="제목과 내용은 필수입니다")

        thread = CommunicationThread(
            user_id=user.id,
            title=title,
            category=_clean_text(data.category) or DEFAULT_CATEGORY,
            status="OPEN",
            last_reply_at=datetime.utcnow(),
        )
        self.db.add(thread)
        self.repo.add_user_message(self.db, thread, user.id, user.name, content, data.attachments)
        self.db.commit()
        self.db.refresh(thread)

        logger.info(f"✅ Thread {thread.id} opened by user {user.id}")
        return thread

    def get_thread(self, thread_id: int, user: User) -> CommunicationThread:
        """Return the thread and mark staff replies as read"""
        thread = self._get_user_thread(thread_id, user)
        marked = self.repo.mark_admin_messages_read(self.db, thread.id, datetime.utcnow())
        if marked:
            # Commit expires the loaded messages so they reload with the new flags
            self.db.commit()
        return thread

    def add_message(self, thread_id: int, user: User, data: MessageCreate) -> CommunicationMessage:
        """Reply on a thread; resolved threads are closed to replies"""
        content = _clean_text(data.content)
        if not content:
            raise HTTPException(status_code=400, detail="내용을 입력해주세요")

        thread = self._get_user_thread(thread_id, user)
        if thread.status == "RESOLVED":
            raise HTTPException(status_code=400, detail="해결된 문의에는 답글을 작성할 수 없습니다")

        message = self.repo.add_user_message(self.db, thread, user.id, user.name, content, data.attachments)
        thread.last_reply_at = datetime.utcnow()
        thread.status = "OPEN"
        self.db.commit()
        self.db.refresh(message)

        logger.info(f"✅ Message {message.id} added to thread {thread.id} by user {user.id}")
        return message

    async def notify_admin(self, user: User, thread: CommunicationThread, content: str, is_reply: bool) -> None:
        await notify_admin(format_new_inquiry_message(user.client_name, thread.title, content, is_reply=is_reply))
