"""Communication repository - Database operations for support threads"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import CommunicationMessage, CommunicationThread


class CommunicationRepository:
    """Repository for thread and message database operations"""

    @staticmethod
    def get_threads(db: Session, user_id: int) -> list[CommunicationThread]:
        return (
            db.query(CommunicationThread)
            .filter(CommunicationThread.user_id == user_id)
            .order_by(CommunicationThread.last_reply_at.desc(), CommunicationThread.id.desc())
            .all()
        )

    @staticmethod
    def get_user_thread(db: Session, thread_id: int, user_id: int) -> Optional[CommunicationThread]:
        return (
            db.query(CommunicationThread)
            .filter(CommunicationThread.id == thread_id, CommunicationThread.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_last_message(db: Session, thread_id: int) -> Optional[CommunicationMessage]:
        return (
            db.query(CommunicationMessage)
            .filter(CommunicationMessage.thread_id == thread_id)
            .order_by(CommunicationMessage.id.desc())
            .first()
        )

    @staticmethod
    def count_messages(db: Session, thread_id: int) -> int:
        return (
            db.query(func.count(CommunicationMessage.id))
            .filter(CommunicationMessage.thread_id == thread_id)
            .scalar()
        )

    @staticmethod
    def mark_admin_messages_read(db: Session, thread_id: int, read_at: datetime) -> int:
        """Flag staff replies as seen by the customer; the caller commits"""
        return (
            db.query(CommunicationMessage)
            .filter(
                CommunicationMessage.thread_id == thread_id,
                CommunicationMessage.author_type == "admin",
                CommunicationMessage.is_read_by_user.is_(False),
            )
            .update({"is_read_by_user": True, "read_by_user_at": read_at}, synchronize_session=False)
        )

    @staticmethod
    def add_user_message(
        db: Session, thread: CommunicationThread, user_id: int, author_name: str, content: str, attachments: list[str]
    ) -> CommunicationMessage:
        message = CommunicationMessage(
            author_type="user",
            author_id=str(user_id),
            author_name=author_name,
            content=content,
            attachments=attachments,
            is_read_by_user=True,
            is_read_by_admin=False,
        )
        thread.messages.append(message)
        return message
