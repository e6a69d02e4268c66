"""Submission repository - Database operations for submissions"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Submission


class SubmissionRepository:
    """Repository for submission database operations"""

    @staticmethod
    def get_by_user(db: Session, user_id: int) -> Optional[Submission]:
        return db.query(Submission).filter(Submission.user_id == user_id).first()

    @staticmethod
    def create_empty(db: Session, user_id: int) -> Submission:
        """Add an empty DRAFT submission; the caller commits"""
        submission = Submission(user_id=user_id, status="DRAFT", sensitive_documents={})
        db.add(submission)
        return submission

    @staticmethod
    def save(db: Session, submission: Submission) -> Submission:
        db.commit()
        db.refresh(submission)
        return submission
