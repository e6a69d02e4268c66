"""Design repository - Database operations for designs"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Design, DesignFeedback, DesignVersion, Submission, Workflow


class DesignRepository:
    """Repository for design database operations"""

    @staticmethod
    def get_designs(db: Session, user_id: int) -> list[Design]:
        """Designs visible to the user (drafts excluded)"""
        return (
            db.query(Design)
            .join(Workflow, Design.workflow_id == Workflow.id)
            .filter(Workflow.user_id == user_id, Design.status != "DRAFT")
            .order_by(Design.updated_at.desc(), Design.id.desc())
            .all()
        )

    @staticmethod
    def get_design_by_id(db: Session, design_id: int) -> Optional[Design]:
        return db.query(Design).filter(Design.id == design_id).first()

    @staticmethod
    def get_latest_version(db: Session, design_id: int) -> Optional[DesignVersion]:
        return (
            db.query(DesignVersion)
            .filter(DesignVersion.design_id == design_id)
            .order_by(DesignVersion.version.desc())
            .first()
        )

    @staticmethod
    def has_unread_admin_feedback(db: Session, design_id: int) -> bool:
        return (
            db.query(DesignFeedback.id)
            .join(DesignVersion, DesignFeedback.version_id == DesignVersion.id)
            .filter(
                DesignVersion.design_id == design_id,
                DesignFeedback.author_type == "admin",
                DesignFeedback.is_read.is_(False),
            )
            .first()
            is not None
        )

    @staticmethod
    def mark_admin_feedback_read(db: Session, design_id: int) -> int:
        version_ids = db.query(DesignVersion.id).filter(DesignVersion.design_id == design_id)
        return (
            db.query(DesignFeedback)
            .filter(
                DesignFeedback.version_id.in_(version_ids.scalar_subquery()),
                DesignFeedback.author_type == "admin",
                DesignFeedback.is_read.is_(False),
            )
            .update({"is_read": True}, synchronize_session=False)
        )

    @staticmethod
    def add_feedback(db: Session, version_id: int, author_id: str, author_name: str, content: str) -> DesignFeedback:
        feedback = DesignFeedback(
            version_id=version_id,
            author_type="user",
            author_id=author_id,
            author_name=author_name,
            content=content,
            is_read=False,
        )
        db.add(feedback)
        return feedback

    @staticmethod
    def get_slack_channel_id(db: Session, user_id: int) -> Optional[str]:
        submission = db.query(Submission).filter(Submission.user_id == user_id).first()
        return submission.slack_channel_id if submission else None
