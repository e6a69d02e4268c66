"""Workflow repository - Database operations for workflows"""

from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import Workflow, WorkflowLog


class WorkflowRepository:
    """Repository for workflow database operations"""

    @staticmethod
    def get_workflows(db: Session, user_id: int) -> list[Workflow]:
        return db.query(Workflow).filter(Workflow.user_id == user_id).order_by(Workflow.created_at, Workflow.id).all()

    @staticmethod
    def get_workflow_by_id(db: Session, workflow_id: int) -> Optional[Workflow]:
        return db.query(Workflow).filter(Workflow.id == workflow_id).first()

    @staticmethod
    def get_logs(db: Session, workflow_id: int, limit: Optional[int] = None) -> list[WorkflowLog]:
        query = db.query(WorkflowLog).filter(WorkflowLog.workflow_id == workflow_id).order_by(WorkflowLog.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def compare_and_set(
        db: Session, workflow_id: int, expected_status: str, expected_version: int, updates: dict[str, Any]
    ) -> bool:
        """
        Apply updates only if the row still has the expected status and version.
        Returns False when another request changed the workflow first.
        """
        values = dict(updates)
        values["version"] = expected_version + 1
        matched = (
            db.query(Workflow)
            .filter(
                Workflow.id == workflow_id,
                Workflow.status == expected_status,
                Workflow.version == expected_version,
            )
            .update(values, synchronize_session=False)
        )
        return matched == 1

    @staticmethod
    def add_log(
        db: Session,
        workflow_id: int,
        from_status: Optional[str],
        to_status: str,
        changed_by: str,
        note: Optional[str] = None,
    ) -> WorkflowLog:
        log = WorkflowLog(
            workflow_id=workflow_id,
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            note=note,
        )
        db.add(log)
        return log
