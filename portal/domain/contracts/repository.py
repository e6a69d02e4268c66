"""Contract repository - Database operations for contracts and packages"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import IN_FLIGHT_CONTRACT_STATUSES, Contract, ContractLog, Package


class ContractRepository:
    """Repository for contract database operations"""

    @staticmethod
    def get_contracts(db: Session, user_id: int) -> list[Contract]:
        return (
            db.query(Contract)
            .filter(Contract.user_id == user_id)
            .order_by(Contract.created_at.desc(), Contract.id.desc())
            .all()
        )

    @staticmethod
    def get_contract_by_id(db: Session, contract_id: int) -> Optional[Contract]:
        return db.query(Contract).filter(Contract.id == contract_id).first()

    @staticmethod
    def get_logs(db: Session, contract_id: int, limit: int = 10) -> list[ContractLog]:
        return (
            db.query(ContractLog)
            .filter(ContractLog.contract_id == contract_id)
            .order_by(ContractLog.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def find_in_flight(db: Session, user_id: int) -> Optional[Contract]:
        """A PENDING or SUBMITTED contract for the user, if any"""
        return (
            db.query(Contract)
            .filter(Contract.user_id == user_id, Contract.status.in_(IN_FLIGHT_CONTRACT_STATUSES))
            .first()
        )

    @staticmethod
    def count_numbers_for_day(db: Session, date_str: str) -> int:
        """Contracts already numbered for the given YYYYMMDD"""
        return db.query(Contract).filter(Contract.contract_number.like(f"{date_str}-%")).count()

    @staticmethod
    def get_latest_contract(db: Session, user_id: int) -> Optional[Contract]:
        return (
            db.query(Contract)
            .filter(Contract.user_id == user_id)
            .order_by(Contract.created_at.desc(), Contract.id.desc())
            .first()
        )

    @staticmethod
    def add_log(
        db: Session,
        contract_id: int,
        from_status: Optional[str],
        to_status: str,
        changed_by: str,
        note: Optional[str] = None,
    ) -> ContractLog:
        log = ContractLog(
            contract_id=contract_id,
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            note=note,
        )
        db.add(log)
        return log

    # ========================================================================
    # PACKAGES
    # ========================================================================

    @staticmethod
    def get_active_package(db: Session, package_id: int) -> Optional[Package]:
        return db.query(Package).filter(Package.id == package_id, Package.is_active.is_(True)).first()
