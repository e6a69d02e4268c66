"""Contract service - Business logic for contract requests"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...email_service import send_contract_request_notification, send_contract_submitted_email
from ...models import Contract, Package, User
from ...services.notification_service import notify_admin, send_notification
from ...services.sms_service import contract_received_sms
from ...services.telegram_service import format_contract_submitted_message
from ...utils.sanitization import clean_optional
from ..workflows.service import user_actor
from .pdf_service import generate_contract_pdf
from .repository import ContractRepository
from .schemas import ContractRequest

logger = logging.getLogger(__name__)

DEFAULT_CONTRACT_PERIOD = 12
MAX_NUMBER_ATTEMPTS = 5
PDF_STATUSES = ("APPROVED", "ACTIVE", "EXPIRED")

REQUIRED_FIELDS = (
    "packageId",
    "companyName",
    "ceoName",
    "businessNumber",
    "address",
    "contactName",
    "contactPhone",
    "contactEmail",
    "clientSignature",
)

# request field -> model attribute
PARTY_FIELDS = {
    "companyName": "company_name",
    "ceoName": "ceo_name",
    "businessNumber": "business_number",
    "address": "address",
    "contactName": "contact_name",
    "contactPhone": "contact_phone",
    "contactEmail": "contact_email",
}


def _party_values(data: ContractRequest) -> dict:
    return {attr: clean_optional(getattr(data, field)) for field, attr in PARTY_FIELDS.items()}


class ContractService:
    """Service layer for contract business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ContractRepository()

    def get_contracts(self, user: User) -> list[Contract]:
        return self.repo.get_contracts(self.db, user.id)

    def get_contract(self, contract_id: int, user: User) -> Contract:
        """Get a contract owned by the user"""
        contract = self.repo.get_contract_by_id(self.db, contract_id)
        if not contract:
            raise HTTPException(status_code=404, detail="계약을 찾을 수 없습니다")
        if contract.user_id != user.id:
            raise HTTPException(status_code=403, detail="접근 권한이 없습니다")
        return contract

    def _validate_request(self, data: ContractRequest) -> Package:
        for field in REQUIRED_FIELDS:
            value = getattr(data, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise HTTPException(status_code=400, detail="필수 정보를 모두 입력해주세요")

        if data.contractPeriod is not None and data.contractPeriod < 1:
            raise HTTPException(status_code=400, detail="계약 기간이 올바르지 않습니다")

        package = self.repo.get_active_package(self.db, data.packageId)
        if not package:
            raise HTTPException(status_code=400, detail="유효하지 않은 패키지입니다")
        return package

    def _ensure_no_in_flight(self, user: User) -> None:
        if self.repo.find_in_flight(self.db, user.id):
            raise HTTPException(status_code=400, detail="이미 진행 중인 계약 요청이 있습니다")

    # ========================================================================
    # CREATE (single-request flow: created already signed)
    # ========================================================================

    def create_contract(self, data: ContractRequest, user: User, signed_ip: str) -> Contract:
        """
        Create a SUBMITTED contract numbered YYYYMMDD-NNNN.

        Each insert runs in a savepoint. A unique violation is either the
        one-in-flight-contract index (another request won, 400) or a number
        collision (retry with the next sequence).
        """
        package = self._validate_request(data)
        self._ensure_no_in_flight(user)

        period = data.contractPeriod or DEFAULT_CONTRACT_PERIOD
        monthly_fee = package.price
        now = datetime.utcnow()
        date_str = now.strftime("%Y%m%d")

        for attempt in range(MAX_NUMBER_ATTEMPTS):
            sequence = self.repo.count_numbers_for_day(self.db, date_str) + 1 + attempt
            contract_number = f"{date_str}-{sequence:04d}"
            contract = Contract(
                contract_number=contract_number,
                user_id=user.id,
                package_id=package.id,
                contract_period=period,
                monthly_fee=monthly_fee,
                total_amount=monthly_fee * period,
                client_signature=data.clientSignature,
                signed_at=now,
                signed_ip=signed_ip,
                status="SUBMITTED",
                **_party_values(data),
            )
            try:
                with self.db.begin_nested():
                    self.db.add(contract)
                    self.db.flush()
                    self.repo.add_log(self.db, contract.id, None, "SUBMITTED", user_actor(user), "계약 요청 제출")
                    self.db.flush()
            except IntegrityError:
                if self.repo.find_in_flight(self.db, user.id):
                    logger.warning(f"⚠️ Concurrent contract request rejected for user {user.id}")
                    raise HTTPException(status_code=400, detail="이미 진행 중인 계약 요청이 있습니다")
                logger.warning(f"⚠️ Contract number {contract_number} taken, retrying (attempt {attempt + 1})")
                continue

            self.db.commit()
            self.db.refresh(contract)
            logger.info(f"✅ Contract {contract.contract_number} submitted by user {user.id}")
            return contract

        logger.error(f"❌ Could not allocate a contract number for user {user.id}")
        raise HTTPException(status_code=500, detail="계약 요청 처리 중 오류가 발생했습니다")

    # ========================================================================
    # SIGN (two-step flow: a PENDING contract prepared by staff)
    # ========================================================================

    def sign_contract(self, contract_id: int, data: ContractRequest, user: User, signed_ip: str) -> Contract:
        contract = self.get_contract(contract_id, user)
        package = self._validate_request(data)

        if contract.status != "PENDING":
            raise HTTPException(status_code=400, detail="서명할 수 없는 계약 상태입니다")

        period = data.contractPeriod or contract.contract_period or DEFAULT_CONTRACT_PERIOD
        for attr, value in _party_values(data).items():
            setattr(contract, attr, value)
        contract.package_id = package.id
        contract.contract_period = period
        contract.monthly_fee = package.price
        contract.total_amount = package.price * period
        contract.client_signature = data.clientSignature
        contract.signed_at = datetime.utcnow()
        contract.signed_ip = signed_ip
        contract.status = "SUBMITTED"

        self.repo.add_log(self.db, contract.id, "PENDING", "SUBMITTED", user_actor(user), "계약서 서명")
        self.db.commit()
        self.db.refresh(contract)

        logger.info(f"✅ Contract {contract.contract_number} signed by user {user.id}")
        return contract

    # ========================================================================
    # PDF
    # ========================================================================

    def get_contract_pdf(self, contract_id: int, user: User) -> bytes:
        contract = self.get_contract(contract_id, user)
        if contract.status not in PDF_STATUSES:
            raise HTTPException(status_code=400, detail="승인된 계약만 다운로드할 수 있습니다")
        return generate_contract_pdf(contract)

    # ========================================================================
    # NOTIFICATIONS
    # ========================================================================

    async def notify_submitted(self, contract: Contract, user: User) -> dict:
        """Customer confirmation (email with PDF, SMS, Telegram) and staff notices"""
        package_name = contract.package.display_name
        pdf_bytes: Optional[bytes] = None
        try:
            pdf_bytes = generate_contract_pdf(contract)
        except Exception as e:
            logger.error(f"❌ Failed to render PDF for contract {contract.contract_number}: {e}")

        message = format_contract_submitted_message(
            contract.company_name, contract.contract_number, package_name, contract.monthly_fee, contract.contract_period
        )
        result = await send_notification(
            user=user,
            notification_type="contract_submitted",
            email_func=send_contract_submitted_email,
            email_kwargs={
                "to": contract.contact_email,
                "company_name": contract.company_name,
                "contract_number": contract.contract_number,
                "package_name": package_name,
                "monthly_fee": contract.monthly_fee,
                "contract_period": contract.contract_period,
                "total_amount": contract.total_amount,
                "pdf_bytes": pdf_bytes,
            },
            sms_content=contract_received_sms(contract.company_name, contract.contract_number),
            telegram_message=message,
            admin_message=message,
        )

        try:
            await send_contract_request_notification(
                contract.company_name,
                contract.contact_name,
                contract.contact_phone,
                contract.contract_number,
                package_name,
            )
        except Exception as e:
            logger.error(f"❌ Failed to email staff about contract {contract.contract_number}: {e}")

        return result

    async def notify_signed(self, contract: Contract) -> None:
        await notify_admin(
            format_contract_submitted_message(
                contract.company_name,
                contract.contract_number,
                contract.package.display_name,
                contract.monthly_fee,
                contract.contract_period,
            )
        )
