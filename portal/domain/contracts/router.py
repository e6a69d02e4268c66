"""Contract router - FastAPI endpoints for contracts"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Contract, User
from ...utils.sanitization import get_client_ip
from .schemas import (
    ContractCreatedEnvelope,
    ContractDetailEnvelope,
    ContractDetailResponse,
    ContractListEnvelope,
    ContractLogResponse,
    ContractRequest,
    ContractResponse,
    PackageSummary,
)
from .service import ContractService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contracts", tags=["Contracts"])


def get_contract_service(db: Session = Depends(get_db)) -> ContractService:
    """Dependency injection for ContractService"""
    return ContractService(db)


def _contract_fields(contract: Contract) -> dict:
    return {
        "id": contract.id,
        "contractNumber": contract.contract_number,
        "packageId": contract.package_id,
        "package": PackageSummary(name=contract.package.name, displayName=contract.package.display_name)
        if contract.package
        else None,
        "companyName": contract.company_name,
        "ceoName": contract.ceo_name,
        "businessNumber": contract.business_number,
        "address": contract.address,
        "contactName": contract.contact_name,
        "contactPhone": contract.contact_phone,
        "contactEmail": contract.contact_email,
        "contractPeriod": contract.contract_period,
        "monthlyFee": contract.monthly_fee,
        "totalAmount": contract.total_amount,
        "status": contract.status,
        "signedAt": contract.signed_at,
        "startDate": contract.start_date,
        "endDate": contract.end_date,
        "approvedAt": contract.approved_at,
        "rejectReason": contract.reject_reason,
        "createdAt": contract.created_at,
    }


def contract_to_response(contract: Contract) -> ContractResponse:
    return ContractResponse(**_contract_fields(contract))


# ============================================================================
# CONTRACTS
# ============================================================================


@router.get("", response_model=ContractListEnvelope)
async def get_contracts(
    current_user: User = Depends(get_current_user),
    service: ContractService = Depends(get_contract_service),
):
    return ContractListEnvelope(contracts=[contract_to_response(c) for c in service.get_contracts(current_user)])


@router.post("", response_model=ContractCreatedEnvelope, status_code=201)
async def create_contract(
    data: ContractRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: ContractService = Depends(get_contract_service),
):
    """Submit a signed contract request"""
    contract = service.create_contract(data, current_user, get_client_ip(request.headers))
    await service.notify_submitted(contract, current_user)
    return ContractCreatedEnvelope(
        contractNumber=contract.contract_number,
        contract=contract_to_response(contract),
        message="계약 요청이 제출되었습니다. 관리자 승인 후 이메일로 안내드리겠습니다.",
    )


@router.get("/{contract_id}", response_model=ContractDetailEnvelope)
async def get_contract(
    contract_id: int,
    current_user: User = Depends(get_current_user),
    service: ContractService = Depends(get_contract_service),
):
    contract = service.get_contract(contract_id, current_user)
    logs = [
        ContractLogResponse(
            id=log.id,
            fromStatus=log.from_status,
            toStatus=log.to_status,
            changedBy=log.changed_by,
            note=log.note,
            createdAt=log.created_at,
        )
        for log in service.repo.get_logs(service.db, contract.id, limit=10)
    ]
    return ContractDetailEnvelope(
        contract=ContractDetailResponse(
            **_contract_fields(contract), clientSignature=contract.client_signature, logs=logs
        )
    )


@router.patch("/{contract_id}", response_model=ContractDetailEnvelope)
async def sign_contract(
    contract_id: int,
    data: ContractRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: ContractService = Depends(get_contract_service),
):
    """Sign a contract prepared by staff"""
    contract = service.sign_contract(contract_id, data, current_user, get_client_ip(request.headers))
    await service.notify_signed(contract)
    return ContractDetailEnvelope(
        contract=ContractDetailResponse(**_contract_fields(contract), clientSignature=contract.client_signature)
    )


@router.get("/{contract_id}/pdf")
async def download_contract_pdf(
    contract_id: int,
    current_user: User = Depends(get_current_user),
    service: ContractService = Depends(get_contract_service),
):
    contract = service.get_contract(contract_id, current_user)
    pdf_bytes = service.get_contract_pdf(contract.id, current_user)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=contract-{contract.contract_number}.pdf"},
    )
