"""Contract domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ContractRequest(BaseModel):
    """Schema for creating or signing a contract. Required fields are checked by the service."""

    packageId: Optional[int] = None
    companyName: Optional[str] = None
    ceoName: Optional[str] = None
    businessNumber: Optional[str] = None
    address: Optional[str] = None
    contactName: Optional[str] = None
    contactPhone: Optional[str] = None
    contactEmail: Optional[str] = None
    contractPeriod: Optional[int] = None
    clientSignature: Optional[str] = None  # PNG data URL


class PackageSummary(BaseModel):
    name: str
    displayName: str


class ContractLogResponse(BaseModel):
    id: int
    fromStatus: Optional[str]
    toStatus: str
    changedBy: str
    note: Optional[str]
    createdAt: Optional[datetime]


class ContractResponse(BaseModel):
    """Schema for contract response"""

    id: int
    contractNumber: str
    packageId: int
    package: Optional[PackageSummary]
    companyName: str
    ceoName: str
    businessNumber: str
    address: str
    contactName: str
    contactPhone: str
    contactEmail: str
    contractPeriod: int
    monthlyFee: int
    totalAmount: int
    status: str
    signedAt: Optional[datetime]
    startDate: Optional[datetime]
    endDate: Optional[datetime]
    approvedAt: Optional[datetime]
    rejectReason: Optional[str]
    createdAt: Optional[datetime]


class ContractDetailResponse(ContractResponse):
    clientSignature: Optional[str]
    logs: list[ContractLogResponse] = []


class ContractListEnvelope(BaseModel):
    success: bool = True
    contracts: list[ContractResponse]


class ContractDetailEnvelope(BaseModel):
    success: bool = True
    contract: ContractDetailResponse


class ContractCreatedEnvelope(BaseModel):
    success: bool = True
    contractNumber: str
    contract: ContractResponse
    message: str
