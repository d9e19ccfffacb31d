import uuid
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict

from building_ledger.models.finance import ChargeStatus, ChargeType, PaymentMethod, PaymentStatus


PeriodStr = str  # 'YYYY-MM' (형식 검증은 service 계층에서 수행)
CurrencyStr = str  # ISO 4217 3자리


# ---------------------------------------------------------------------------
# 청구(Charge)
# ---------------------------------------------------------------------------

class ChargeCreateRequest(BaseModel):
    unit_id: uuid.UUID
    type: ChargeType
    concept: str = Field(..., min_length=1, max_length=255, examples=["MAINTENANCE"])
    amount: int = Field(..., gt=0, examples=[10000])  # 센트 단위
    currency: Optional[CurrencyStr] = Field(default=None, pattern=r"^[A-Za-z]{3}$", examples=["ARS"])
    period: Optional[PeriodStr] = Field(default=None, examples=["2026-01"])
    due_date: datetime


class ChargeUpdateRequest(BaseModel):
    type: Optional[ChargeType] = None
    concept: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[int] = Field(default=None, gt=0)
    currency: Optional[CurrencyStr] = Field(default=None, pattern=r"^[A-Za-z]{3}$")
    due_date: Optional[datetime] = None


class AllocationResponse(BaseModel):
    id: uuid.UUID
    payment_id: uuid.UUID
    charge_id: uuid.UUID
    amount: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChargeResponse(BaseModel):
    id: uuid.UUID
    building_id: uuid.UUID
    unit_id: uuid.UUID
    period: PeriodStr
    type: ChargeType
    concept: str
    amount: int
    currency: CurrencyStr
    due_date: datetime
    status: ChargeStatus
    canceled_at: Optional[datetime]
    allocated_amount: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChargeDetailResponse(ChargeResponse):
    allocations: List[AllocationResponse] = []


# ---------------------------------------------------------------------------
# 납부(Payment)
# ---------------------------------------------------------------------------

class PaymentSubmitRequest(BaseModel):
    unit_id: Optional[uuid.UUID] = None
    amount: int = Field(..., gt=0, examples=[10000])
    currency: Optional[CurrencyStr] = Field(default=None, pattern=r"^[A-Za-z]{3}$")
    method: PaymentMethod = PaymentMethod.TRANSFER
    reference: Optional[str] = Field(default=None, max_length=255)
    proof_file_id: Optional[str] = Field(default=None, max_length=64)


class PaymentApproveRequest(BaseModel):
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None


class PaymentRejectRequest(BaseModel):
    reason: Optional[str] = None


class PaymentResponse(BaseModel):
    id: uuid.UUID
    building_id: uuid.UUID
    unit_id: Optional[uuid.UUID]
    amount: int
    currency: CurrencyStr
    method: PaymentMethod
    status: PaymentStatus
    reference: Optional[str]
    proof_file_id: Optional[str]
    created_by_user_id: uuid.UUID
    reviewed_by_membership_id: Optional[uuid.UUID]
    paid_at: Optional[datetime]
    allocated_amount: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# 배분(Allocation)
# ---------------------------------------------------------------------------

class AllocationCreateRequest(BaseModel):
    payment_id: uuid.UUID
    charge_id: uuid.UUID
    amount: int = Field(..., gt=0, examples=[4000])  # 남은 납부 금액 이하


class AllocationCreatedResponse(AllocationResponse):
    charge_status: ChargeStatus


class ChargeBrief(BaseModel):
    id: uuid.UUID
    period: PeriodStr
    concept: str
    amount: int
    status: ChargeStatus

    model_config = ConfigDict(from_attributes=True)


class PaymentAllocationResponse(AllocationResponse):
    charge: ChargeBrief


# ---------------------------------------------------------------------------
# 호실 원장 / 건물 요약
# ---------------------------------------------------------------------------

class LedgerCharge(BaseModel):
    id: uuid.UUID
    period: PeriodStr
    concept: str
    type: ChargeType
    amount: int
    status: ChargeStatus
    due_date: datetime
    allocated_amount: int

    model_config = ConfigDict(from_attributes=True)


class LedgerPayment(BaseModel):
    id: uuid.UUID
    amount: int
    method: PaymentMethod
    status: PaymentStatus
    created_at: datetime
    allocated_amount: int

    model_config = ConfigDict(from_attributes=True)


class LedgerTotals(BaseModel):
    total_charges: int
    total_allocated: int
    balance: int
    currency: CurrencyStr


class UnitLedgerResponse(BaseModel):
    unit_id: uuid.UUID
    unit_label: str
    building_id: uuid.UUID
    building_name: str
    charges: List[LedgerCharge]
    payments: List[LedgerPayment]
    totals: LedgerTotals


class DelinquentUnit(BaseModel):
    unit_id: uuid.UUID
    outstanding: int


class BuildingSummaryResponse(BaseModel):
    building_id: uuid.UUID
    period: Optional[PeriodStr]
    total_charges: int
    total_paid: int
    total_outstanding: int
    delinquent_units_count: int
    top_delinquent_units: List[DelinquentUnit]
    currency: CurrencyStr
