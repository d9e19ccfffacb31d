import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from building_ledger.db.base import Base


class ChargeType(str, Enum):
    COMMON_EXPENSE = "COMMON_EXPENSE"
    EXTRAORDINARY = "EXTRAORDINARY"
    FINE = "FINE"
    CREDIT = "CREDIT"
    OTHER = "OTHER"


class ChargeStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentMethod(str, Enum):
    TRANSFER = "TRANSFER"
    CASH = "CASH"
    CARD = "CARD"
    ONLINE = "ONLINE"


class PaymentStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Charge(Base):
    """호실별 '청구' 레코드.

    - period: 'YYYY-MM' (예: '2026-01')
    - amount: 최소 통화 단위(센트) 정수
    - status: 배분(allocation) 합계로부터만 계산됨. 직접 수정 금지
    - canceled_at: 취소 시각. 취소된 청구는 활성 목록/신규 배분에서 제외
    """

    __tablename__ = "charges"
    __table_args__ = (
        # 취소되지 않은 청구만 (호실, 기간, 항목) 기준으로 유일
        Index(
            "uq_charges_unit_period_concept_active",
            "tenant_id",
            "building_id",
            "unit_id",
            "period",
            "concept",
            unique=True,
            postgresql_where=text("canceled_at IS NULL"),
            sqlite_where=text("canceled_at IS NULL"),
        ),
        Index("ix_charges_building_period", "building_id", "period"),
        Index("ix_charges_unit_id", "unit_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    building_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("buildings.id"), nullable=False)
    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("units.id"), nullable=False)

    period: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    type: Mapped[ChargeType] = mapped_column(SAEnum(ChargeType, name="charge_type"), nullable=False)
    concept: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[ChargeStatus] = mapped_column(
        SAEnum(ChargeStatus, name="charge_status"), default=ChargeStatus.PENDING, nullable=False
    )
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by_membership_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    allocations: Mapped[list["PaymentAllocation"]] = relationship(back_populates="charge")

    @property
    def allocated_amount(self) -> int:
        return sum(a.amount for a in self.allocations)


class Payment(Base):
    """'납부' 레코드.

    - unit_id: 관리자가 호실 미지정으로 등록하거나
      입주 확정 전 입주자가 제출한 경우 비어 있을 수 있음
    - status: SUBMITTED -> APPROVED / REJECTED (검토 후 되돌릴 수 없음)
    - proof_file_id: 문서 서비스의 증빙 파일 ID
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_building_status", "building_id", "status"),
        Index("ix_payments_unit_id", "unit_id"),
        Index("ix_payments_created_by_user_id", "created_by_user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    building_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("buildings.id"), nullable=False)
    unit_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("units.id"), nullable=True)

    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    method: Mapped[PaymentMethod] = mapped_column(SAEnum(PaymentMethod, name="payment_method"), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, name="payment_status"), default=PaymentStatus.SUBMITTED, nullable=False
    )
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    proof_file_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_by_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    reviewed_by_membership_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    allocations: Mapped[list["PaymentAllocation"]] = relationship(back_populates="payment")

    @property
    def allocated_amount(self) -> int:
        return sum(a.amount for a in self.allocations)


class PaymentAllocation(Base):
    """납부 금액 일부(또는 전부)를 특정 청구에 적용한 기록.

    (payment_id, charge_id) 쌍은 유일하다.
    """

    __tablename__ = "payment_allocations"
    __table_args__ = (
        UniqueConstraint("payment_id", "charge_id", name="uq_payment_allocations_payment_charge"),
        Index("ix_payment_allocations_charge_id", "charge_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    payment_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("payments.id"), nullable=False)
    charge_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("charges.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    payment: Mapped[Payment] = relationship(back_populates="allocations")
    charge: Mapped[Charge] = relationship(back_populates="allocations")
