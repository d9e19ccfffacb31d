"""
tenancy.py

테넌트 / 건물 / 호실 / 입주자(occupancy) 모델 정의 파일.

이 테이블들은 건물 관리(CRUD) 서비스가 소유하며,
원장 서비스는 범위 검증(scope validation)과
입주자의 접근 가능 호실 계산을 위해 읽기만 한다.

계층 구조:
- Tenant 1 : N Building
- Building 1 : N Unit
- Unit 1 : N UnitOccupant (ended_at IS NULL 인 경우만 활성 입주)

"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from building_ledger.db.base import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)


class Building(Base):
    __tablename__ = "buildings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)


class Unit(Base):
    __tablename__ = "units"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    building_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("buildings.id"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(50), nullable=False)

    building: Mapped[Building] = relationship()


class UnitOccupant(Base):
    """호실 입주 기록.

    role: 'RESIDENT' 또는 'OWNER'
    ended_at 이 채워지면 더 이상 해당 호실에 접근할 수 없다.
    """

    __tablename__ = "unit_occupants"
    __table_args__ = (
        Index("ix_unit_occupants_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("units.id"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="RESIDENT", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
