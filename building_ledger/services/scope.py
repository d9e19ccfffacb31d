"""
services/scope.py

테넌트 / 건물 / 호실 소속(scope) 검증 함수 모음.

모든 함수는 조회만 수행하며, 소속이 맞으면 해당 레코드를 반환하고
맞지 않으면 ScopeViolation(404)을 발생시킨다.

설계 원칙:
- "존재하지 않음"과 "다른 테넌트/건물 소속"을 구분하지 않는다
  (다른 테넌트 리소스 존재 여부를 탐색하지 못하도록)
- WHERE 조건에 tenant_id / building_id 를 함께 걸어 한 번에 조회
- for_update=True 이면 행 잠금(SELECT ... FOR UPDATE)을 함께 획득

관련 파일:
- building_ledger.core.deps         : 건물 범위 가드에서 사용
- building_ledger.services.*        : 청구 / 납부 / 배분 서비스

"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from building_ledger.core.errors import ScopeViolation
from building_ledger.models.finance import Charge, Payment, PaymentAllocation
from building_ledger.models.tenancy import Building, Unit


def building_belongs_to_tenant(db: Session, tenant_id: uuid.UUID, building_id: uuid.UUID) -> Building:
    building = db.scalar(
        select(Building).where(Building.id == building_id, Building.tenant_id == tenant_id)
    )
    if not building:
        raise ScopeViolation("Building not found or does not belong to this tenant")
    return building


def unit_belongs_to_building_and_tenant(
    db: Session, tenant_id: uuid.UUID, building_id: uuid.UUID, unit_id: uuid.UUID
) -> Unit:
    unit = db.scalar(
        select(Unit)
        .join(Building, Building.id == Unit.building_id)
        .where(Unit.id == unit_id, Unit.building_id == building_id, Building.tenant_id == tenant_id)
    )
    if not unit:
        raise ScopeViolation("Unit not found or does not belong to this building/tenant")
    return unit


def unit_belongs_to_tenant(db: Session, tenant_id: uuid.UUID, unit_id: uuid.UUID) -> Unit:
    unit = db.scalar(
        select(Unit)
        .join(Building, Building.id == Unit.building_id)
        .where(Unit.id == unit_id, Building.tenant_id == tenant_id)
    )
    if not unit:
        raise ScopeViolation("Unit not found or does not belong to this tenant")
    return unit


def charge_belongs_to_building_and_tenant(
    db: Session,
    tenant_id: uuid.UUID,
    building_id: uuid.UUID,
    charge_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Charge:
    stmt = select(Charge).where(
        Charge.id == charge_id, Charge.tenant_id == tenant_id, Charge.building_id == building_id
    )
    if for_update:
        stmt = stmt.with_for_update()
    charge = db.scalar(stmt)
    if not charge:
        raise ScopeViolation("Charge not found or does not belong to this building/tenant")
    return charge


def payment_belongs_to_building_and_tenant(
    db: Session,
    tenant_id: uuid.UUID,
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Payment:
    stmt = select(Payment).where(
        Payment.id == payment_id, Payment.tenant_id == tenant_id, Payment.building_id == building_id
    )
    if for_update:
        stmt = stmt.with_for_update()
    payment = db.scalar(stmt)
    if not payment:
        raise ScopeViolation("Payment not found or does not belong to this building/tenant")
    return payment


"""
배분(allocation) 소속 검증

- 배분 자체가 테넌트 소속인지
- 배분의 납부(payment)와 청구(charge)가 모두 같은 건물 소속인지
- 어느 단계에서 실패해도 같은 메시지의 ScopeViolation

"""

def allocation_belongs_to_tenant_and_building(
    db: Session, tenant_id: uuid.UUID, building_id: uuid.UUID, allocation_id: uuid.UUID
) -> PaymentAllocation:
    allocation = db.scalar(
        select(PaymentAllocation)
        .join(Payment, Payment.id == PaymentAllocation.payment_id)
        .join(Charge, Charge.id == PaymentAllocation.charge_id)
        .where(PaymentAllocation.id == allocation_id)
        .where(PaymentAllocation.tenant_id == tenant_id)
        .where(Payment.tenant_id == tenant_id, Payment.building_id == building_id)
        .where(Charge.tenant_id == tenant_id, Charge.building_id == building_id)
    )
    if not allocation:
        raise ScopeViolation("Allocation not found or does not belong to this building/tenant")
    return allocation
