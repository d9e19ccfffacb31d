"""
services/allocations.py

납부 배분(Allocation) 엔진.

배분은 납부 금액의 일부(또는 전부)를 특정 청구에 적용한 기록이며,
청구 상태(PENDING / PARTIAL / PAID)는 오직 배분 합계로부터 계산된다.

불변 조건:
- 납부별 배분 합계 <= 납부 금액 (금액 보존)
- 청구 상태 == derive_charge_status(배분 합계, 청구 금액)
- (payment_id, charge_id) 쌍은 하나만 존재

동시성:
- 합계 확인 -> 배분 저장 사이에 다른 요청이 끼어들 수 있으므로
  납부 행을 먼저 잠그고(SELECT ... FOR UPDATE) 합계를 계산한다
- 잠금 순서는 항상 납부 -> 청구 (교착 상태 방지)
- 배분 저장과 상태 재계산은 같은 트랜잭션에서 한 번에 commit (라우터)

관련 파일:
- building_ledger.models.finance        : PaymentAllocation / Charge / Payment
- building_ledger.routers.allocations   : 배분 API

"""

import logging
import uuid
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext
from building_ledger.core.errors import ConflictError
from building_ledger.models.audit_log import FinanceAction
from building_ledger.models.finance import (
    Charge,
    ChargeStatus,
    PaymentAllocation,
    PaymentStatus,
)
from building_ledger.services import policy, scope
from building_ledger.services.audit_log import write_finance_log

logger = logging.getLogger(__name__)


"""
청구 상태 계산 (순수 함수)

- 배분 합계 0            -> PENDING
- 0 < 합계 < 청구 금액   -> PARTIAL
- 합계 >= 청구 금액      -> PAID

"""

def derive_charge_status(allocation_amounts: Iterable[int], charge_amount: int) -> ChargeStatus:
    total = sum(allocation_amounts)
    if total <= 0:
        return ChargeStatus.PENDING
    if total < charge_amount:
        return ChargeStatus.PARTIAL
    return ChargeStatus.PAID


def sum_allocated_for_payment(db: Session, payment_id: uuid.UUID) -> int:
    total = db.scalar(
        select(func.coalesce(func.sum(PaymentAllocation.amount), 0)).where(PaymentAllocation.payment_id == payment_id)
    )
    return int(total or 0)


def allocation_amounts_for_charge(db: Session, charge_id: uuid.UUID) -> list[int]:
    return list(db.scalars(select(PaymentAllocation.amount).where(PaymentAllocation.charge_id == charge_id)).all())


"""
청구 상태 재계산

- 청구와 전체 배분 금액을 다시 읽어 상태 계산
- 상태가 바뀐 경우에만 기록 (불필요한 쓰기 / 로그 방지)
- 기록 여부를 반환

"""

def recalculate_charge_status(db: Session, charge_id: uuid.UUID, *, actor: ActorContext | None = None) -> bool:
    charge = db.get(Charge, charge_id)
    if charge is None:
        return False

    new_status = derive_charge_status(allocation_amounts_for_charge(db, charge_id), charge.amount)
    if new_status == charge.status:
        return False

    before = charge.status
    charge.status = new_status
    db.flush()

    if actor is not None:
        write_finance_log(
            db,
            actor=actor,
            action=FinanceAction.CHARGE_STATUS_CHANGED,
            entity_type="charge",
            entity_id=charge.id,
            meta={"before": before.value, "after": new_status.value},
        )
    logger.info("charge status changed id=%s %s -> %s", charge.id, before.value, new_status.value)
    return True


"""
배분 생성

- 관리자 / 운영자만 가능
- 납부 / 청구 모두 같은 테넌트 + 건물 소속이어야 함 (아니면 404)
- 취소된 청구, 거절된 납부, 통화가 다른 조합은 ConflictError
- 같은 (납부, 청구) 쌍이 이미 있으면 ConflictError
- 기존 배분 합계 + 요청 금액 > 납부 금액 이면 ConflictError
- 저장 직후 청구 상태 재계산

"""

def create_allocation(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    charge_id: uuid.UUID,
    amount: int,
) -> PaymentAllocation:
    policy.require(policy.can_allocate(actor), "allocations", "create")

    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)
    payment = scope.payment_belongs_to_building_and_tenant(
        db, actor.tenant_id, building_id, payment_id, for_update=True
    )
    charge = scope.charge_belongs_to_building_and_tenant(
        db, actor.tenant_id, building_id, charge_id, for_update=True
    )

    if charge.canceled_at is not None:
        raise ConflictError("Cannot allocate to a canceled charge", meta={"charge_id": str(charge.id)})

    if payment.status == PaymentStatus.REJECTED:
        raise ConflictError(
            "Cannot allocate a rejected payment",
            meta={"payment_id": str(payment.id), "status": payment.status.value},
        )

    if payment.currency != charge.currency:
        raise ConflictError(
            "Payment currency does not match charge currency",
            meta={"payment_currency": payment.currency, "charge_currency": charge.currency},
        )

    pair_meta = {"payment_id": str(payment.id), "charge_id": str(charge.id)}
    existing = db.scalar(
        select(PaymentAllocation).where(
            PaymentAllocation.payment_id == payment.id, PaymentAllocation.charge_id == charge.id
        )
    )
    if existing:
        raise ConflictError("Allocation already exists for this payment/charge pair", meta=pair_meta)

    allocated = sum_allocated_for_payment(db, payment.id)
    if allocated + amount > payment.amount:
        logger.warning(
            "allocation exceeds payment capacity payment=%s current=%s requested=%s limit=%s",
            payment.id, allocated, amount, payment.amount,
        )
        raise ConflictError(
            f"Total allocations ({allocated + amount}) exceed payment amount ({payment.amount})",
            meta={
                "payment_id": str(payment.id),
                "limit": payment.amount,
                "current": allocated,
                "requested": amount,
            },
        )

    allocation = PaymentAllocation(
        tenant_id=actor.tenant_id,
        payment_id=payment.id,
        charge_id=charge.id,
        amount=amount,
    )
    db.add(allocation)
    try:
        db.flush()
    except IntegrityError:
        raise ConflictError("Allocation already exists for this payment/charge pair", meta=pair_meta)

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.ALLOCATION_CREATED,
        entity_type="allocation",
        entity_id=allocation.id,
        meta={**pair_meta, "amount": amount},
    )
    logger.info("allocation created id=%s payment=%s charge=%s amount=%s", allocation.id, payment.id, charge.id, amount)

    recalculate_charge_status(db, charge.id, actor=actor)
    return allocation


"""
배분 삭제

- 관리자 / 운영자만 가능
- 배분 / 납부 / 청구 모두 같은 건물 소속이어야 함 (아니면 404)
- 삭제 직후 청구 상태 재계산 (PAID -> PARTIAL / PENDING 등)
- 취소된 청구는 재계산하지 않음 (상태 고정)

"""

def delete_allocation(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    allocation_id: uuid.UUID,
) -> Charge:
    policy.require(policy.can_allocate(actor), "allocations", "delete")

    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)
    allocation = scope.allocation_belongs_to_tenant_and_building(db, actor.tenant_id, building_id, allocation_id)

    # 생성과 같은 순서로 잠금
    scope.payment_belongs_to_building_and_tenant(
        db, actor.tenant_id, building_id, allocation.payment_id, for_update=True
    )
    charge = scope.charge_belongs_to_building_and_tenant(
        db, actor.tenant_id, building_id, allocation.charge_id, for_update=True
    )

    meta = {
        "payment_id": str(allocation.payment_id),
        "charge_id": str(allocation.charge_id),
        "amount": allocation.amount,
    }
    db.delete(allocation)
    db.flush()

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.ALLOCATION_DELETED,
        entity_type="allocation",
        entity_id=allocation_id,
        meta=meta,
    )
    logger.info("allocation deleted id=%s charge=%s", allocation_id, charge.id)

    # 취소된 청구의 상태는 취소 시점 값으로 고정
    if charge.canceled_at is None:
        recalculate_charge_status(db, charge.id, actor=actor)
    return charge
