"""
services/charges.py

청구(Charge) 원장 비즈니스 로직 모음.

이 파일은 호실별 청구의 생성, 조회, 수정, 취소 규칙을 담당한다.
청구 상태(status)는 여기서 절대 직접 바꾸지 않으며,
배분 서비스(services.allocations)의 재계산으로만 변경된다.

규칙:
- (호실, 기간, 항목) 조합은 취소되지 않은 청구 사이에서 유일
- 배분이 하나라도 있는 청구는 금액/기한/유형/항목 수정 불가 (취소만 가능)
- 취소는 canceled_at 기록만 하며, 기존 배분은 그대로 둔다
- RESIDENT / TENANT_OWNER 는 본인 입주 호실의 청구만 조회

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 트랜잭션 제어(commit/rollback)는 라우터에서 수행
- 실패 시 도메인 예외(core.errors)를 즉시 발생

관련 파일:
- building_ledger.models.finance      : Charge 모델
- building_ledger.services.scope      : 소속 검증
- building_ledger.services.policy     : 권한 판단
- building_ledger.routers.charges     : 청구 API

"""

import logging
import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from building_ledger.core.actor import ActorContext
from building_ledger.core.config import settings
from building_ledger.core.errors import ConflictError, ValidationFailed
from building_ledger.models.audit_log import FinanceAction
from building_ledger.models.finance import Charge, ChargeStatus, ChargeType, PaymentAllocation
from building_ledger.services import policy, scope
from building_ledger.services.audit_log import write_finance_log

logger = logging.getLogger(__name__)

_PERIOD_RE = re.compile(r"^\d{4}-\d{2}$")

# 배분이 생긴 뒤에는 바꿀 수 없는 필드
LOCKED_FIELDS = ("amount", "due_date", "type", "concept", "currency")


"""
청구 period 형식 검증

- 'YYYY-MM' 형식만 허용
- 월(month)은 01 ~ 12 범위만 허용
- 형식이 잘못되면 ValidationFailed 발생

"""

def validate_period(period: str) -> None:
    if not _PERIOD_RE.match(period or ""):
        raise ValidationFailed("period must be in 'YYYY-MM' format")

    month = int(period.split("-")[1])
    if month < 1 or month > 12:
        raise ValidationFailed("month must be between 01 and 12")


def current_period() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m")


def clamp_paging(limit: int | None, offset: int | None) -> tuple[int, int]:
    limit = limit or settings.LIST_DEFAULT_LIMIT
    return max(1, min(limit, settings.LIST_MAX_LIMIT)), max(0, offset or 0)


def find_active_duplicate(
    db: Session,
    *,
    tenant_id: uuid.UUID,
    building_id: uuid.UUID,
    unit_id: uuid.UUID,
    period: str,
    concept: str,
    exclude_id: uuid.UUID | None = None,
) -> Charge | None:
    stmt = (
        select(Charge)
        .where(Charge.tenant_id == tenant_id, Charge.building_id == building_id)
        .where(Charge.unit_id == unit_id, Charge.period == period, Charge.concept == concept)
        .where(Charge.canceled_at.is_(None))
    )
    if exclude_id is not None:
        stmt = stmt.where(Charge.id != exclude_id)
    return db.scalar(stmt)


def _duplicate_conflict(charge: Charge | None, *, unit_id, period, concept) -> ConflictError:
    return ConflictError(
        "Charge already exists for this unit/period/concept",
        meta={
            "unit_id": str(unit_id),
            "period": period,
            "concept": concept,
            "existing_charge_id": str(charge.id) if charge else None,
        },
    )


def count_allocations(db: Session, charge_id: uuid.UUID) -> int:
    return db.scalar(
        select(func.count()).select_from(PaymentAllocation).where(PaymentAllocation.charge_id == charge_id)
    ) or 0


"""
청구 생성

- 관리자 / 운영자만 가능
- 호실이 해당 건물/테넌트 소속인지 검증
- 활성 중복 청구가 있으면 ConflictError
- 상태는 항상 PENDING 으로 시작

"""

def create_charge(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    unit_id: uuid.UUID,
    type: ChargeType,
    concept: str,
    amount: int,
    due_date: datetime,
    period: str | None = None,
    currency: str | None = None,
) -> Charge:
    policy.require(policy.can_write_charges(actor), "charges", "create")

    period = period or current_period()
    validate_period(period)

    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)
    scope.unit_belongs_to_building_and_tenant(db, actor.tenant_id, building_id, unit_id)

    existing = find_active_duplicate(
        db,
        tenant_id=actor.tenant_id,
        building_id=building_id,
        unit_id=unit_id,
        period=period,
        concept=concept,
    )
    if existing:
        logger.warning("duplicate charge rejected unit=%s period=%s concept=%r", unit_id, period, concept)
        raise _duplicate_conflict(existing, unit_id=unit_id, period=period, concept=concept)

    charge = Charge(
        tenant_id=actor.tenant_id,
        building_id=building_id,
        unit_id=unit_id,
        period=period,
        type=type,
        concept=concept,
        amount=amount,
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        due_date=due_date,
        status=ChargeStatus.PENDING,
        created_by_membership_id=actor.membership_id,
    )
    db.add(charge)
    try:
        db.flush()
    except IntegrityError:
        # 동시 요청이 먼저 같은 청구를 만든 경우 (부분 유니크 인덱스)
        raise _duplicate_conflict(None, unit_id=unit_id, period=period, concept=concept)

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.CHARGE_CREATED,
        entity_type="charge",
        entity_id=charge.id,
        meta={"unit_id": str(unit_id), "period": period, "concept": concept, "amount": amount},
    )
    logger.info("charge created id=%s unit=%s period=%s amount=%s", charge.id, unit_id, period, amount)
    return charge


"""
청구 목록 조회

- 취소된 청구는 include_canceled=True 일 때만 포함
- RESIDENT / TENANT_OWNER 는 입주 호실로 제한, 입주 호실이 없으면 빈 목록
- unit_id 필터가 입주 호실 밖이면 ScopeViolation
- 기한(due_date) 내림차순, limit 최대 500

"""

def list_charges(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    period: str | None = None,
    status: ChargeStatus | None = None,
    unit_id: uuid.UUID | None = None,
    include_canceled: bool = False,
    limit: int | None = None,
    offset: int | None = None,
) -> list[Charge]:
    policy.require(policy.can_read(actor), "charges", "read")
    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)

    stmt = (
        select(Charge)
        .options(selectinload(Charge.allocations))
        .where(Charge.tenant_id == actor.tenant_id, Charge.building_id == building_id)
    )
    if not include_canceled:
        stmt = stmt.where(Charge.canceled_at.is_(None))

    if actor.is_unit_restricted:
        if not actor.accessible_unit_ids:
            return []
        stmt = stmt.where(Charge.unit_id.in_(list(actor.accessible_unit_ids)))

    if period:
        validate_period(period)
        stmt = stmt.where(Charge.period == period)
    if status:
        stmt = stmt.where(Charge.status == status)
    if unit_id:
        policy.ensure_unit_visible(actor, unit_id)
        stmt = stmt.where(Charge.unit_id == unit_id)

    limit, offset = clamp_paging(limit, offset)
    stmt = stmt.order_by(Charge.due_date.desc(), Charge.created_at.desc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


def get_charge(db: Session, actor: ActorContext, *, building_id: uuid.UUID, charge_id: uuid.UUID) -> Charge:
    policy.require(policy.can_read(actor), "charges", "read")
    charge = scope.charge_belongs_to_building_and_tenant(db, actor.tenant_id, building_id, charge_id)

    # 입주자는 본인 호실 청구가 아니면 "없는 청구"와 동일하게 처리
    policy.ensure_unit_visible(actor, charge.unit_id)
    return charge


"""
청구 수정

- 관리자 / 운영자만 가능
- 배분이 하나라도 있으면 ConflictError (금액 등 불변)
- 취소된 청구는 수정 불가
- 항목(concept) 변경으로 활성 중복이 생기면 ConflictError

"""

def update_charge(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    charge_id: uuid.UUID,
    patch: dict,
) -> Charge:
    policy.require(policy.can_write_charges(actor), "charges", "update")

    charge = scope.charge_belongs_to_building_and_tenant(
        db, actor.tenant_id, building_id, charge_id, for_update=True
    )

    if charge.canceled_at is not None:
        raise ConflictError("Cannot update a canceled charge", meta={"charge_id": str(charge.id)})

    allocation_count = count_allocations(db, charge.id)
    if allocation_count > 0:
        logger.warning("update rejected for allocated charge id=%s", charge.id)
        raise ConflictError(
            "Cannot update charge that has payment allocations",
            meta={"charge_id": str(charge.id), "allocation_count": allocation_count},
        )

    changes = {k: v for k, v in patch.items() if k in LOCKED_FIELDS and v is not None}
    if "currency" in changes:
        changes["currency"] = changes["currency"].upper()

    new_concept = changes.get("concept", charge.concept)
    if new_concept != charge.concept:
        existing = find_active_duplicate(
            db,
            tenant_id=charge.tenant_id,
            building_id=charge.building_id,
            unit_id=charge.unit_id,
            period=charge.period,
            concept=new_concept,
            exclude_id=charge.id,
        )
        if existing:
            raise _duplicate_conflict(existing, unit_id=charge.unit_id, period=charge.period, concept=new_concept)

    for field, value in changes.items():
        setattr(charge, field, value)

    try:
        db.flush()
    except IntegrityError:
        raise _duplicate_conflict(None, unit_id=charge.unit_id, period=charge.period, concept=new_concept)

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.CHARGE_UPDATED,
        entity_type="charge",
        entity_id=charge.id,
        meta={"fields": sorted(changes)},
    )
    logger.info("charge updated id=%s fields=%s", charge.id, sorted(changes))
    return charge


"""
청구 취소 (Soft Delete)

- 관리자 / 운영자만 가능
- canceled_at 만 기록, 상태(status)와 기존 배분은 그대로 유지
- 이미 취소된 청구는 그대로 반환

"""

def cancel_charge(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    charge_id: uuid.UUID,
    reason: str | None = None,
) -> Charge:
    policy.require(policy.can_write_charges(actor), "charges", "cancel")

    charge = scope.charge_belongs_to_building_and_tenant(
        db, actor.tenant_id, building_id, charge_id, for_update=True
    )
    if charge.canceled_at is not None:
        return charge

    charge.canceled_at = datetime.now(timezone.utc)
    db.flush()

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.CHARGE_CANCELED,
        entity_type="charge",
        entity_id=charge.id,
        meta={"reason": reason} if reason else {},
    )
    logger.info("charge canceled id=%s", charge.id)
    return charge
