"""
services/unit_ledger.py

호실 원장(Unit Ledger) 조회 및 건물 재무 요약.

- 호실 원장: 호실의 활성 청구(배분 합계 포함) + 납부 내역 + 잔액
- 건물 요약: 활성 청구 합계, 승인된 납부 기준 수납액, 연체 호실 목록

두 기능 모두 조회 전용이며 어떤 레코드도 변경하지 않는다.

"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from building_ledger.core.actor import ActorContext
from building_ledger.core.config import settings
from building_ledger.core.errors import ValidationFailed
from building_ledger.models.finance import Charge, ChargeStatus, Payment, PaymentAllocation, PaymentStatus
from building_ledger.services import policy, scope
from building_ledger.services.charges import validate_period

TOP_DELINQUENT_LIMIT = 10


def _month_start(period: str) -> datetime:
    year, month = (int(p) for p in period.split("-"))
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _next_month_start(period: str) -> datetime:
    year, month = (int(p) for p in period.split("-"))
    if month == 12:
        return datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(year, month + 1, 1, tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite는 tzinfo 없이 돌려준다 (저장 값은 UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _ledger_currency(charges: list[Charge]) -> str:
    currencies = {c.currency for c in charges}
    if len(currencies) == 1:
        return currencies.pop()
    return settings.DEFAULT_CURRENCY


"""
호실 원장 조회

- 호실이 요청자의 테넌트 소속이어야 함 (아니면 404)
- RESIDENT / TENANT_OWNER 는 입주 호실만 (아니면 404, 403 아님)
- period_from ~ period_to 범위의 취소되지 않은 청구
- 같은 월 범위에 생성된 호실 납부
- balance = 청구 금액 합계 - 해당 청구들에 적용된 배분 합계

"""

def get_unit_ledger(
    db: Session,
    actor: ActorContext,
    *,
    unit_id: uuid.UUID,
    period_from: str | None = None,
    period_to: str | None = None,
) -> dict:
    policy.require(policy.can_read(actor), "unit ledger", "read")

    if period_from:
        validate_period(period_from)
    if period_to:
        validate_period(period_to)
    if period_from and period_to and period_from > period_to:
        raise ValidationFailed("periodFrom must not be after periodTo")

    unit = scope.unit_belongs_to_tenant(db, actor.tenant_id, unit_id)
    policy.ensure_unit_visible(actor, unit.id)

    charge_stmt = (
        select(Charge)
        .options(selectinload(Charge.allocations))
        .where(Charge.tenant_id == actor.tenant_id, Charge.unit_id == unit.id)
        .where(Charge.canceled_at.is_(None))
    )
    payment_stmt = (
        select(Payment)
        .options(selectinload(Payment.allocations))
        .where(Payment.tenant_id == actor.tenant_id, Payment.unit_id == unit.id)
    )
    if period_from:
        charge_stmt = charge_stmt.where(Charge.period >= period_from)
        payment_stmt = payment_stmt.where(Payment.created_at >= _month_start(period_from))
    if period_to:
        charge_stmt = charge_stmt.where(Charge.period <= period_to)
        payment_stmt = payment_stmt.where(Payment.created_at < _next_month_start(period_to))

    charges = list(db.scalars(charge_stmt.order_by(Charge.due_date.desc())).all())
    payments = list(db.scalars(payment_stmt.order_by(Payment.created_at.desc())).all())

    total_charges = sum(c.amount for c in charges)
    total_allocated = sum(c.allocated_amount for c in charges)

    return {
        "unit_id": unit.id,
        "unit_label": unit.label,
        "building_id": unit.building_id,
        "building_name": unit.building.name,
        "charges": charges,
        "payments": payments,
        "totals": {
            "total_charges": total_charges,
            "total_allocated": total_allocated,
            "balance": total_charges - total_allocated,
            "currency": _ledger_currency(charges),
        },
    }


"""
건물 재무 요약 (관리자 / 운영자)

- total_charges     : 취소되지 않은 청구 금액 합계
- total_paid        : 승인(APPROVED)된 납부에서 온 배분 합계
- total_outstanding : total_charges - total_paid
- 연체: 기한이 지난 PENDING / PARTIAL 청구, 호실별 미수금 상위 10개

"""

def building_financial_summary(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    period: str | None = None,
    now: datetime | None = None,
) -> dict:
    policy.require(policy.can_view_building_summary(actor), "finance summary", "view")
    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)

    stmt = (
        select(Charge)
        .options(selectinload(Charge.allocations).selectinload(PaymentAllocation.payment))
        .where(Charge.tenant_id == actor.tenant_id, Charge.building_id == building_id)
        .where(Charge.canceled_at.is_(None))
    )
    if period:
        validate_period(period)
        stmt = stmt.where(Charge.period == period)
    charges = list(db.scalars(stmt).all())

    total_charges = sum(c.amount for c in charges)
    total_paid = sum(
        a.amount
        for c in charges
        for a in c.allocations
        if a.payment.status == PaymentStatus.APPROVED
    )

    now = _as_utc(now or datetime.now(timezone.utc))
    outstanding_by_unit: dict[uuid.UUID, int] = {}
    for c in charges:
        if c.status not in (ChargeStatus.PENDING, ChargeStatus.PARTIAL):
            continue
        if _as_utc(c.due_date) >= now:
            continue
        outstanding_by_unit[c.unit_id] = outstanding_by_unit.get(c.unit_id, 0) + (c.amount - c.allocated_amount)

    top = sorted(outstanding_by_unit.items(), key=lambda item: item[1], reverse=True)[:TOP_DELINQUENT_LIMIT]

    return {
        "building_id": building_id,
        "period": period,
        "total_charges": total_charges,
        "total_paid": total_paid,
        "total_outstanding": total_charges - total_paid,
        "delinquent_units_count": len(outstanding_by_unit),
        "top_delinquent_units": [{"unit_id": unit_id, "outstanding": amount} for unit_id, amount in top],
        "currency": _ledger_currency(charges),
    }
