"""
services/payments.py

납부(Payment) 접수 및 검토 비즈니스 로직 모음.

주요 기능:
- 납부 제출 (입주자 / 관리자)
- 납부 목록 조회 (입주자는 본인 호실 또는 본인 제출분만)
- 납부 승인 / 거절 (관리자 / 운영자)
- 납부별 배분 내역 조회

규칙:
- 상태 전이는 SUBMITTED -> APPROVED 또는 SUBMITTED -> REJECTED 만 허용
- 검토가 끝난 납부는 되돌리거나 다시 검토할 수 없음 (ConflictError)
- 거절은 금액이나 배분에 어떤 영향도 주지 않음

관련 파일:
- building_ledger.models.finance      : Payment 모델
- building_ledger.routers.payments    : 납부 API

"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from building_ledger.core.actor import ActorContext
from building_ledger.core.config import settings
from building_ledger.core.errors import ConflictError, ScopeViolation
from building_ledger.models.audit_log import FinanceAction
from building_ledger.models.finance import Payment, PaymentAllocation, PaymentMethod, PaymentStatus
from building_ledger.services import policy, scope
from building_ledger.services.audit_log import write_finance_log
from building_ledger.services.charges import clamp_paging

logger = logging.getLogger(__name__)


"""
납부 제출

- 인증된 모든 역할이 제출 가능
- 입주자가 unit_id를 지정하면 본인 입주 호실이어야 함 (아니면 404)
- unit_id가 있으면 역할과 무관하게 건물 소속 검증
- SUBMITTED 상태로 생성

"""

def submit_payment(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    amount: int,
    method: PaymentMethod,
    unit_id: uuid.UUID | None = None,
    currency: str | None = None,
    reference: str | None = None,
    proof_file_id: str | None = None,
) -> Payment:
    policy.require(policy.can_submit_payments(actor), "payments", "submit")

    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)

    if unit_id is not None:
        policy.ensure_unit_visible(actor, unit_id)
        scope.unit_belongs_to_building_and_tenant(db, actor.tenant_id, building_id, unit_id)

    payment = Payment(
        tenant_id=actor.tenant_id,
        building_id=building_id,
        unit_id=unit_id,
        amount=amount,
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        method=method,
        status=PaymentStatus.SUBMITTED,
        reference=reference,
        proof_file_id=proof_file_id,
        created_by_user_id=actor.user_id,
    )
    db.add(payment)
    db.flush()

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.PAYMENT_SUBMITTED,
        entity_type="payment",
        entity_id=payment.id,
        meta={"amount": amount, "unit_id": str(unit_id) if unit_id else None},
    )
    logger.info("payment submitted id=%s building=%s amount=%s", payment.id, building_id, amount)
    return payment


def _visible_to_actor(actor: ActorContext, payment: Payment) -> bool:
    if not actor.is_unit_restricted:
        return True
    return payment.created_by_user_id == actor.user_id or actor.can_see_unit(payment.unit_id)


"""
납부 목록 조회

- RESIDENT / TENANT_OWNER: 입주 호실의 납부 + 본인이 제출한 납부
  (호실 확정 전에 제출한 본인 납부도 보여야 함)
- 관리자 / 운영자: 건물 전체
- 생성일 내림차순, limit 최대 500

"""

def list_payments(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    status: PaymentStatus | None = None,
    unit_id: uuid.UUID | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> list[Payment]:
    policy.require(policy.can_read(actor), "payments", "read")
    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)

    stmt = (
        select(Payment)
        .options(selectinload(Payment.allocations))
        .where(Payment.tenant_id == actor.tenant_id, Payment.building_id == building_id)
    )

    if actor.is_unit_restricted:
        visible = Payment.created_by_user_id == actor.user_id
        if actor.accessible_unit_ids:
            visible = or_(visible, Payment.unit_id.in_(list(actor.accessible_unit_ids)))
        stmt = stmt.where(visible)

    if status:
        stmt = stmt.where(Payment.status == status)
    if unit_id:
        policy.ensure_unit_visible(actor, unit_id)
        stmt = stmt.where(Payment.unit_id == unit_id)

    limit, offset = clamp_paging(limit, offset)
    stmt = stmt.order_by(Payment.created_at.desc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


def _review(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    action: str,
) -> Payment:
    policy.require(policy.can_review_payments(actor), "payments", action)

    payment = scope.payment_belongs_to_building_and_tenant(
        db, actor.tenant_id, building_id, payment_id, for_update=True
    )

    # 검토가 끝난 납부는 최종 상태
    if payment.status != PaymentStatus.SUBMITTED:
        logger.warning("review rejected for payment id=%s status=%s", payment.id, payment.status.value)
        raise ConflictError(
            f"Payment has already been reviewed ({payment.status.value})",
            meta={"payment_id": str(payment.id), "status": payment.status.value},
        )
    return payment


"""
납부 승인

- 관리자 / 운영자만 가능
- paid_at 미지정 시 현재 시각
- reviewed_by_membership_id 에 검토자 멤버십 기록

"""

def approve_payment(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    reviewer_membership_id: uuid.UUID | None,
    paid_at: datetime | None = None,
    notes: str | None = None,
) -> Payment:
    payment = _review(db, actor, building_id=building_id, payment_id=payment_id, action="approve")

    payment.status = PaymentStatus.APPROVED
    payment.paid_at = paid_at or datetime.now(timezone.utc)
    payment.reviewed_by_membership_id = reviewer_membership_id
    db.flush()

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.PAYMENT_APPROVED,
        entity_type="payment",
        entity_id=payment.id,
        meta={"notes": notes} if notes else {},
    )
    logger.info("payment approved id=%s", payment.id)
    return payment


"""
납부 거절

- 관리자 / 운영자만 가능
- 금액 / 배분에는 영향 없음, 사유는 변경 로그에만 남김

"""

def reject_payment(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    reviewer_membership_id: uuid.UUID | None,
    reason: str | None = None,
) -> Payment:
    payment = _review(db, actor, building_id=building_id, payment_id=payment_id, action="reject")

    payment.status = PaymentStatus.REJECTED
    payment.reviewed_by_membership_id = reviewer_membership_id
    db.flush()

    write_finance_log(
        db,
        actor=actor,
        action=FinanceAction.PAYMENT_REJECTED,
        entity_type="payment",
        entity_id=payment.id,
        meta={"reason": reason} if reason else {},
    )
    logger.info("payment rejected id=%s", payment.id)
    return payment


def list_payment_allocations(
    db: Session,
    actor: ActorContext,
    *,
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
) -> list[PaymentAllocation]:
    policy.require(policy.can_read(actor), "payments", "read")

    payment = scope.payment_belongs_to_building_and_tenant(db, actor.tenant_id, building_id, payment_id)
    if not _visible_to_actor(actor, payment):
        raise ScopeViolation("Payment not found or does not belong to this building/tenant")

    return list(
        db.scalars(
            select(PaymentAllocation)
            .options(selectinload(PaymentAllocation.charge))
            .where(PaymentAllocation.tenant_id == actor.tenant_id, PaymentAllocation.payment_id == payment.id)
            .order_by(PaymentAllocation.created_at.desc())
        ).all()
    )
