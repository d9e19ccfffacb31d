"""
payments.py

건물 단위 납부(Payment) API 모음.

주요 기능:
- 납부 제출 (입주자 / 관리자)
- 납부 목록 조회
- 납부 승인 / 거절 (관리자 / 운영자)
- 납부별 배분 내역 조회

관련 파일:
- building_ledger.services.payments   : 납부 규칙
- building_ledger.schemas.finance     : 요청/응답 스키마

"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext
from building_ledger.core.deps import get_db, get_building_actor
from building_ledger.models.finance import PaymentStatus
from building_ledger.schemas.finance import (
    PaymentAllocationResponse,
    PaymentApproveRequest,
    PaymentRejectRequest,
    PaymentResponse,
    PaymentSubmitRequest,
)
from building_ledger.services import payments as payment_service

router = APIRouter(prefix="/buildings/{building_id}/payments", tags=["payments"])


"""
납부 제출 API

- 인증된 모든 역할 사용 가능
- 입주자는 본인 입주 호실로만 unit_id 지정 가능 (아니면 404)
- SUBMITTED 상태로 생성, 검토는 관리자가 별도로 수행

"""
@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def submit_payment(
    building_id: uuid.UUID,
    body: PaymentSubmitRequest,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    try:
        payment = payment_service.submit_payment(
            db,
            actor,
            building_id=building_id,
            amount=body.amount,
            method=body.method,
            unit_id=body.unit_id,
            currency=body.currency,
            reference=body.reference,
            proof_file_id=body.proof_file_id,
        )
        db.commit()
        db.refresh(payment)
        return payment
    except Exception:
        db.rollback()
        raise


@router.get("", response_model=list[PaymentResponse])
def list_payments(
    building_id: uuid.UUID,
    payment_status: Optional[PaymentStatus] = Query(default=None, alias="status"),
    unit_id: Optional[uuid.UUID] = Query(default=None, alias="unitId"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    return payment_service.list_payments(
        db,
        actor,
        building_id=building_id,
        status=payment_status,
        unit_id=unit_id,
        limit=limit,
        offset=offset,
    )


"""
납부 승인 API

- 관리자 / 운영자 전용
- SUBMITTED 상태에서만 가능, 이미 검토된 납부는 409
- 검토자 멤버십은 토큰의 membership_id

"""
@router.patch("/{payment_id}/approve", response_model=PaymentResponse)
def approve_payment(
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    body: Optional[PaymentApproveRequest] = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    body = body or PaymentApproveRequest()
    try:
        payment = payment_service.approve_payment(
            db,
            actor,
            building_id=building_id,
            payment_id=payment_id,
            reviewer_membership_id=actor.membership_id,
            paid_at=body.paid_at,
            notes=body.notes,
        )
        db.commit()
        db.refresh(payment)
        return payment
    except Exception:
        db.rollback()
        raise


"""
납부 거절 API

- 관리자 / 운영자 전용
- 거절된 납부는 배분할 수 없음

"""
@router.patch("/{payment_id}/reject", response_model=PaymentResponse)
def reject_payment(
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    body: Optional[PaymentRejectRequest] = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    body = body or PaymentRejectRequest()
    try:
        payment = payment_service.reject_payment(
            db,
            actor,
            building_id=building_id,
            payment_id=payment_id,
            reviewer_membership_id=actor.membership_id,
            reason=body.reason,
        )
        db.commit()
        db.refresh(payment)
        return payment
    except Exception:
        db.rollback()
        raise


@router.get("/{payment_id}/allocations", response_model=list[PaymentAllocationResponse])
def list_payment_allocations(
    building_id: uuid.UUID,
    payment_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    return payment_service.list_payment_allocations(
        db, actor, building_id=building_id, payment_id=payment_id
    )
