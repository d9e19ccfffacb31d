"""
charges.py

건물 단위 청구(Charge) API 모음.

주요 기능:
- 호실별 청구 생성 / 목록 / 단건 조회
- 청구 수정 (배분이 없을 때만)
- 청구 취소 (Soft Delete)

설계 원칙:
- 모든 엔드포인트는 건물 범위 가드(get_building_actor)를 거친다
- 비즈니스 규칙은 service 계층(building_ledger.services.charges)에 위임
- 도메인 예외는 main.py의 예외 핸들러가 HTTP 응답으로 변환
- 이 라우터는 트랜잭션 경계(commit / rollback)만 책임진다

"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext
from building_ledger.core.deps import get_db, get_building_actor
from building_ledger.models.finance import ChargeStatus
from building_ledger.schemas.finance import (
    ChargeCreateRequest,
    ChargeDetailResponse,
    ChargeResponse,
    ChargeUpdateRequest,
)
from building_ledger.services import charges as charge_service

router = APIRouter(prefix="/buildings/{building_id}/charges", tags=["charges"])


"""
청구 생성 API

- 관리자 / 운영자 전용
- period 미지정 시 현재 월(UTC)
- 같은 호실/기간/항목의 활성 청구가 있으면 409

"""
@router.post("", response_model=ChargeResponse, status_code=status.HTTP_201_CREATED)
def create_charge(
    building_id: uuid.UUID,
    body: ChargeCreateRequest,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    try:
        charge = charge_service.create_charge(
            db,
            actor,
            building_id=building_id,
            unit_id=body.unit_id,
            type=body.type,
            concept=body.concept,
            amount=body.amount,
            due_date=body.due_date,
            period=body.period,
            currency=body.currency,
        )
        db.commit()
        db.refresh(charge)
        return charge
    except Exception:
        db.rollback()
        raise


"""
청구 목록 조회 API

- 입주자는 본인 입주 호실 청구만
- 기본적으로 취소된 청구 제외 (includeCanceled=true 로 포함)

"""
@router.get("", response_model=list[ChargeResponse])
def list_charges(
    building_id: uuid.UUID,
    period: Optional[str] = Query(default=None, description="예: 2026-01"),
    charge_status: Optional[ChargeStatus] = Query(default=None, alias="status"),
    unit_id: Optional[uuid.UUID] = Query(default=None, alias="unitId"),
    include_canceled: bool = Query(default=False, alias="includeCanceled"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    return charge_service.list_charges(
        db,
        actor,
        building_id=building_id,
        period=period,
        status=charge_status,
        unit_id=unit_id,
        include_canceled=include_canceled,
        limit=limit,
        offset=offset,
    )


@router.get("/{charge_id}", response_model=ChargeDetailResponse)
def get_charge(
    building_id: uuid.UUID,
    charge_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    return charge_service.get_charge(db, actor, building_id=building_id, charge_id=charge_id)


"""
청구 수정 API

- 관리자 / 운영자 전용
- 배분이 하나라도 있으면 409 (취소 후 재발행해야 함)

"""
@router.patch("/{charge_id}", response_model=ChargeResponse)
def update_charge(
    building_id: uuid.UUID,
    charge_id: uuid.UUID,
    body: ChargeUpdateRequest,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    try:
        charge = charge_service.update_charge(
            db,
            actor,
            building_id=building_id,
            charge_id=charge_id,
            patch=body.model_dump(exclude_unset=True),
        )
        db.commit()
        db.refresh(charge)
        return charge
    except Exception:
        db.rollback()
        raise


"""
청구 취소 API

- 실제 삭제가 아닌 canceled_at 기록
- 이미 취소된 청구는 그대로 반환
- 사유(reason)는 변경 로그에만 남김

"""
@router.delete("/{charge_id}", response_model=ChargeResponse)
def cancel_charge(
    building_id: uuid.UUID,
    charge_id: uuid.UUID,
    reason: Optional[str] = Query(default=None, max_length=500),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    try:
        charge = charge_service.cancel_charge(
            db, actor, building_id=building_id, charge_id=charge_id, reason=reason
        )
        db.commit()
        db.refresh(charge)
        return charge
    except Exception:
        db.rollback()
        raise
