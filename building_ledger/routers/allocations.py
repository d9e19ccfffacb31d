"""
allocations.py

납부 배분(Allocation) API.

- POST   : 납부 금액 일부를 청구에 적용하고 청구 상태를 재계산
- DELETE : 배분을 제거하고 청구 상태를 재계산

두 작업 모두 관리자 / 운영자 전용이며,
배분 저장과 상태 재계산은 하나의 commit 으로 반영된다.

"""

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext
from building_ledger.core.deps import get_db, get_building_actor
from building_ledger.schemas.finance import AllocationCreateRequest, AllocationCreatedResponse
from building_ledger.services import allocations as allocation_service

router = APIRouter(prefix="/buildings/{building_id}/allocations", tags=["allocations"])


"""
배분 생성 API

- 납부 / 청구 모두 같은 건물 소속이어야 함 (아니면 404)
- 납부 금액 초과, 중복 쌍, 취소된 청구, 거절된 납부는 409
- 응답에 재계산된 청구 상태(charge_status) 포함

"""
@router.post("", response_model=AllocationCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_allocation(
    building_id: uuid.UUID,
    body: AllocationCreateRequest,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    try:
        allocation = allocation_service.create_allocation(
            db,
            actor,
            building_id=building_id,
            payment_id=body.payment_id,
            charge_id=body.charge_id,
            amount=body.amount,
        )
        db.commit()
        db.refresh(allocation)
        return AllocationCreatedResponse(
            id=allocation.id,
            payment_id=allocation.payment_id,
            charge_id=allocation.charge_id,
            amount=allocation.amount,
            created_at=allocation.created_at,
            charge_status=allocation.charge.status,
        )
    except Exception:
        db.rollback()
        raise


@router.delete("/{allocation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_allocation(
    building_id: uuid.UUID,
    allocation_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    try:
        allocation_service.delete_allocation(db, actor, building_id=building_id, allocation_id=allocation_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
