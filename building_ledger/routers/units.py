"""
units.py

호실 원장(Unit Ledger) 및 건물 재무 요약 조회 API.

- GET /units/{unit_id}/ledger               : 호실별 청구 / 납부 / 잔액
- GET /buildings/{building_id}/finance/summary : 건물 재무 요약 (관리자 / 운영자)

조회 전용이므로 commit 하지 않는다.

"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext
from building_ledger.core.deps import get_db, get_actor, get_building_actor
from building_ledger.schemas.finance import BuildingSummaryResponse, UnitLedgerResponse
from building_ledger.services import unit_ledger as ledger_service

router = APIRouter(tags=["ledger"])


"""
호실 원장 조회 API

- 입주자는 본인 입주 호실만 (다른 호실은 404, 403 아님)
- periodFrom / periodTo 는 'YYYY-MM', 둘 다 생략 시 전체 기간

"""
@router.get("/units/{unit_id}/ledger", response_model=UnitLedgerResponse)
def get_unit_ledger(
    unit_id: uuid.UUID,
    period_from: Optional[str] = Query(default=None, alias="periodFrom", description="예: 2026-01"),
    period_to: Optional[str] = Query(default=None, alias="periodTo", description="예: 2026-03"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return ledger_service.get_unit_ledger(
        db, actor, unit_id=unit_id, period_from=period_from, period_to=period_to
    )


@router.get("/buildings/{building_id}/finance/summary", response_model=BuildingSummaryResponse)
def building_financial_summary(
    building_id: uuid.UUID,
    period: Optional[str] = Query(default=None, description="예: 2026-01"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_building_actor),
):
    return ledger_service.building_financial_summary(db, actor, building_id=building_id, period=period)
