"""
청구 상태 계산 테스트.
- 순수 함수(derive_charge_status) 경계값
- 재계산(recalculate_charge_status)은 변화가 없으면 쓰지 않는다
"""

import uuid
from datetime import datetime, timezone

import pytest

from building_ledger.models.finance import (
    Charge,
    ChargeStatus,
    ChargeType,
    Payment,
    PaymentAllocation,
    PaymentMethod,
    PaymentStatus,
)
from building_ledger.services.allocations import derive_charge_status, recalculate_charge_status
from tests.helpers import setup_world


@pytest.mark.parametrize(
    "amounts, charge_amount, expected",
    [
        ([], 10000, ChargeStatus.PENDING),
        ([0], 10000, ChargeStatus.PENDING),
        ([4000], 10000, ChargeStatus.PARTIAL),
        ([4000, 5999], 10000, ChargeStatus.PARTIAL),
        ([4000, 6000], 10000, ChargeStatus.PAID),
        ([12000], 10000, ChargeStatus.PAID),
    ],
)
def test_derive_charge_status(amounts, charge_amount, expected):
    assert derive_charge_status(amounts, charge_amount) == expected


def _seed_charge_with_allocation(db, *, charge_amount: int, allocated: int) -> Charge:
    world = setup_world(db)
    charge = Charge(
        tenant_id=world.tenant_id,
        building_id=world.building_id,
        unit_id=world.unit_id,
        period="2026-01",
        type=ChargeType.COMMON_EXPENSE,
        concept="MAINTENANCE",
        amount=charge_amount,
        currency="ARS",
        due_date=datetime(2026, 1, 10, tzinfo=timezone.utc),
    )
    payment = Payment(
        tenant_id=world.tenant_id,
        building_id=world.building_id,
        unit_id=world.unit_id,
        amount=allocated,
        currency="ARS",
        method=PaymentMethod.TRANSFER,
        status=PaymentStatus.APPROVED,
        created_by_user_id=uuid.uuid4(),
    )
    db.add_all([charge, payment])
    db.flush()
    db.add(PaymentAllocation(tenant_id=world.tenant_id, payment_id=payment.id, charge_id=charge.id, amount=allocated))
    db.commit()
    return charge


def test_recalculate_writes_once_then_is_idempotent(db):
    charge = _seed_charge_with_allocation(db, charge_amount=10000, allocated=4000)
    assert charge.status == ChargeStatus.PENDING

    assert recalculate_charge_status(db, charge.id) is True
    db.commit()
    assert charge.status == ChargeStatus.PARTIAL
    updated_at = charge.updated_at

    # 배분 변경 없이 다시 호출하면 쓰기 없음
    assert recalculate_charge_status(db, charge.id) is False
    assert recalculate_charge_status(db, charge.id) is False
    db.commit()
    db.refresh(charge)
    assert charge.status == ChargeStatus.PARTIAL
    assert charge.updated_at == updated_at


def test_recalculate_unknown_charge_returns_false(db):
    assert recalculate_charge_status(db, uuid.uuid4()) is False
