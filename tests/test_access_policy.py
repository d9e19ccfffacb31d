"""
접근 정책(policy) 단위 테스트.
- 역할별 허용 여부
- 입주자 접근 가능 호실 계산 (퇴거 / 다른 테넌트 제외)
"""

import uuid
from datetime import datetime, timezone

import pytest

from building_ledger.core.actor import ActorContext, Role, parse_roles
from building_ledger.core.errors import PermissionDenied, ScopeViolation
from building_ledger.models.tenancy import Tenant
from building_ledger.services import policy
from tests.helpers import add_occupant, create_building, setup_world


def _actor(*roles, units=None) -> ActorContext:
    return ActorContext(
        tenant_id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        membership_id=uuid.uuid4(),
        roles=frozenset(roles),
        accessible_unit_ids=units,
    )


@pytest.mark.parametrize("role", [Role.TENANT_ADMIN, Role.OPERATOR])
def test_staff_can_write(role):
    assert policy.can_write_charges([role])
    assert policy.can_review_payments([role])
    assert policy.can_allocate([role])
    assert policy.can_view_building_summary([role])
    assert not policy.needs_unit_filter([role])


@pytest.mark.parametrize("role", [Role.RESIDENT, Role.TENANT_OWNER])
def test_residents_read_and_submit_only(role):
    assert policy.can_read([role])
    assert policy.can_submit_payments([role])
    assert not policy.can_write_charges([role])
    assert not policy.can_review_payments([role])
    assert not policy.can_allocate([role])
    assert policy.needs_unit_filter([role])


def test_staff_role_overrides_unit_filter():
    assert not policy.needs_unit_filter(["RESIDENT", "OPERATOR"])


def test_unknown_roles_grant_nothing():
    assert parse_roles(["SUPERUSER", "RESIDENT"]) == frozenset({Role.RESIDENT})
    assert not policy.can_read(["SUPERUSER"])


def test_require_raises_permission_denied():
    with pytest.raises(PermissionDenied) as exc:
        policy.require(policy.can_allocate(_actor(Role.RESIDENT)), "allocations", "create")
    assert exc.value.status_code == 403
    assert exc.value.kind == "FORBIDDEN"


def test_ensure_unit_visible():
    unit_id = uuid.uuid4()
    policy.ensure_unit_visible(_actor(Role.TENANT_ADMIN), unit_id)
    policy.ensure_unit_visible(_actor(Role.RESIDENT, units=frozenset({unit_id})), unit_id)

    with pytest.raises(ScopeViolation):
        policy.ensure_unit_visible(_actor(Role.RESIDENT, units=frozenset()), unit_id)
    with pytest.raises(ScopeViolation):
        policy.ensure_unit_visible(_actor(Role.RESIDENT, units=frozenset({unit_id})), None)


def test_resolve_accessible_unit_ids(db):
    world = setup_world(db, units=3)
    second, third = world.unit_ids[1], world.unit_ids[2]

    # 두 번째 호실은 퇴거 처리
    ended = add_occupant(db, unit_id=second, user_id=world.resident_id)
    ended.ended_at = datetime.now(timezone.utc)
    db.commit()

    # 같은 테넌트의 다른 건물 입주는 포함
    _, annex_units = create_building(db, tenant_id=world.tenant_id, name="Torre B", units=1)
    add_occupant(db, unit_id=annex_units[0].id, user_id=world.resident_id)

    # 다른 테넌트 건물의 입주 기록은 포함되지 않음
    other = Tenant(name="other")
    db.add(other)
    db.commit()
    _, foreign_units = create_building(db, tenant_id=other.id, units=1)
    add_occupant(db, unit_id=foreign_units[0].id, user_id=world.resident_id)

    ids = policy.resolve_accessible_unit_ids(db, world.tenant_id, world.resident_id)
    assert world.unit_id in ids
    assert second not in ids
    assert third not in ids
    assert annex_units[0].id in ids
    assert foreign_units[0].id not in ids

    assert policy.resolve_accessible_unit_ids(db, other.id, world.resident_id) == frozenset({foreign_units[0].id})
    assert policy.resolve_accessible_unit_ids(db, world.tenant_id, uuid.uuid4()) == frozenset()
