"""
범위(scope) 검증 테스트.
- 다른 테넌트 / 다른 건물 / 존재하지 않는 id 는 모두 같은 404
- 403 은 범위가 맞는데 역할이 부족할 때만
"""

import uuid

import pytest

from building_ledger.core.errors import ScopeViolation
from building_ledger.services import scope
from tests.helpers import auth_header, create_building, create_charge, make_token, setup_world, submit_payment


def test_foreign_tenant_building_is_not_found(client, db):
    mine = setup_world(db)
    theirs = setup_world(db)

    r = client.get(theirs.url("/charges"), headers=auth_header(mine.admin_token))
    assert r.status_code == 404, r.text
    body = r.json()
    assert body["kind"] == "NOT_FOUND"

    missing = client.get(f"/buildings/{uuid.uuid4()}/charges", headers=auth_header(mine.admin_token))
    assert missing.status_code == 404
    assert missing.json()["detail"] == body["detail"]


def test_charge_from_other_building_is_not_found(client, db):
    world = setup_world(db)
    charge = create_charge(client, world)

    other_building, _ = create_building(db, tenant_id=world.tenant_id, name="Torre B")
    r = client.get(
        f"/buildings/{other_building.id}/charges/{charge['id']}",
        headers=auth_header(world.admin_token),
    )
    assert r.status_code == 404
    assert r.json()["kind"] == "NOT_FOUND"


def test_unit_from_other_building_cannot_be_charged(client, db):
    world = setup_world(db)
    _, other_units = create_building(db, tenant_id=world.tenant_id, name="Torre B")

    r = client.post(
        world.url("/charges"),
        headers=auth_header(world.admin_token),
        json={
            "unit_id": str(other_units[0].id),
            "type": "COMMON_EXPENSE",
            "concept": "MAINTENANCE",
            "amount": 10000,
            "period": "2026-01",
            "due_date": "2026-01-10T00:00:00Z",
        },
    )
    assert r.status_code == 404


def test_resident_creating_charge_is_forbidden(client, db):
    world = setup_world(db)
    r = client.post(
        world.url("/charges"),
        headers=auth_header(world.resident_token),
        json={
            "unit_id": str(world.unit_id),
            "type": "COMMON_EXPENSE",
            "concept": "MAINTENANCE",
            "amount": 10000,
            "due_date": "2026-01-10T00:00:00Z",
        },
    )
    assert r.status_code == 403
    assert r.json()["kind"] == "FORBIDDEN"


def test_allocation_scope_checks_payment_and_charge(client, db):
    world = setup_world(db)
    payment = submit_payment(client, world, unit_id=world.unit_id)

    other = setup_world(db)
    foreign_charge = create_charge(client, other)

    r = client.post(
        world.url("/allocations"),
        headers=auth_header(world.admin_token),
        json={"payment_id": payment["id"], "charge_id": foreign_charge["id"], "amount": 100},
    )
    assert r.status_code == 404


def test_scope_helpers_raise_scope_violation(db):
    world = setup_world(db)
    stranger = uuid.uuid4()

    assert scope.building_belongs_to_tenant(db, world.tenant_id, world.building_id).id == world.building_id
    with pytest.raises(ScopeViolation):
        scope.building_belongs_to_tenant(db, stranger, world.building_id)
    with pytest.raises(ScopeViolation):
        scope.unit_belongs_to_tenant(db, stranger, world.unit_id)
    with pytest.raises(ScopeViolation):
        scope.charge_belongs_to_building_and_tenant(db, world.tenant_id, world.building_id, uuid.uuid4())
    with pytest.raises(ScopeViolation):
        scope.payment_belongs_to_building_and_tenant(db, world.tenant_id, world.building_id, uuid.uuid4())


def test_token_without_roles_cannot_read(client, db):
    world = setup_world(db)
    charge = create_charge(client, world)
    submit_payment(client, world, unit_id=world.unit_id)

    for roles in ((), ("SUPERUSER",)):
        token = make_token(tenant_id=world.tenant_id, roles=roles)
        for path in (
            world.url("/charges"),
            world.url(f"/charges/{charge['id']}"),
            world.url("/payments"),
            world.url(f"/payments/{uuid.uuid4()}/allocations"),
            f"/units/{world.unit_id}/ledger",
        ):
            r = client.get(path, headers=auth_header(token))
            assert r.status_code == 403, (roles, path, r.text)
            assert r.json()["kind"] == "FORBIDDEN"
