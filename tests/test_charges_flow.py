"""
청구(Charge) API 통합 테스트.
- 생성 / 중복 방지 / 취소 후 재생성
- period 형식 검증
- 배분이 있는 청구 수정 차단
- 입주자 목록 필터링
"""

from tests.helpers import allocate, auth_header, create_charge, setup_world, submit_payment


def test_create_charge_starts_pending(client, db):
    world = setup_world(db)
    charge = create_charge(client, world, amount=10000)

    assert charge["status"] == "PENDING"
    assert charge["amount"] == 10000
    assert charge["currency"] == "ARS"
    assert charge["allocated_amount"] == 0
    assert charge["canceled_at"] is None


def test_duplicate_active_charge_conflicts_until_canceled(client, db):
    world = setup_world(db)
    first = create_charge(client, world, period="2026-01", concept="MAINTENANCE")

    dup = client.post(
        world.url("/charges"),
        headers=auth_header(world.admin_token),
        json={
            "unit_id": str(world.unit_id),
            "type": "COMMON_EXPENSE",
            "concept": "MAINTENANCE",
            "amount": 10000,
            "period": "2026-01",
            "due_date": "2026-01-10T00:00:00Z",
        },
    )
    assert dup.status_code == 409, dup.text
    body = dup.json()
    assert body["kind"] == "CONFLICT"
    assert body["meta"]["existing_charge_id"] == first["id"]

    cancel = client.delete(world.url(f"/charges/{first['id']}"), headers=auth_header(world.admin_token))
    assert cancel.status_code == 200, cancel.text
    assert cancel.json()["canceled_at"] is not None

    second = create_charge(client, world, period="2026-01", concept="MAINTENANCE")
    assert second["id"] != first["id"]


def test_same_concept_in_other_period_is_allowed(client, db):
    world = setup_world(db)
    create_charge(client, world, period="2026-01")
    create_charge(client, world, period="2026-02")


def test_invalid_period_is_rejected(client, db):
    world = setup_world(db)
    for period, message in (("2026/01", "period must be in 'YYYY-MM' format"), ("2026-13", "month must be between 01 and 12")):
        r = client.post(
            world.url("/charges"),
            headers=auth_header(world.admin_token),
            json={
                "unit_id": str(world.unit_id),
                "type": "COMMON_EXPENSE",
                "concept": "MAINTENANCE",
                "amount": 10000,
                "period": period,
                "due_date": "2026-01-10T00:00:00Z",
            },
        )
        assert r.status_code == 400, r.text
        assert r.json()["kind"] == "VALIDATION_ERROR"
        assert r.json()["detail"] == message


def test_update_charge_without_allocations(client, db):
    world = setup_world(db)
    charge = create_charge(client, world, amount=10000)

    r = client.patch(
        world.url(f"/charges/{charge['id']}"),
        headers=auth_header(world.admin_token),
        json={"amount": 12000, "concept": "MAINTENANCE-FIX"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["amount"] == 12000
    assert r.json()["concept"] == "MAINTENANCE-FIX"


def test_update_locked_charge_conflicts_and_keeps_amount(client, db):
    world = setup_world(db)
    charge = create_charge(client, world, amount=10000)
    payment = submit_payment(client, world, unit_id=world.unit_id, amount=10000)
    assert allocate(client, world, payment_id=payment["id"], charge_id=charge["id"], amount=4000).status_code == 201

    r = client.patch(
        world.url(f"/charges/{charge['id']}"),
        headers=auth_header(world.admin_token),
        json={"amount": 5000},
    )
    assert r.status_code == 409, r.text
    assert r.json()["meta"]["allocation_count"] == 1

    after = client.get(world.url(f"/charges/{charge['id']}"), headers=auth_header(world.admin_token))
    assert after.status_code == 200
    assert after.json()["amount"] == 10000
    assert after.json()["status"] == "PARTIAL"
    assert len(after.json()["allocations"]) == 1


def test_canceled_charges_hidden_by_default(client, db):
    world = setup_world(db)
    keep = create_charge(client, world, concept="MAINTENANCE")
    drop = create_charge(client, world, concept="WATER")
    client.delete(world.url(f"/charges/{drop['id']}"), headers=auth_header(world.admin_token))

    listed = client.get(world.url("/charges"), headers=auth_header(world.admin_token)).json()
    assert [c["id"] for c in listed] == [keep["id"]]

    everything = client.get(world.url("/charges?includeCanceled=true"), headers=auth_header(world.admin_token)).json()
    assert {c["id"] for c in everything} == {keep["id"], drop["id"]}


def test_cancel_is_idempotent(client, db):
    world = setup_world(db)
    charge = create_charge(client, world)

    first = client.delete(world.url(f"/charges/{charge['id']}?reason=typo"), headers=auth_header(world.admin_token))
    second = client.delete(world.url(f"/charges/{charge['id']}"), headers=auth_header(world.admin_token))
    assert first.status_code == second.status_code == 200
    assert first.json()["canceled_at"] == second.json()["canceled_at"]


def test_resident_sees_only_own_unit_charges(client, db):
    world = setup_world(db)
    mine = create_charge(client, world, unit_id=world.unit_ids[0])
    theirs = create_charge(client, world, unit_id=world.unit_ids[1])

    listed = client.get(world.url("/charges"), headers=auth_header(world.resident_token))
    assert listed.status_code == 200
    assert [c["id"] for c in listed.json()] == [mine["id"]]

    hidden = client.get(world.url(f"/charges/{theirs['id']}"), headers=auth_header(world.resident_token))
    assert hidden.status_code == 404

    filtered = client.get(world.url(f"/charges?unitId={world.unit_ids[1]}"), headers=auth_header(world.resident_token))
    assert filtered.status_code == 404


def test_list_limit_is_capped(client, db):
    world = setup_world(db)
    r = client.get(world.url("/charges?limit=501"), headers=auth_header(world.admin_token))
    assert r.status_code == 400
    assert r.json()["kind"] == "VALIDATION_ERROR"


def test_malformed_body_is_validation_error(client, db):
    world = setup_world(db)
    r = client.post(
        world.url("/charges"),
        headers=auth_header(world.admin_token),
        json={
            "unit_id": str(world.unit_id),
            "type": "COMMON_EXPENSE",
            "concept": "MAINTENANCE",
            "amount": 0,
            "due_date": "2026-01-10T00:00:00Z",
        },
    )
    assert r.status_code == 400, r.text
    body = r.json()
    assert body["kind"] == "VALIDATION_ERROR"
    assert body["meta"]["errors"][0]["loc"] == ["body", "amount"]


def test_currency_must_be_three_letters(client, db):
    world = setup_world(db)
    for currency in ("1$x", "AR", "ARSS"):
        r = client.post(
            world.url("/charges"),
            headers=auth_header(world.admin_token),
            json={
                "unit_id": str(world.unit_id),
                "type": "COMMON_EXPENSE",
                "concept": "MAINTENANCE",
                "amount": 10000,
                "currency": currency,
                "due_date": "2026-01-10T00:00:00Z",
            },
        )
        assert r.status_code == 400, (currency, r.text)

    r = client.post(world.url("/payments"), headers=auth_header(world.admin_token), json={"amount": 100, "currency": "u$d"})
    assert r.status_code == 400

    lower = create_charge(client, world, currency="usd")
    assert lower["currency"] == "USD"
