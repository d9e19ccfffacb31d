# tests/helpers.py
import uuid
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from building_ledger.core.actor import Role
from building_ledger.core.security import create_access_token
from building_ledger.models.tenancy import Building, Tenant, Unit, UnitOccupant


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_token(*, tenant_id: uuid.UUID, user_id: uuid.UUID | None = None, roles=(Role.TENANT_ADMIN,)) -> str:
    return create_access_token(
        subject=str(user_id or uuid.uuid4()),
        tenant_id=str(tenant_id),
        membership_id=str(uuid.uuid4()),
        roles=roles,
    )


@dataclass
class LedgerWorld:
    tenant_id: uuid.UUID
    building_id: uuid.UUID
    unit_ids: list[uuid.UUID]
    resident_id: uuid.UUID
    admin_token: str
    resident_token: str
    extra: dict = field(default_factory=dict)

    @property
    def unit_id(self) -> uuid.UUID:
        return self.unit_ids[0]

    def url(self, path: str = "") -> str:
        return f"/buildings/{self.building_id}{path}"


def create_building(db: Session, *, tenant_id: uuid.UUID, name: str = "Torre A", units: int = 2) -> tuple[Building, list[Unit]]:
    building = Building(tenant_id=tenant_id, name=name)
    db.add(building)
    db.flush()

    unit_rows = [Unit(building_id=building.id, label=f"{i + 1}A") for i in range(units)]
    db.add_all(unit_rows)
    db.commit()
    return building, unit_rows


def add_occupant(db: Session, *, unit_id: uuid.UUID, user_id: uuid.UUID, role: str = "RESIDENT") -> UnitOccupant:
    occupant = UnitOccupant(unit_id=unit_id, user_id=user_id, role=role)
    db.add(occupant)
    db.commit()
    return occupant


def setup_world(db: Session, *, units: int = 2) -> LedgerWorld:
    """
    테넌트 1개 + 건물 1개 + 호실 N개 + 첫 호실에 입주한 RESIDENT 1명 세팅
    """
    tenant = Tenant(name=f"tenant-{uuid.uuid4().hex[:6]}")
    db.add(tenant)
    db.commit()

    building, unit_rows = create_building(db, tenant_id=tenant.id, units=units)

    resident_id = uuid.uuid4()
    add_occupant(db, unit_id=unit_rows[0].id, user_id=resident_id)

    return LedgerWorld(
        tenant_id=tenant.id,
        building_id=building.id,
        unit_ids=[u.id for u in unit_rows],
        resident_id=resident_id,
        admin_token=make_token(tenant_id=tenant.id),
        resident_token=make_token(tenant_id=tenant.id, user_id=resident_id, roles=(Role.RESIDENT,)),
    )


def create_charge(client, world: LedgerWorld, *, unit_id=None, amount=10000, concept="MAINTENANCE", period="2026-01", **extra) -> dict:
    body = {
        "unit_id": str(unit_id or world.unit_id),
        "type": "COMMON_EXPENSE",
        "concept": concept,
        "amount": amount,
        "period": period,
        "due_date": "2026-01-10T00:00:00Z",
        **extra,
    }
    r = client.post(world.url("/charges"), headers=auth_header(world.admin_token), json=body)
    assert r.status_code == 201, r.text
    return r.json()


def submit_payment(client, world: LedgerWorld, *, token=None, unit_id=None, amount=10000, **extra) -> dict:
    body = {"amount": amount, "method": "TRANSFER", **extra}
    if unit_id is not None:
        body["unit_id"] = str(unit_id)
    r = client.post(world.url("/payments"), headers=auth_header(token or world.admin_token), json=body)
    assert r.status_code == 201, r.text
    return r.json()


def allocate(client, world: LedgerWorld, *, payment_id: str, charge_id: str, amount: int):
    return client.post(
        world.url("/allocations"),
        headers=auth_header(world.admin_token),
        json={"payment_id": payment_id, "charge_id": charge_id, "amount": amount},
    )
