"""

로컬 개발용 건물 원장 시드 스크립트.

- 테넌트 1개, 건물 1개, 호실 N개를 만들고
  첫 번째 호실에 RESIDENT 입주 기록을 하나 추가한다.
- 관리자 / 입주자 Access Token을 출력한다.
  (실제 운영에서는 외부 인증 서버가 토큰을 발급한다)

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.seed_building

환경 변수 (선택)
- SEED_TENANT_NAME   : 테넌트 이름 (기본 "Demo Tenant")
- SEED_BUILDING_NAME : 건물 이름 (기본 "Torre A")
- SEED_UNIT_COUNT    : 호실 수 (기본 4)

"""

import os
import uuid
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select
from building_ledger.db.session import SessionLocal
from building_ledger.core.actor import Role
from building_ledger.core.security import create_access_token
from building_ledger.models.tenancy import Tenant, Building, Unit, UnitOccupant



def main():
    db = SessionLocal()
    try:
        tenant_name = os.environ.get("SEED_TENANT_NAME", "Demo Tenant")
        building_name = os.environ.get("SEED_BUILDING_NAME", "Torre A")
        unit_count = int(os.environ.get("SEED_UNIT_COUNT", "4"))

        tenant = db.scalar(select(Tenant).where(Tenant.name == tenant_name))
        if tenant:
            print(f"✅ Tenant '{tenant_name}' already exists. Skip creation.")
            return

        tenant = Tenant(name=tenant_name)
        db.add(tenant)
        db.flush()

        building = Building(tenant_id=tenant.id, name=building_name)
        db.add(building)
        db.flush()

        units = [Unit(building_id=building.id, label=f"{i + 1:02d}") for i in range(unit_count)]
        db.add_all(units)
        db.flush()

        resident_id = uuid.uuid4()
        db.add(UnitOccupant(unit_id=units[0].id, user_id=resident_id, role="RESIDENT"))
        db.commit()

        admin_token = create_access_token(
            subject=str(uuid.uuid4()),
            tenant_id=str(tenant.id),
            membership_id=str(uuid.uuid4()),
            roles=[Role.TENANT_ADMIN],
        )
        resident_token = create_access_token(
            subject=str(resident_id),
            tenant_id=str(tenant.id),
            membership_id=str(uuid.uuid4()),
            roles=[Role.RESIDENT],
        )

        print(f"🚀 Tenant created: {tenant.id}")
        print(f"   Building: {building.id} ({building_name})")
        print(f"   Units: {', '.join(str(u.id) for u in units)}")
        print(f"   ADMIN token   : {admin_token}")
        print(f"   RESIDENT token: {resident_token}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
