"""
services/policy.py

원장 접근 정책(Access Policy).

역할 집합만 보고 판단하는 순수 함수들과,
입주자/소유자의 접근 가능 호실을 계산하는 조회 함수 하나로 구성된다.

규칙:
- 청구 작성 / 납부 검토 / 배분 / 건물 요약 : TENANT_ADMIN 또는 OPERATOR
- 납부 제출 / 조회 : 인증된 모든 역할
- RESIDENT / TENANT_OWNER : 활성 입주 중인 호실의 데이터만 조회 가능

실패 처리:
- 역할이 부족하면 PermissionDenied(403)
- 호실 범위 밖이면 ScopeViolation(404) -> 존재 여부를 노출하지 않음

"""

import uuid
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext, Role, parse_roles
from building_ledger.core.errors import PermissionDenied, ScopeViolation
from building_ledger.models.tenancy import Building, Unit, UnitOccupant


_STAFF_ROLES = frozenset({Role.TENANT_ADMIN, Role.OPERATOR})
_UNIT_SCOPED_ROLES = frozenset({Role.RESIDENT, Role.TENANT_OWNER})


def _roles_of(subject: ActorContext | Iterable) -> frozenset:
    if isinstance(subject, ActorContext):
        return subject.roles
    return parse_roles(getattr(r, "value", r) for r in subject)


def is_admin_or_operator(roles) -> bool:
    return bool(_roles_of(roles) & _STAFF_ROLES)


def is_resident_or_owner(roles) -> bool:
    return bool(_roles_of(roles) & _UNIT_SCOPED_ROLES)


def can_read(roles) -> bool:
    return len(_roles_of(roles)) > 0


def can_write_charges(roles) -> bool:
    return is_admin_or_operator(roles)


def can_submit_payments(roles) -> bool:
    return len(_roles_of(roles)) > 0


def can_review_payments(roles) -> bool:
    return is_admin_or_operator(roles)


def can_allocate(roles) -> bool:
    return is_admin_or_operator(roles)


def can_view_building_summary(roles) -> bool:
    return is_admin_or_operator(roles)


def needs_unit_filter(roles) -> bool:
    # 관리자 역할을 함께 가진 경우에는 호실 제한을 걸지 않는다
    return is_resident_or_owner(roles) and not is_admin_or_operator(roles)


def require(allowed: bool, resource: str, action: str) -> None:
    if not allowed:
        raise PermissionDenied(f"You do not have permission to {action} {resource}")


"""
사용자가 활성 입주 중인 호실 ID 집합 조회

- 해당 테넌트 소속 건물의 호실만 포함
- ended_at 이 채워진(퇴거) 입주 기록은 제외
- 빈 집합은 오류가 아니라 "볼 수 있는 레코드 없음"을 의미

"""

def resolve_accessible_unit_ids(db: Session, tenant_id: uuid.UUID, user_id: uuid.UUID) -> frozenset[uuid.UUID]:
    rows = db.scalars(
        select(UnitOccupant.unit_id)
        .join(Unit, Unit.id == UnitOccupant.unit_id)
        .join(Building, Building.id == Unit.building_id)
        .where(UnitOccupant.user_id == user_id)
        .where(UnitOccupant.ended_at.is_(None))
        .where(Building.tenant_id == tenant_id)
        .distinct()
    ).all()
    return frozenset(rows)


def ensure_unit_visible(actor: ActorContext, unit_id: uuid.UUID | None) -> None:
    if not actor.can_see_unit(unit_id):
        raise ScopeViolation("Unit not found or does not belong to you")
