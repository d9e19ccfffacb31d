"""
actor.py

요청 행위자(ActorContext)와 역할(Role) 정의.

인증 의존성(get_actor)이 요청마다 한 번 생성하여
서비스 계층까지 그대로 전달한다.
서비스는 역할 문자열 배열 대신 이 객체 하나만 보고
권한 판단(policy)과 호실 범위 필터링을 수행한다.

"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Iterable


"""
테넌트 내 역할(Role) 정의

- TENANT_ADMIN : 테넌트 관리자 (청구/검토/배분 가능)
- OPERATOR     : 운영 담당자 (관리자와 동일한 원장 권한)
- TENANT_OWNER : 호실 소유자 (본인 호실만 조회/납부 제출)
- RESIDENT     : 입주자 (본인 호실만 조회/납부 제출)

"""

class Role(str, Enum):
    TENANT_ADMIN = "TENANT_ADMIN"
    OPERATOR = "OPERATOR"
    TENANT_OWNER = "TENANT_OWNER"
    RESIDENT = "RESIDENT"


def parse_roles(raw: Iterable[str] | None) -> frozenset[Role]:
    # 알 수 없는 역할 문자열은 무시 (다른 서비스 전용 역할 등)
    known = {r.value for r in Role}
    return frozenset(Role(r) for r in (raw or []) if r in known)


@dataclass(frozen=True)
class ActorContext:
    tenant_id: uuid.UUID
    user_id: uuid.UUID
    membership_id: uuid.UUID | None
    roles: frozenset[Role]
    # None 이면 호실 제한 없음 (관리자/운영자)
    accessible_unit_ids: frozenset[uuid.UUID] | None = None

    @property
    def is_unit_restricted(self) -> bool:
        return self.accessible_unit_ids is not None

    def can_see_unit(self, unit_id: uuid.UUID | None) -> bool:
        if self.accessible_unit_ids is None:
            return True
        return unit_id is not None and unit_id in self.accessible_unit_ids
