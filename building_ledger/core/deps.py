from typing import Generator
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext, parse_roles
from building_ledger.core.security import decode_access_token
from building_ledger.db.session import SessionLocal
from building_ledger.services import policy, scope

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


"""
요청 행위자(ActorContext) 생성 의존성

- 외부 인증 서버가 발급한 Access Token 검증
- 역할 문자열을 Role 집합으로 변환 (모르는 역할은 무시)
- RESIDENT / TENANT_OWNER 는 이 시점에 접근 가능 호실을 한 번만 계산

"""

def get_actor(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> ActorContext:
    if cred is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(cred.credentials)
        tenant_id = uuid.UUID(payload["tenant_id"])
        user_id = uuid.UUID(payload["sub"])
        membership_id = uuid.UUID(payload["membership_id"]) if payload.get("membership_id") else None
        roles = parse_roles(payload.get("roles"))
    except (JWTError, KeyError, ValueError, TypeError):
        raise _unauthorized("Could not validate credentials")

    accessible = None
    if policy.needs_unit_filter(roles):
        accessible = policy.resolve_accessible_unit_ids(db, tenant_id, user_id)

    return ActorContext(
        tenant_id=tenant_id,
        user_id=user_id,
        membership_id=membership_id,
        roles=roles,
        accessible_unit_ids=accessible,
    )


"""
건물 범위 가드

- /buildings/{building_id}/... 경로에서 사용
- 건물이 요청자의 테넌트 소속이 아니면 존재하지 않는 건물과 동일하게 404

"""

def get_building_actor(
    building_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ActorContext:
    scope.building_belongs_to_tenant(db, actor.tenant_id, building_id)
    return actor
