"""
security.py

JWT Access Token 생성/검증 유틸리티.

토큰 발급(로그인)은 외부 인증 서버의 책임이며,
이 서비스는 같은 시크릿으로 서명된 Access Token을 검증만 한다.
create_access_token은 시드 스크립트와 테스트에서 토큰을 만들 때 사용한다.

토큰 클레임:
- sub           : 사용자 ID (UUID 문자열)
- tenant_id     : 요청이 속한 테넌트
- membership_id : 테넌트 내 멤버십 ID (결제 검토자 기록용)
- roles         : 역할 문자열 목록
- type          : "access" 고정
- exp           : 만료 시각 (UTC timestamp)

관련 파일:
- building_ledger.core.config  : 시크릿 키 / 알고리즘
- building_ledger.core.deps    : 토큰을 실제로 검증하는 인증 의존성

"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import jwt, JWTError

from building_ledger.core.config import settings


"""
Access Token 생성 함수

- 외부 인증 서버와 동일한 클레임 구조로 토큰 생성
- roles는 문자열로 직렬화 (Role Enum도 허용)

"""

def create_access_token(
    *,
    subject: str,
    tenant_id: str,
    membership_id: str | None,
    roles: Iterable[str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": subject,
        "type": "access",
        "tenant_id": tenant_id,
        "membership_id": membership_id,
        "roles": [str(getattr(r, "value", r)) for r in roles],
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


"""
Access Token 디코딩 및 검증 함수

- 서명 / 만료(exp) 검증은 jose가 수행
- type이 access가 아니거나 필수 클레임이 없으면 JWTError 발생

"""

def decode_access_token(token: str) -> dict:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Not an access token")
    if not payload.get("sub") or not payload.get("tenant_id"):
        raise JWTError("Missing subject or tenant")
    return payload
