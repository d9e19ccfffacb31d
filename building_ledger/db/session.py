"""
session.py

데이터베이스 엔진 및 세션(Session) 관리 파일.

이 파일은 SQLAlchemy Engine과 SessionLocal을 생성하여
애플리케이션 전반에서 공통으로 사용하는 DB 연결을 관리한다.

FastAPI 의존성(get_db)을 통해
요청 단위로 세션(= 트랜잭션)을 생성/종료하는 구조를 지원한다.
원장 변경(배분 생성 + 청구 상태 재계산)은 하나의 세션 안에서
한 번의 commit으로 반영된다.

설계 원칙:
- DB 연결 설정은 한 곳에서만 정의
- 세션 생성/종료 책임을 명확히 분리
- pool_pre_ping=True로 유휴 연결 오류 방지

관련 파일:
- building_ledger.core.config  : DATABASE_URL 설정
- building_ledger.core.deps    : get_db 의존성

"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from building_ledger.core.config import settings


def engine_kwargs(url: str) -> dict:
    # SQLite(로컬/테스트)는 요청 스레드가 바뀌어도 같은 커넥션을 쓸 수 있어야 함
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# SQLAlchemy Engine 생성
engine = create_engine(settings.DATABASE_URL, **engine_kwargs(settings.DATABASE_URL))

# 요청 단위로 사용할 세션 팩토리
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
