"""
main.py

FastAPI 애플리케이션 진입점(Entry Point).

주요 역할:
- 로깅 설정 및 FastAPI 앱 인스턴스 생성
- CORS 미들웨어 설정
- 도메인 예외(LedgerError) / 요청 검증 오류 -> HTTP 응답 변환
- 재무 라우터(charges, payments, allocations, units) 등록
- 헬스 체크 및 DB 연결 상태 확인용 엔드포인트 제공

설계 원칙:
- 비즈니스 로직은 포함하지 않고 설정/조립 역할만 수행
- 실제 기능은 routers / services 계층에 위임

"""

import logging

from fastapi import FastAPI, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from building_ledger.core.config import settings
from building_ledger.core.deps import get_db
from building_ledger.core.errors import LedgerError, ValidationFailed
from building_ledger.core.logging import setup_logging
from building_ledger.routers import allocations, charges, payments, units

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Building Ledger API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


"""
도메인 예외 핸들러

- ScopeViolation 404 / PermissionDenied 403 / ValidationFailed 400 / ConflictError 409
- 응답 본문: {"detail": 메시지, "kind": 분류, "meta": 부가 정보}

"""
@app.exception_handler(LedgerError)
def handle_ledger_error(request: Request, exc: LedgerError):
    logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.kind)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


"""
요청 형식 오류 핸들러

- 누락 필드, 범위 밖 값, 알 수 없는 enum 등 pydantic 검증 실패
- 도메인 ValidationFailed 와 같은 400 / VALIDATION_ERROR 로 응답

"""
@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    return JSONResponse(
        status_code=ValidationFailed.status_code,
        content=ValidationFailed("Request validation failed", meta={"errors": errors}).to_body(),
    )


app.include_router(charges.router)
app.include_router(payments.router)
app.include_router(allocations.router)
app.include_router(units.router)

"""
서버 헬스 체크 엔드포인트

"""
@app.get("/health")
def health():
    return {"status": "ok"}

"""
데이터베이스 연결 상태 확인 엔드포인트

- SELECT 1 로 DB 연결 여부 확인

"""
@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    value = db.execute(text("SELECT 1")).scalar_one()
    return {"db": "ok", "value": value}
