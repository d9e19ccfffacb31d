"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

이 파일은 .env 환경 변수들을 Pydantic BaseSettings를 통해 로드하여
원장(ledger) 서비스 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- 외부 인증 서버가 발급한 JWT 검증용 시크릿
- 기본 통화 / 목록 조회 페이지 크기
- 로그 레벨, CORS 허용 도메인 목록

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- 로컬 / 테스트 / 운영 환경을 .env로 분리하여 관리
- 설정 값은 런타임 중 변경되지 않는 불변 객체로 취급

관련 파일:
- building_ledger.main            : CORS / 로깅 초기화 시 설정 사용
- building_ledger.core.security   : JWT 시크릿 설정 사용
- building_ledger.db.session      : DATABASE_URL 사용

"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


# .env 파일에 정의된 환경 변수를 로드하는 설정 클래스
# extra="ignore" 옵션으로 정의되지 않은 환경 변수는 무시
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str
    TEST_DATABASE_URL: str | None = None

    # 토큰 발급은 외부 인증 서버 담당, 이 서비스는 검증만 수행
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # 청구/납부 요청에 통화가 없을 때 사용 (ISO 4217, 3자리)
    DEFAULT_CURRENCY: str = "ARS"

    # 목록 API 페이지 크기 (limit 미지정 시 기본값 / 최대값)
    LIST_DEFAULT_LIMIT: int = 50
    LIST_MAX_LIMIT: int = 500

    LOG_LEVEL: str = "INFO"

    # CORS 허용 도메인 (프론트엔드 주소)
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]


# 애플리케이션 전역에서 import하여 사용하는 Settings 인스턴스
# 실행 시 한 번만 생성됨
settings = Settings()
