"""
errors.py

원장(ledger) 도메인 예외 정의 파일.

서비스 계층은 HTTP를 모르는 상태로 아래 예외만 발생시키고,
main.py에 등록된 예외 핸들러가 상태 코드와 응답 본문으로 변환한다.

- ScopeViolation    (404) : 테넌트/건물/호실 소속이 맞지 않거나 존재하지 않음
- PermissionDenied  (403) : 범위는 맞지만 역할(role)이 작업을 허용하지 않음
- ValidationFailed  (400) : 형식이 잘못되었거나 필수 값 누락
- ConflictError     (409) : 유일성 / 금액 보존 규칙 위반

설계 원칙:
- "다른 테넌트 소유"와 "존재하지 않음"은 같은 ScopeViolation으로 처리
- 응답에는 항상 kind(기계 판독용) + detail(사람용 메시지)을 포함
- ConflictError는 meta에 한도/현재값 또는 충돌한 id 쌍을 담는다

"""


class LedgerError(Exception):
    kind = "LEDGER_ERROR"
    status_code = 500

    def __init__(self, message: str, *, meta: dict | None = None):
        super().__init__(message)
        self.message = message
        self.meta = meta or {}

    def to_body(self) -> dict:
        return {"detail": self.message, "kind": self.kind, "meta": self.meta}


class ScopeViolation(LedgerError):
    kind = "NOT_FOUND"
    status_code = 404


class PermissionDenied(LedgerError):
    kind = "FORBIDDEN"
    status_code = 403


class ValidationFailed(LedgerError):
    kind = "VALIDATION_ERROR"
    status_code = 400


class ConflictError(LedgerError):
    kind = "CONFLICT"
    status_code = 409
