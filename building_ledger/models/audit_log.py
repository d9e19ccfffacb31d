"""

audit_log.py

원장(ledger) 변경 이력(Audit Log) 모델 정의 파일.

청구 생성/수정/취소, 납부 제출/승인/거절, 배분 생성/삭제,
청구 상태 변경을 DB에 영구적으로 기록하기 위한 로그 테이블을 정의한다.

설계 원칙:
- 실제 데이터 변경과 같은 트랜잭션에서 기록 (변경이 롤백되면 로그도 롤백)
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계
- actor(행위자)와 entity(대상 레코드)를 명확히 구분

"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, Enum as SAEnum, ForeignKey, String, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column

from building_ledger.db.base import Base



#  원장 행위 유형 Enum

class FinanceAction(str, Enum):
    CHARGE_CREATED = "CHARGE_CREATED"
    CHARGE_UPDATED = "CHARGE_UPDATED"
    CHARGE_CANCELED = "CHARGE_CANCELED"
    CHARGE_STATUS_CHANGED = "CHARGE_STATUS_CHANGED"
    PAYMENT_SUBMITTED = "PAYMENT_SUBMITTED"
    PAYMENT_APPROVED = "PAYMENT_APPROVED"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    ALLOCATION_CREATED = "ALLOCATION_CREATED"
    ALLOCATION_DELETED = "ALLOCATION_DELETED"


"""
원장 변경 로그 모델

- tenant_id           : 변경이 발생한 테넌트
- actor_user_id       : 행위자 사용자 ID (상태 재계산 등 시스템 변경은 요청자 기준)
- actor_membership_id : 행위자 멤버십 ID (없을 수 있음)
- action              : 수행된 행위 유형
- entity_type         : 'charge' / 'payment' / 'allocation'
- entity_id           : 대상 레코드 ID
- meta                : 변경 전/후 값 등 부가 정보
- created_at          : 행위 발생 시각 (UTC)

"""

class FinanceAuditLog(Base):
    __tablename__ = "finance_audit_logs"
    __table_args__ = (
        Index("ix_finance_audit_logs_entity", "entity_type", "entity_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    actor_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    actor_membership_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    action: Mapped[FinanceAction] = mapped_column(SAEnum(FinanceAction, name="finance_action"), nullable=False)

    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
