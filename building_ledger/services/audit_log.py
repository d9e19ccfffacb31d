"""
services/audit_log.py

원장 변경 로그 기록 서비스.

청구 / 납부 / 배분 서비스에서 호출되며,
로그 레코드를 현재 세션에 추가만 한다.

NOTE:
- db.commit()은 호출 측(라우터)에서 수행
- 주 작업이 롤백되면 로그도 함께 롤백된다

"""

import uuid

from sqlalchemy.orm import Session

from building_ledger.core.actor import ActorContext
from building_ledger.models.audit_log import FinanceAction, FinanceAuditLog


def write_finance_log(
    db: Session,
    *,
    actor: ActorContext,
    action: FinanceAction,
    entity_type: str,
    entity_id: uuid.UUID,
    meta: dict | None = None,
) -> FinanceAuditLog:
    log = FinanceAuditLog(
        tenant_id=actor.tenant_id,
        actor_user_id=actor.user_id,
        actor_membership_id=actor.membership_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta=meta or {},
    )
    db.add(log)
    return log
