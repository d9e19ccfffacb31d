# Base.metadata에 모든 테이블을 등록하기 위해 모델을 한 곳에서 import
from building_ledger.models.tenancy import Tenant, Building, Unit, UnitOccupant  # noqa: F401
from building_ledger.models.finance import (  # noqa: F401
    Charge,
    ChargeStatus,
    ChargeType,
    Payment,
    PaymentAllocation,
    PaymentMethod,
    PaymentStatus,
)
from building_ledger.models.audit_log import FinanceAuditLog, FinanceAction  # noqa: F401
