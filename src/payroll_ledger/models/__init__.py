"""SQLAlchemy ORM models."""

from payroll_ledger.models.base import Base, TimestampMixin
from payroll_ledger.models.employee import EmployeeRecord
from payroll_ledger.models.payments import (
    AuditLogRecord,
    LedgerEntryRecord,
    PaymentObligationRecord,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "EmployeeRecord",
    "AuditLogRecord",
    "LedgerEntryRecord",
    "PaymentObligationRecord",
]
