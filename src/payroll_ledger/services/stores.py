"""Repository interfaces consumed by the payroll services.

Services receive these explicitly; nothing reaches for a global client.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import UUID

from payroll_ledger.core.types import (
    AuditRecord,
    Employee,
    LedgerEntry,
    LedgerFilter,
    ObligationFilter,
    ObligationStatus,
    PaymentObligation,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


@runtime_checkable
class EmployeeRepository(Protocol):
    """Read-only roster access."""

    async def list_active(self, as_of: date) -> list[Employee]:
        """Employees with active payment status as of a date."""
        ...

    async def get(self, employee_id: str) -> Employee | None:
        ...


@runtime_checkable
class ObligationStore(Protocol):
    """Storage for payment obligations.

    Implementations must enforce uniqueness on (employee_id, period_start).
    """

    async def find_by_employee_and_period(
        self, employee_id: str, period_start: date
    ) -> PaymentObligation | None:
        ...

    async def get(self, obligation_id: UUID) -> PaymentObligation | None:
        ...

    async def insert(self, obligation: PaymentObligation) -> bool:
        """Insert an obligation. Returns False if the pair already exists."""
        ...

    async def update_status(
        self, obligation: PaymentObligation, expected_status: ObligationStatus
    ) -> None:
        """Persist a transitioned obligation.

        Compare-and-set: raises InvalidTransitionError if the stored status
        is no longer ``expected_status``.
        """
        ...

    async def list(self, obligation_filter: ObligationFilter | None = None) -> list[PaymentObligation]:
        ...

    async def list_paid(self, ledger_filter: LedgerFilter | None = None) -> list[PaymentObligation]:
        """Paid obligations, filtered on paid date and employee."""
        ...


@runtime_checkable
class LedgerStore(Protocol):
    """Insert-only ledger storage. There is no update or delete."""

    async def append(self, entry: LedgerEntry) -> bool:
        """Append an entry. Returns False if the entry id already exists."""
        ...

    async def list(self, ledger_filter: LedgerFilter | None = None) -> list[LedgerEntry]:
        ...

    async def list_for_obligation(self, obligation_id: UUID) -> list[LedgerEntry]:
        ...


@runtime_checkable
class AuditStore(Protocol):
    """Append-only audit trail per obligation."""

    async def append(self, record: AuditRecord) -> None:
        ...

    async def list_for_obligation(self, obligation_id: UUID) -> list[AuditRecord]:
        """Audit records for an obligation, newest first."""
        ...


@dataclass
class Stores:
    """The stores one unit of work runs against.

    ``commit`` and ``rollback`` are no-ops without a session, so in-memory
    bundles can stand in for SQL ones.
    """

    employees: EmployeeRepository
    obligations: ObligationStore
    ledger: LedgerStore
    audit: AuditStore
    session: AsyncSession | None = None

    async def commit(self) -> None:
        if self.session is not None:
            await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
