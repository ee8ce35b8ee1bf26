"""In-memory store implementations.

Used by tests. Semantics match the SQL stores: the
(employee_id, period_start) pair and the check number are unique,
status updates are compare-and-set, and the ledger has no update or delete.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable
from uuid import UUID

from payroll_ledger.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from payroll_ledger.core.types import (
    AuditRecord,
    Employee,
    LedgerEntry,
    LedgerFilter,
    ObligationFilter,
    ObligationStatus,
    PaymentObligation,
)


class InMemoryEmployeeRepository:
    """Roster backed by a dict."""

    def __init__(self, employees: Iterable[Employee] = ()):
        self._employees: dict[str, Employee] = {e.employee_id: e for e in employees}

    def put(self, employee: Employee) -> None:
        """Add or replace an employee (HR-side operation)."""
        self._employees[employee.employee_id] = employee

    async def list_active(self, as_of: date) -> list[Employee]:
        return [e for e in self._employees.values() if e.is_active]

    async def get(self, employee_id: str) -> Employee | None:
        return self._employees.get(employee_id)


class InMemoryObligationStore:
    """Obligations keyed by id with a unique (employee_id, period_start) index."""

    def __init__(self) -> None:
        self._by_id: dict[UUID, PaymentObligation] = {}
        self._by_key: dict[tuple[str, date], UUID] = {}

    async def find_by_employee_and_period(
        self, employee_id: str, period_start: date
    ) -> PaymentObligation | None:
        obligation_id = self._by_key.get((employee_id, period_start))
        return self._by_id.get(obligation_id) if obligation_id else None

    async def get(self, obligation_id: UUID) -> PaymentObligation | None:
        return self._by_id.get(obligation_id)

    async def insert(self, obligation: PaymentObligation) -> bool:
        if obligation.key in self._by_key or obligation.obligation_id in self._by_id:
            return False
        self._by_id[obligation.obligation_id] = obligation
        self._by_key[obligation.key] = obligation.obligation_id
        return True

    async def update_status(
        self, obligation: PaymentObligation, expected_status: ObligationStatus
    ) -> None:
        current = self._by_id.get(obligation.obligation_id)
        if current is None:
            raise NotFoundError("Payment", obligation.obligation_id)
        if current.status != expected_status:
            raise InvalidTransitionError(
                current.status.value,
                obligation.status.value,
                "status changed concurrently",
            )
        number = obligation.check_number
        if number and any(
            o.check_number == number and o.obligation_id != obligation.obligation_id
            for o in self._by_id.values()
        ):
            raise ValidationError(
                f"Check number {number} has already been issued", field="check_number"
            )
        self._by_id[obligation.obligation_id] = obligation

    async def list(self, obligation_filter: ObligationFilter | None = None) -> list[PaymentObligation]:
        criteria = obligation_filter or ObligationFilter()
        matched = [o for o in self._by_id.values() if criteria.matches(o)]
        return sorted(matched, key=lambda o: (o.period_start, o.employee_id), reverse=True)

    async def list_paid(self, ledger_filter: LedgerFilter | None = None) -> list[PaymentObligation]:
        criteria = ledger_filter or LedgerFilter()
        return [
            o
            for o in await self.list(ObligationFilter(status=ObligationStatus.PAID))
            if o.paid_date is not None and criteria.matches(o.employee_id, o.paid_date)
        ]


class InMemoryLedgerStore:
    """Append-only list of ledger entries."""

    def __init__(self) -> None:
        self._entries: list[LedgerEntry] = []
        self._ids: set[UUID] = set()

    async def append(self, entry: LedgerEntry) -> bool:
        if entry.entry_id in self._ids:
            return False
        self._entries.append(entry)
        self._ids.add(entry.entry_id)
        return True

    async def list(self, ledger_filter: LedgerFilter | None = None) -> list[LedgerEntry]:
        criteria = ledger_filter or LedgerFilter()
        return [e for e in self._entries if criteria.matches(e.employee_id, e.paid_date)]

    async def list_for_obligation(self, obligation_id: UUID) -> list[LedgerEntry]:
        return [e for e in self._entries if e.obligation_id == obligation_id]


class InMemoryAuditStore:
    """Append-only list of audit records."""

    def __init__(self) -> None:
        self._records: list[AuditRecord] = []

    async def append(self, record: AuditRecord) -> None:
        self._records.append(record)

    async def list_for_obligation(self, obligation_id: UUID) -> list[AuditRecord]:
        matched = [r for r in self._records if r.obligation_id == obligation_id]
        # Stable on equal timestamps: later appends first
        return list(reversed(sorted(matched, key=lambda r: r.created_at)))
