"""SQLAlchemy store implementations.

Inserts use ``INSERT ... ON CONFLICT DO NOTHING`` so a duplicate obligation
or ledger entry is a no-op rather than an error. PostgreSQL and SQLite are
supported.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import Table, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from payroll_ledger.core.types import (
    AuditRecord,
    Employee,
    EmployeeStatus,
    LedgerEntry,
    LedgerFilter,
    ObligationFilter,
    ObligationStatus,
    PaymentObligation,
)
from payroll_ledger.models import (
    AuditLogRecord,
    EmployeeRecord,
    LedgerEntryRecord,
    PaymentObligationRecord,
)
from payroll_ledger.services.stores import Stores


def build_sql_stores(session: AsyncSession) -> Stores:
    """Bundle the SQL stores sharing one session (one transaction)."""
    return Stores(
        employees=SqlEmployeeRepository(session),
        obligations=SqlObligationStore(session),
        ledger=SqlLedgerStore(session),
        audit=SqlAuditStore(session),
        session=session,
    )


def insert_ignoring_conflicts(session: AsyncSession, table: Table, values: dict):
    """Build a dialect-specific insert that skips conflicting rows."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table)
    else:
        raise NotImplementedError(f"Unsupported database dialect: {dialect}")
    return stmt.values(**values).on_conflict_do_nothing()


class SqlEmployeeRepository:
    """Roster reads from the employee table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active(self, as_of: date) -> list[Employee]:
        result = await self.session.execute(
            select(EmployeeRecord)
            .where(EmployeeRecord.payment_status == EmployeeStatus.ACTIVE.value)
            .order_by(EmployeeRecord.employee_id)
        )
        return [record.to_domain() for record in result.scalars().all()]

    async def get(self, employee_id: str) -> Employee | None:
        record = await self.session.get(EmployeeRecord, employee_id)
        return record.to_domain() if record else None


class SqlObligationStore:
    """Payment obligations in the payment_obligation table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_employee_and_period(
        self, employee_id: str, period_start: date
    ) -> PaymentObligation | None:
        result = await self.session.execute(
            select(PaymentObligationRecord).where(
                PaymentObligationRecord.employee_id == employee_id,
                PaymentObligationRecord.period_start == period_start,
            )
        )
        record = result.scalar_one_or_none()
        return record.to_domain() if record else None

    async def get(self, obligation_id: UUID) -> PaymentObligation | None:
        result = await self.session.execute(
            select(PaymentObligationRecord)
            .where(PaymentObligationRecord.obligation_id == obligation_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        return record.to_domain() if record else None

    async def insert(self, obligation: PaymentObligation) -> bool:
        stmt = insert_ignoring_conflicts(
            self.session,
            PaymentObligationRecord.__table__,
            PaymentObligationRecord.values_from(obligation),
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def update_status(
        self, obligation: PaymentObligation, expected_status: ObligationStatus
    ) -> None:
        values = PaymentObligationRecord.values_from(obligation)
        # Identity and generation-time fields never change
        for frozen in ("obligation_id", "employee_id", "period_start", "period_end",
                       "due_date", "amount", "days_worked", "created_at"):
            values.pop(frozen)

        try:
            result = await self.session.execute(
                update(PaymentObligationRecord)
                .where(
                    PaymentObligationRecord.obligation_id == obligation.obligation_id,
                    PaymentObligationRecord.status == expected_status.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            # Another process issued the same check number first
            if "check_number" not in str(e.orig):
                raise
            raise ValidationError(
                f"Check number {obligation.check_number} has already been issued",
                field="check_number",
            ) from e
        if result.rowcount == 1:
            return

        current = await self.get(obligation.obligation_id)
        if current is None:
            raise NotFoundError("Payment", obligation.obligation_id)
        raise InvalidTransitionError(
            current.status.value,
            obligation.status.value,
            "status changed concurrently",
        )

    async def list(self, obligation_filter: ObligationFilter | None = None) -> list[PaymentObligation]:
        criteria = obligation_filter or ObligationFilter()
        query = select(PaymentObligationRecord)

        if criteria.employee_id is not None:
            query = query.where(PaymentObligationRecord.employee_id == criteria.employee_id)
        if criteria.status is not None:
            query = query.where(PaymentObligationRecord.status == criteria.status.value)
        if criteria.date_from is not None:
            query = query.where(PaymentObligationRecord.period_start >= criteria.date_from)
        if criteria.date_to is not None:
            query = query.where(PaymentObligationRecord.period_start <= criteria.date_to)
        if criteria.has_check_number:
            query = query.where(
                PaymentObligationRecord.check_number.is_not(None),
                PaymentObligationRecord.check_number != "",
            )

        query = query.order_by(
            PaymentObligationRecord.period_start.desc(),
            PaymentObligationRecord.employee_id.desc(),
        ).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return [record.to_domain() for record in result.scalars().all()]

    async def list_paid(self, ledger_filter: LedgerFilter | None = None) -> list[PaymentObligation]:
        criteria = ledger_filter or LedgerFilter()
        query = select(PaymentObligationRecord).where(
            PaymentObligationRecord.status == ObligationStatus.PAID.value,
            PaymentObligationRecord.paid_date.is_not(None),
        )
        if criteria.employee_id is not None:
            query = query.where(PaymentObligationRecord.employee_id == criteria.employee_id)
        if criteria.date_from is not None:
            query = query.where(PaymentObligationRecord.paid_date >= criteria.date_from)
        if criteria.date_to is not None:
            query = query.where(PaymentObligationRecord.paid_date <= criteria.date_to)

        query = query.order_by(PaymentObligationRecord.paid_date.desc()).execution_options(
            populate_existing=True
        )
        result = await self.session.execute(query)
        return [record.to_domain() for record in result.scalars().all()]


class SqlLedgerStore:
    """Insert-only access to payment_ledger_entry."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: LedgerEntry) -> bool:
        stmt = insert_ignoring_conflicts(
            self.session,
            LedgerEntryRecord.__table__,
            LedgerEntryRecord.values_from(entry),
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list(self, ledger_filter: LedgerFilter | None = None) -> list[LedgerEntry]:
        criteria = ledger_filter or LedgerFilter()
        query = select(LedgerEntryRecord)
        if criteria.employee_id is not None:
            query = query.where(LedgerEntryRecord.employee_id == criteria.employee_id)
        if criteria.date_from is not None:
            query = query.where(LedgerEntryRecord.paid_date >= criteria.date_from)
        if criteria.date_to is not None:
            query = query.where(LedgerEntryRecord.paid_date <= criteria.date_to)

        result = await self.session.execute(query.order_by(LedgerEntryRecord.created_at))
        return [record.to_domain() for record in result.scalars().all()]

    async def list_for_obligation(self, obligation_id: UUID) -> list[LedgerEntry]:
        result = await self.session.execute(
            select(LedgerEntryRecord)
            .where(LedgerEntryRecord.obligation_id == obligation_id)
            .order_by(LedgerEntryRecord.created_at)
        )
        return [record.to_domain() for record in result.scalars().all()]


class SqlAuditStore:
    """Append-only access to payment_audit_log."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, record: AuditRecord) -> None:
        self.session.add(AuditLogRecord.from_domain(record))
        await self.session.flush()

    async def list_for_obligation(self, obligation_id: UUID) -> list[AuditRecord]:
        result = await self.session.execute(
            select(AuditLogRecord)
            .where(AuditLogRecord.obligation_id == obligation_id)
            .order_by(AuditLogRecord.created_at.desc())
        )
        return [record.to_domain() for record in result.scalars().all()]
