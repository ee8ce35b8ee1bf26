"""Ledger read side: batches and yearly archives computed on demand."""

from __future__ import annotations

from datetime import date

from payroll_ledger.core.projector import archive_year, project_batches
from payroll_ledger.core.types import LedgerArchive, LedgerBatch, LedgerFilter
from payroll_ledger.services.stores import LedgerStore, ObligationStore


class LedgerQueryService:
    """Projects batches from the stores on every call. Holds no cache."""

    def __init__(self, obligations: ObligationStore, ledger: LedgerStore):
        self.obligations = obligations
        self.ledger = ledger

    async def batches(self, ledger_filter: LedgerFilter | None = None) -> list[LedgerBatch]:
        entries = await self.ledger.list(ledger_filter)
        paid = await self.obligations.list_paid(ledger_filter)
        return project_batches(entries, paid, ledger_filter)

    async def archive(self, year: int, employee_id: str | None = None) -> LedgerArchive:
        ledger_filter = LedgerFilter(
            employee_id=employee_id,
            date_from=date(year, 1, 1),
            date_to=date(year, 12, 31),
        )
        return archive_year(await self.batches(ledger_filter), year)
