"""Payment generation service: runs the generator against the stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import uuid4

from payroll_ledger.core.errors import DuplicateSkipped
from payroll_ledger.core.generator import plan_generation
from payroll_ledger.core.periods import Weekday, period_start_for, year_range
from payroll_ledger.core.types import (
    AuditAction,
    AuditRecord,
    IneligibleSkip,
    ObligationFilter,
    PaymentObligation,
    utcnow,
)
from payroll_ledger.services.stores import AuditStore, EmployeeRepository, ObligationStore

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Counts reported back to whoever triggered generation."""

    range_start: date
    range_end: date
    created: list[PaymentObligation] = field(default_factory=list)
    skipped_duplicate: list[DuplicateSkipped] = field(default_factory=list)
    skipped_ineligible: list[IneligibleSkip] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_duplicate_count(self) -> int:
        return len(self.skipped_duplicate)

    @property
    def skipped_ineligible_count(self) -> int:
        return len(self.skipped_ineligible)


class GenerationService:
    """Generate weekly obligations for a date range.

    Safe to run repeatedly and concurrently: the plan skips pairs already
    visible, and a pair inserted by a concurrent run between the read and the
    write is caught by the store's uniqueness check and reported as
    DuplicateSkipped rather than an error.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        obligations: ObligationStore,
        audit: AuditStore,
        anchor_weekday: Weekday = Weekday.SUNDAY,
    ):
        self.employees = employees
        self.obligations = obligations
        self.audit = audit
        self.anchor_weekday = anchor_weekday

    async def generate(
        self,
        range_start: date,
        range_end: date,
        *,
        as_of: date | None = None,
        now: datetime | None = None,
    ) -> GenerationReport:
        """Generate and persist obligations for [range_start, range_end].

        Args:
            range_start: First day of the range (normalized to the anchor day)
            range_end: Last day of the range
            as_of: Date used to read the roster (defaults to range_end)
            now: Creation timestamp for new records

        Returns:
            GenerationReport with created and skipped candidates
        """
        report = GenerationReport(range_start=range_start, range_end=range_end)
        if range_start > range_end:
            logger.info("Empty generation range %s..%s", range_start, range_end)
            return report

        roster = await self.employees.list_active(as_of or range_end)
        existing = await self.obligations.list(
            ObligationFilter(
                date_from=period_start_for(range_start, self.anchor_weekday),
                date_to=range_end,
            )
        )
        plan = plan_generation(
            roster,
            existing,
            range_start,
            range_end,
            self.anchor_weekday,
            now=now,
        )
        report.skipped_duplicate.extend(plan.skipped_duplicate)
        report.skipped_ineligible.extend(plan.skipped_ineligible)

        created_at = now or utcnow()
        for obligation in plan.created:
            inserted = await self.obligations.insert(obligation)
            if not inserted:
                logger.debug(
                    "Obligation for employee %s week %s already exists",
                    obligation.employee_id,
                    obligation.period_start,
                )
                report.skipped_duplicate.append(
                    DuplicateSkipped(obligation.employee_id, obligation.period_start)
                )
                continue
            report.created.append(obligation)
            await self.audit.append(
                AuditRecord(
                    audit_id=uuid4(),
                    obligation_id=obligation.obligation_id,
                    action=AuditAction.GENERATED,
                    created_at=created_at,
                )
            )

        logger.info(
            "Generated payments for %s..%s: created=%d skipped_duplicate=%d skipped_ineligible=%d",
            range_start,
            range_end,
            report.created_count,
            report.skipped_duplicate_count,
            report.skipped_ineligible_count,
        )
        return report

    async def generate_year(self, year: int, *, now: datetime | None = None) -> GenerationReport:
        """Generate every weekly obligation for a calendar year."""
        range_start, range_end = year_range(year)
        return await self.generate(range_start, range_end, now=now)
