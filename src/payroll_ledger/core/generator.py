"""Weekly payment obligation generator.

Produces one pending obligation per active employee per pay period over a
date range. Generation is idempotent: pairs already present in ``existing``
are skipped, and obligation ids are derived from (employee_id, period_start)
so two runs racing on the same week produce the same identifiers.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from payroll_ledger.core.errors import DuplicateSkipped
from payroll_ledger.core.periods import PayPeriod, Weekday, iter_periods
from payroll_ledger.core.types import (
    Employee,
    GenerationPlan,
    IneligibleSkip,
    ObligationStatus,
    PaymentObligation,
    utcnow,
)

SKIP_INACTIVE = "inactive"
SKIP_BEFORE_PAYMENT_START = "before_payment_start"


def build_obligation(
    employee: Employee,
    period: PayPeriod,
    created_at: datetime,
) -> PaymentObligation:
    """Create a pending obligation with the employee's current rate frozen in."""
    return PaymentObligation(
        obligation_id=PaymentObligation.derive_id(employee.employee_id, period.start),
        employee_id=employee.employee_id,
        period_start=period.start,
        period_end=period.end,
        due_date=period.due_date,
        amount=employee.weekly_amount(),
        days_worked=employee.default_days_worked,
        status=ObligationStatus.PENDING,
        created_at=created_at,
    )


def plan_generation(
    employees: Iterable[Employee],
    existing: Iterable[PaymentObligation],
    range_start: date,
    range_end: date,
    anchor_weekday: Weekday = Weekday.SUNDAY,
    *,
    now: datetime | None = None,
) -> GenerationPlan:
    """Work out which obligations a generation run should create.

    Args:
        employees: Roster snapshot; non-active employees are skipped
        existing: Obligations already stored for the range (any status)
        range_start: First day of the range, normalized back to the anchor day
        range_end: Last day of the range; periods starting after it are excluded
        anchor_weekday: Weekday every period starts on
        now: Creation timestamp for new obligations (defaults to utcnow)

    Returns:
        GenerationPlan with new obligations and skip records
    """
    plan = GenerationPlan()
    created_at = now or utcnow()

    periods = list(iter_periods(range_start, range_end, anchor_weekday))
    if not periods:
        return plan

    # De-duplicate the roster by id, first occurrence wins
    roster: dict[str, Employee] = {}
    for employee in employees:
        roster.setdefault(employee.employee_id, employee)

    taken = {obligation.key for obligation in existing}

    for period in periods:
        for employee in roster.values():
            if not employee.is_active:
                plan.skipped_ineligible.append(
                    IneligibleSkip(employee.employee_id, period.start, SKIP_INACTIVE)
                )
                continue

            if not employee.is_payable_for(period.start):
                plan.skipped_ineligible.append(
                    IneligibleSkip(employee.employee_id, period.start, SKIP_BEFORE_PAYMENT_START)
                )
                continue

            key = (employee.employee_id, period.start)
            if key in taken:
                plan.skipped_duplicate.append(DuplicateSkipped(*key))
                continue

            plan.created.append(build_obligation(employee, period, created_at))
            taken.add(key)

    return plan


def generate_periods(
    employees: Iterable[Employee],
    existing: Iterable[PaymentObligation],
    range_start: date,
    range_end: date,
    anchor_weekday: Weekday = Weekday.SUNDAY,
    *,
    now: datetime | None = None,
) -> list[PaymentObligation]:
    """Return only the new obligations for the range. Caller persists them."""
    return plan_generation(
        employees,
        existing,
        range_start,
        range_end,
        anchor_weekday,
        now=now,
    ).created
