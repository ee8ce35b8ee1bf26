"""Tests for weekly obligation generation.

Includes property-based checks that generation is idempotent and never
produces two obligations for the same (employee, week).
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from payroll_ledger.core.errors import DuplicateSkipped
from payroll_ledger.core.generator import (
    SKIP_BEFORE_PAYMENT_START,
    SKIP_INACTIVE,
    generate_periods,
    plan_generation,
)
from payroll_ledger.core.periods import Weekday
from payroll_ledger.core.types import Employee, EmployeeStatus, ObligationStatus, PaymentObligation

NOW = datetime(2024, 2, 5, 12, 0, tzinfo=timezone.utc)
RANGE_START = date(2024, 1, 7)
RANGE_END = date(2024, 2, 3)


class TestPlanGeneration:
    """Test one generation pass over a date range."""

    def test_one_obligation_per_employee_per_week(self, make_employee):
        roster = [make_employee("E-1", "1000.00"), make_employee("E-2", "900.00")]

        plan = plan_generation(roster, [], RANGE_START, RANGE_END, now=NOW)

        assert len(plan.created) == 8
        assert Counter(o.employee_id for o in plan.created) == {"E-1": 4, "E-2": 4}
        assert plan.counts() == {"created": 8, "skipped_duplicate": 0, "skipped_ineligible": 0}

    def test_obligation_fields(self, make_employee):
        plan = plan_generation([make_employee("E-1", "1000.00")], [], RANGE_START, RANGE_START, now=NOW)

        [obligation] = plan.created
        assert obligation.obligation_id == PaymentObligation.derive_id("E-1", RANGE_START)
        assert obligation.period_start == date(2024, 1, 7)
        assert obligation.period_end == date(2024, 1, 13)
        assert obligation.due_date == date(2024, 1, 14)
        assert obligation.amount == Decimal("1000.00")
        assert obligation.status == ObligationStatus.PENDING
        assert obligation.paid_date is None
        assert obligation.check_number is None
        assert obligation.created_at == NOW

    def test_existing_pairs_are_skipped(self, make_employee):
        roster = [make_employee("E-1")]
        first = plan_generation(roster, [], RANGE_START, RANGE_END, now=NOW)

        second = plan_generation(roster, first.created, RANGE_START, RANGE_END, now=NOW)

        assert second.created == []
        assert second.skipped_duplicate == [
            DuplicateSkipped("E-1", o.period_start) for o in first.created
        ]

    def test_payment_start_date_excludes_earlier_weeks(self, make_employee):
        delayed = make_employee("E-3", "800.00", payment_start_date=date(2024, 1, 21))

        plan = plan_generation([delayed], [], RANGE_START, RANGE_END, now=NOW)

        assert [o.period_start for o in plan.created] == [date(2024, 1, 21), date(2024, 1, 28)]
        assert [(s.period_start, s.reason) for s in plan.skipped_ineligible] == [
            (date(2024, 1, 7), SKIP_BEFORE_PAYMENT_START),
            (date(2024, 1, 14), SKIP_BEFORE_PAYMENT_START),
        ]

    def test_midweek_payment_start_skips_that_week(self, make_employee):
        # Starts Wednesday 2024-01-17; the week starting 2024-01-14 began earlier
        employee = make_employee("E-3", payment_start_date=date(2024, 1, 17))

        plan = plan_generation([employee], [], RANGE_START, RANGE_END, now=NOW)

        assert [o.period_start for o in plan.created] == [date(2024, 1, 21), date(2024, 1, 28)]

    def test_inactive_employees_are_skipped(self, make_employee):
        roster = [
            make_employee("E-1"),
            make_employee("E-2", status=EmployeeStatus.PAUSED),
            make_employee("E-3", status=EmployeeStatus.LAID_OFF),
        ]

        plan = plan_generation(roster, [], RANGE_START, RANGE_START, now=NOW)

        assert [o.employee_id for o in plan.created] == ["E-1"]
        assert {(s.employee_id, s.reason) for s in plan.skipped_ineligible} == {
            ("E-2", SKIP_INACTIVE),
            ("E-3", SKIP_INACTIVE),
        }

    def test_duplicate_roster_entries_are_collapsed(self, make_employee):
        roster = [make_employee("E-1", "1000.00"), make_employee("E-1", "5000.00")]

        plan = plan_generation(roster, [], RANGE_START, RANGE_START, now=NOW)

        assert len(plan.created) == 1
        assert plan.created[0].amount == Decimal("1000.00")

    def test_inverted_range_creates_nothing(self, make_employee):
        plan = plan_generation([make_employee("E-1")], [], RANGE_END, RANGE_START, now=NOW)

        assert plan.created == []
        assert plan.counts() == {"created": 0, "skipped_duplicate": 0, "skipped_ineligible": 0}

    def test_custom_anchor_weekday(self, make_employee):
        plan = plan_generation(
            [make_employee("E-1")],
            [],
            date(2024, 1, 10),
            date(2024, 1, 21),
            Weekday.MONDAY,
            now=NOW,
        )

        assert [o.period_start for o in plan.created] == [date(2024, 1, 8), date(2024, 1, 15)]


class TestAmounts:
    """Test rate snapshot and proration."""

    def test_partial_week_is_prorated(self, make_employee):
        employee = make_employee("E-1", "1000.00", default_days_worked=3)

        [obligation] = generate_periods([employee], [], RANGE_START, RANGE_START, now=NOW)

        assert obligation.amount == Decimal("600.00")
        assert obligation.days_worked == 3

    def test_proration_rounds_half_up_to_cents(self, make_employee):
        # 999.99 * 2 / 5 = 399.996
        employee = make_employee("E-1", "999.99", default_days_worked=2)

        [obligation] = generate_periods([employee], [], RANGE_START, RANGE_START, now=NOW)

        assert obligation.amount == Decimal("400.00")

    def test_rate_change_does_not_touch_existing_obligations(self, make_employee):
        first = generate_periods([make_employee("E-1", "1000.00")], [], RANGE_START, RANGE_START, now=NOW)

        raised = make_employee("E-1", "1200.00")
        second = generate_periods([raised], first, RANGE_START, date(2024, 1, 14), now=NOW)

        assert first[0].amount == Decimal("1000.00")
        assert [(o.period_start, o.amount) for o in second] == [
            (date(2024, 1, 14), Decimal("1200.00"))
        ]


# =============================================================================
# Properties
# =============================================================================

employee_ids = st.lists(
    st.text(alphabet="ABCDEFGH0123456789", min_size=1, max_size=6),
    min_size=1,
    max_size=6,
)
start_dates = st.dates(min_value=date(2000, 1, 1), max_value=date(2040, 12, 31))


def _roster(ids: list[str]) -> list[Employee]:
    return [Employee(employee_id=i, name=i, weekly_rate=Decimal("500.00")) for i in ids]


class TestGenerationProperties:
    """Property-based generation invariants."""

    @given(ids=employee_ids, start=start_dates, span=st.integers(0, 70))
    @settings(max_examples=60, deadline=None)
    def test_rerun_is_a_no_op(self, ids, start, span):
        roster = _roster(ids)
        end = start + timedelta(days=span)

        first = generate_periods(roster, [], start, end, now=NOW)
        second = plan_generation(roster, first, start, end, now=NOW)

        assert second.created == []
        assert len(second.skipped_duplicate) == len(first)

    @given(ids=employee_ids, start=start_dates, span=st.integers(0, 70), data=st.data())
    @settings(max_examples=60, deadline=None)
    def test_overlapping_runs_never_duplicate(self, ids, start, span, data):
        roster = _roster(ids)
        end = start + timedelta(days=span)
        middle = start + timedelta(days=data.draw(st.integers(0, span)))

        whole = generate_periods(roster, [], start, end, now=NOW)
        part_one = generate_periods(roster, [], start, middle, now=NOW)
        part_two = generate_periods(roster, part_one, middle, end, now=NOW)

        combined = [o.key for o in part_one + part_two]
        assert len(combined) == len(set(combined))
        assert set(combined) == {o.key for o in whole}
