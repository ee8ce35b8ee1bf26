"""Pure payroll generation and ledger logic."""

from payroll_ledger.core.errors import (
    DuplicateSkipped,
    InvalidTransitionError,
    NotFoundError,
    PayrollLedgerError,
    ValidationError,
)
from payroll_ledger.core.generator import generate_periods, plan_generation
from payroll_ledger.core.lifecycle import cancel, mark_paid, reverse
from payroll_ledger.core.periods import PayPeriod, Weekday, iter_periods, period_start_for, year_range
from payroll_ledger.core.projector import archive_year, project_batches
from payroll_ledger.core.sequencer import next_check_number
from payroll_ledger.core.state_machine import ObligationStateMachine

__all__ = [
    "DuplicateSkipped",
    "InvalidTransitionError",
    "NotFoundError",
    "PayrollLedgerError",
    "ValidationError",
    "generate_periods",
    "plan_generation",
    "cancel",
    "mark_paid",
    "reverse",
    "PayPeriod",
    "Weekday",
    "iter_periods",
    "period_start_for",
    "year_range",
    "archive_year",
    "project_batches",
    "next_check_number",
    "ObligationStateMachine",
]
