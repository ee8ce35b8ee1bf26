"""Payment lifecycle: mark paid, cancel, reverse.

All functions are pure. They validate everything up front and return new
records; the caller persists them. Nothing here mutates an existing
obligation or ledger entry.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from payroll_ledger.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from payroll_ledger.core.payment_methods import require_payment_method
from payroll_ledger.core.sequencer import parse_check_number
from payroll_ledger.core.state_machine import ObligationStateMachine
from payroll_ledger.core.types import (
    InstrumentDetails,
    LedgerEntry,
    LedgerEntryType,
    ObligationStatus,
    PaymentMethod,
    PaymentObligation,
    utcnow,
)


def validate_instrument(method: PaymentMethod, instrument: InstrumentDetails) -> InstrumentDetails:
    """Check method-specific instrument data and return a cleaned copy."""
    check_number = (instrument.check_number or "").strip() or None
    last_four = (instrument.account_last_four or "").strip() or None
    bank_name = (instrument.bank_name or "").strip() or None

    if method == PaymentMethod.CHECK:
        if check_number is None:
            raise ValidationError("Check payments require a check number", field="check_number")
        if parse_check_number(check_number) is None:
            raise ValidationError(
                f"Check number must be a positive integer, got {check_number!r}",
                field="check_number",
            )
        check_number = str(parse_check_number(check_number))
    else:
        # Check numbers only travel with check payments
        check_number = None

    if last_four is not None and not (len(last_four) == 4 and last_four.isascii() and last_four.isdigit()):
        raise ValidationError("account_last_four must be exactly 4 digits", field="account_last_four")

    return InstrumentDetails(
        check_number=check_number,
        bank_name=bank_name,
        account_last_four=last_four,
    )


def mark_paid(
    obligation: PaymentObligation,
    paid_date: date | None,
    method: PaymentMethod | str | None,
    instrument: InstrumentDetails | None = None,
    *,
    deduction_amount: Decimal = Decimal("0"),
    note: str | None = None,
    created_by: str | None = None,
    now: datetime | None = None,
) -> tuple[PaymentObligation, LedgerEntry]:
    """Transition a pending obligation to paid and build its ledger entry.

    Raises:
        InvalidTransitionError: If the obligation is not pending
        ValidationError: If paid_date, method or instrument data is invalid
    """
    ObligationStateMachine.validate_transition(obligation.status, ObligationStatus.PAID)

    if paid_date is None:
        raise ValidationError("paid_date is required", field="paid_date")
    payment_method = require_payment_method(method)
    details = validate_instrument(payment_method, instrument or InstrumentDetails())

    if deduction_amount < 0:
        raise ValidationError("deduction_amount must be non-negative", field="deduction_amount")
    if deduction_amount > obligation.amount:
        raise ValidationError(
            f"deduction_amount {deduction_amount} exceeds amount {obligation.amount}",
            field="deduction_amount",
        )

    created_at = now or utcnow()
    paid = replace(
        obligation,
        status=ObligationStatus.PAID,
        paid_date=paid_date,
        payment_method=payment_method,
        instrument=details,
        deduction_amount=deduction_amount,
    )
    entry = LedgerEntry(
        entry_id=LedgerEntry.payment_id_for(obligation.obligation_id),
        entry_type=LedgerEntryType.PAYMENT,
        obligation_id=obligation.obligation_id,
        employee_id=obligation.employee_id,
        period_start=obligation.period_start,
        period_end=obligation.period_end,
        paid_date=paid_date,
        amount=paid.net_amount,
        payment_method=payment_method,
        check_number=details.check_number,
        reason=(note or "").strip() or None,
        created_by=created_by,
        created_at=created_at,
    )
    return paid, entry


def cancel(obligation: PaymentObligation) -> PaymentObligation:
    """Cancel a pending obligation (e.g. the employee left before payday)."""
    ObligationStateMachine.validate_transition(obligation.status, ObligationStatus.CANCELED)
    return replace(obligation, status=ObligationStatus.CANCELED)


def payment_entry_from_obligation(obligation: PaymentObligation) -> LedgerEntry:
    """Describe a paid obligation as a payment entry.

    Used for paid obligations that predate the ledger and so have no entry.
    """
    if obligation.status != ObligationStatus.PAID or obligation.paid_date is None:
        raise ValueError(f"Obligation {obligation.obligation_id} is not paid")
    return LedgerEntry(
        entry_id=LedgerEntry.payment_id_for(obligation.obligation_id),
        entry_type=LedgerEntryType.PAYMENT,
        obligation_id=obligation.obligation_id,
        employee_id=obligation.employee_id,
        period_start=obligation.period_start,
        period_end=obligation.period_end,
        paid_date=obligation.paid_date,
        amount=obligation.net_amount,
        payment_method=obligation.payment_method,
        check_number=obligation.instrument.check_number,
        created_at=obligation.created_at,
    )


def reverse(
    original: PaymentObligation | None,
    existing_entries: Iterable[LedgerEntry],
    reason: str | None,
    *,
    reversed_on: date,
    created_by: str | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    """Build the reversal entry for a paid obligation.

    Args:
        original: The paid obligation, or None if it could not be found
        existing_entries: Ledger entries already recorded for that obligation
        reason: Mandatory human-readable reason
        reversed_on: Date the reversal takes effect
        created_by: Optional user recording the reversal
        now: Creation timestamp (defaults to utcnow)

    Raises:
        NotFoundError: If the obligation is absent or was never paid
        ValidationError: If the reason is blank
        InvalidTransitionError: If the obligation was already reversed
    """
    if original is None:
        raise NotFoundError("Payment", "<unknown>", "original payment does not exist")
    if not ObligationStateMachine.can_reverse(original.status):
        raise NotFoundError("Payment", original.obligation_id, "no completed payment to reverse")

    cleaned_reason = (reason or "").strip()
    if not cleaned_reason:
        raise ValidationError("Reversal reason is required", field="reason")

    payment_entry = None
    for entry in existing_entries:
        if entry.obligation_id != original.obligation_id:
            continue
        if entry.is_reversal:
            raise InvalidTransitionError("paid", "reversed", "payment already reversed")
        payment_entry = entry

    if payment_entry is None:
        payment_entry = payment_entry_from_obligation(original)

    return LedgerEntry(
        entry_id=LedgerEntry.reversal_id_for(original.obligation_id),
        entry_type=LedgerEntryType.REVERSAL,
        obligation_id=original.obligation_id,
        employee_id=original.employee_id,
        period_start=original.period_start,
        period_end=original.period_end,
        paid_date=reversed_on,
        amount=-payment_entry.amount,
        payment_method=payment_entry.payment_method,
        check_number=payment_entry.check_number,
        reason=cleaned_reason,
        created_by=created_by,
        created_at=now or utcnow(),
    )
