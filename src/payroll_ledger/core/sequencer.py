"""Check number sequencing."""

from __future__ import annotations

from typing import Iterable

from payroll_ledger.core.types import PaymentObligation


def parse_check_number(value: str | None) -> int | None:
    """Parse a stored check number, returning None for anything unusable."""
    if value is None:
        return None
    text = str(value).strip()
    # Plain ASCII digits only
    if not (text.isascii() and text.isdigit()):
        return None
    number = int(text)
    return number if number > 0 else None


def next_check_number(
    obligations: Iterable[PaymentObligation],
    configured_start: int,
) -> int:
    """Compute the next check number from currently visible obligations.

    Pure: nothing is reserved. Callers that commit the number must serialize
    assignment themselves.
    """
    used = [
        number
        for number in (parse_check_number(o.instrument.check_number) for o in obligations)
        if number is not None
    ]
    if not used:
        return configured_start
    return max(used) + 1


def issued_check_numbers(obligations: Iterable[PaymentObligation]) -> set[int]:
    """All numeric check numbers already present on obligations."""
    issued = set()
    for obligation in obligations:
        number = parse_check_number(obligation.instrument.check_number)
        if number is not None:
            issued.add(number)
    return issued
