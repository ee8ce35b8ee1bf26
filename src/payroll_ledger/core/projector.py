"""Ledger projection: group payments and reversals into reporting batches.

Batches are derived on every read and never stored. Payments sharing a
(period_start, paid_date) pair form one batch; every reversal is a batch of
its own so it stays traceable to the payment it undoes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable
from uuid import UUID

from payroll_ledger.core.lifecycle import payment_entry_from_obligation
from payroll_ledger.core.types import (
    LedgerArchive,
    LedgerBatch,
    LedgerEntry,
    LedgerFilter,
    ObligationStatus,
    PaymentObligation,
)


def collect_lines(
    entries: Iterable[LedgerEntry],
    paid_obligations: Iterable[PaymentObligation],
) -> list[LedgerEntry]:
    """Merge ledger entries with paid obligations, one line per payment.

    A paid obligation that already has a payment entry is represented by the
    entry; one without (recorded before the ledger existed) is synthesized.
    """
    lines: dict[UUID, LedgerEntry] = {}
    for entry in entries:
        lines.setdefault(entry.entry_id, entry)

    paid_with_entry = {line.obligation_id for line in lines.values() if not line.is_reversal}
    for obligation in paid_obligations:
        if obligation.status != ObligationStatus.PAID or obligation.paid_date is None:
            continue
        if obligation.obligation_id in paid_with_entry:
            continue
        synthesized = payment_entry_from_obligation(obligation)
        lines.setdefault(synthesized.entry_id, synthesized)
        paid_with_entry.add(obligation.obligation_id)

    return list(lines.values())


def _batch_key(entry: LedgerEntry) -> str:
    if entry.is_reversal:
        return f"reversal_{entry.entry_id}"
    return f"{entry.period_start.isoformat()}_{entry.paid_date.isoformat()}"


def _build_batch(
    key: str,
    members: list[LedgerEntry],
    reversed_ids: set[UUID],
    payment_amounts: dict[UUID, Decimal],
) -> LedgerBatch:
    first = members[0]
    total = sum((m.amount for m in members), Decimal("0"))

    reasons: list[str] = []
    for member in members:
        if member.reason and member.reason not in reasons:
            reasons.append(member.reason)

    is_reversal = first.is_reversal
    if is_reversal:
        reversed_amount = payment_amounts.get(first.obligation_id, -first.amount)
        net = reversed_amount + total
    else:
        reversed_amount = Decimal("0")
        net = total

    return LedgerBatch(
        batch_key=key,
        period_start=first.period_start,
        period_end=first.period_end,
        paid_date=first.paid_date,
        entries=tuple(members),
        total_amount=total,
        employee_count=len({m.employee_id for m in members}),
        reasons=tuple(reasons),
        is_reversal=is_reversal,
        created_at=max(m.created_at for m in members),
        reversed_obligation_ids=frozenset(
            m.obligation_id for m in members if not m.is_reversal and m.obligation_id in reversed_ids
        ),
        reversed_amount=reversed_amount,
        net_amount=net,
    )


def project_batches(
    entries: Iterable[LedgerEntry],
    paid_obligations: Iterable[PaymentObligation],
    ledger_filter: LedgerFilter | None = None,
) -> list[LedgerBatch]:
    """Group ledger lines into batches, newest paid date first.

    Ties on paid date are broken by the batch's latest creation timestamp
    (descending), then by batch key so the ordering is total.
    """
    criteria = ledger_filter or LedgerFilter()
    lines = collect_lines(entries, paid_obligations)

    reversed_ids = {line.obligation_id for line in lines if line.is_reversal}
    payment_amounts = {line.obligation_id: line.amount for line in lines if not line.is_reversal}

    groups: dict[str, list[LedgerEntry]] = {}
    for line in lines:
        if not criteria.matches(line.employee_id, line.paid_date):
            continue
        groups.setdefault(_batch_key(line), []).append(line)

    batches = []
    for key, members in groups.items():
        members.sort(key=lambda m: (m.created_at, m.employee_id, str(m.entry_id)))
        batches.append(_build_batch(key, members, reversed_ids, payment_amounts))

    batches.sort(key=lambda b: b.batch_key, reverse=True)
    batches.sort(key=lambda b: (b.paid_date, b.created_at), reverse=True)
    return batches


def archive_year(batches: Iterable[LedgerBatch], year: int) -> LedgerArchive:
    """Collect the batches paid in a calendar year with their totals."""
    selected = tuple(b for b in batches if b.paid_date.year == year)
    return LedgerArchive(
        year=year,
        batches=selected,
        total_records=sum(len(b.entries) for b in selected),
        total_amount=sum((b.total_amount for b in selected), Decimal("0")),
    )
