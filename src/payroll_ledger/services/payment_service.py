"""Payment lifecycle service: mark paid, cancel, reverse.

Wraps the pure lifecycle functions with loading, persistence, audit
records and check-number serialization.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Awaitable, Callable
from uuid import UUID, uuid4

from payroll_ledger.core import lifecycle
from payroll_ledger.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from payroll_ledger.core.payment_methods import require_payment_method
from payroll_ledger.core.sequencer import issued_check_numbers, next_check_number, parse_check_number
from payroll_ledger.core.state_machine import ObligationStateMachine
from payroll_ledger.core.types import (
    AuditAction,
    AuditRecord,
    InstrumentDetails,
    LedgerEntry,
    ObligationFilter,
    ObligationStatus,
    PaymentMethod,
    PaymentObligation,
    utcnow,
)
from payroll_ledger.services.stores import AuditStore, LedgerStore, ObligationStore

logger = logging.getLogger(__name__)


class CheckNumberAllocator:
    """Serializes check-number assignment within a process.

    One instance is shared by every PaymentService in the process. The
    storage layer's unique constraint on check_number covers writers in
    other processes.
    """

    def __init__(self, configured_start: int = 1001):
        self.configured_start = configured_start
        self.lock = asyncio.Lock()

    async def peek(self, obligations: ObligationStore) -> int:
        """Next number from currently visible state, without reserving it."""
        return next_check_number(await self.issued(obligations), self.configured_start)

    async def issued(self, obligations: ObligationStore) -> list[PaymentObligation]:
        return await obligations.list(ObligationFilter(has_check_number=True))


class PaymentService:
    """Service for payment obligation transitions and reversals.

    Failures leave no partial state: each operation computes the complete
    new records before writing anything, and the obligation write is a
    compare-and-set on its previous status.

    ``commit`` is awaited while the allocator lock is still held, so an
    assigned check number is visible to the next payer before it computes
    its own. Without it the caller commits.
    """

    def __init__(
        self,
        obligations: ObligationStore,
        ledger: LedgerStore,
        audit: AuditStore,
        allocator: CheckNumberAllocator,
        commit: Callable[[], Awaitable[None]] | None = None,
    ):
        self.obligations = obligations
        self.ledger = ledger
        self.audit = audit
        self.allocator = allocator
        self.commit = commit

    async def get(self, obligation_id: UUID) -> PaymentObligation:
        obligation = await self.obligations.get(obligation_id)
        if obligation is None:
            raise NotFoundError("Payment", obligation_id)
        return obligation

    async def next_check_number(self) -> int:
        return await self.allocator.peek(self.obligations)

    async def mark_paid(
        self,
        obligation_id: UUID,
        paid_date: date,
        method: PaymentMethod | str,
        instrument: InstrumentDetails | None = None,
        *,
        deduction_amount: Decimal = Decimal("0"),
        note: str | None = None,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> tuple[PaymentObligation, LedgerEntry]:
        """Mark a pending obligation paid and append its ledger entry.

        For check payments without a number, the next number is assigned
        under the allocator lock. A supplied number already issued to another
        payment is rejected.

        Raises:
            NotFoundError: If the obligation does not exist
            InvalidTransitionError: If it is not pending
            ValidationError: If payment details are invalid
        """
        current = await self.get(obligation_id)
        ObligationStateMachine.validate_transition(current.status, ObligationStatus.PAID)

        payment_method = require_payment_method(method)
        details = instrument or InstrumentDetails()

        if payment_method != PaymentMethod.CHECK:
            return await self._mark_paid(
                obligation_id, paid_date, payment_method, details,
                deduction_amount=deduction_amount, note=note, user_id=user_id, now=now,
            )

        async with self.allocator.lock:
            with_numbers = await self.allocator.issued(self.obligations)
            if details.check_number is None or not details.check_number.strip():
                assigned = next_check_number(with_numbers, self.allocator.configured_start)
                details = InstrumentDetails(
                    check_number=str(assigned),
                    bank_name=details.bank_name,
                    account_last_four=details.account_last_four,
                )
            else:
                requested = parse_check_number(details.check_number)
                issued = issued_check_numbers(
                    o for o in with_numbers if o.obligation_id != obligation_id
                )
                if requested is not None and requested in issued:
                    raise ValidationError(
                        f"Check number {requested} has already been issued",
                        field="check_number",
                    )
            result = await self._mark_paid(
                obligation_id, paid_date, payment_method, details,
                deduction_amount=deduction_amount, note=note, user_id=user_id, now=now,
            )
            if self.commit is not None:
                await self.commit()
            return result

    async def _mark_paid(
        self,
        obligation_id: UUID,
        paid_date: date,
        method: PaymentMethod,
        instrument: InstrumentDetails,
        *,
        deduction_amount: Decimal,
        note: str | None,
        user_id: str | None,
        now: datetime | None,
    ) -> tuple[PaymentObligation, LedgerEntry]:
        obligation = await self.get(obligation_id)
        created_at = now or utcnow()
        paid, entry = lifecycle.mark_paid(
            obligation,
            paid_date,
            method,
            instrument,
            deduction_amount=deduction_amount,
            note=note,
            created_by=user_id,
            now=created_at,
        )

        await self.obligations.update_status(paid, expected_status=ObligationStatus.PENDING)
        await self.ledger.append(entry)
        await self.audit.append(
            AuditRecord(
                audit_id=uuid4(),
                obligation_id=obligation_id,
                action=AuditAction.PAID,
                created_at=created_at,
                reason=entry.reason,
                user_id=user_id,
            )
        )
        logger.info(
            "Payment %s marked paid via %s%s",
            obligation_id,
            method.value,
            f" (check #{paid.check_number})" if paid.check_number else "",
        )
        return paid, entry

    async def cancel(
        self,
        obligation_id: UUID,
        *,
        reason: str | None = None,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> PaymentObligation:
        """Cancel a pending obligation."""
        obligation = await self.get(obligation_id)
        canceled = lifecycle.cancel(obligation)

        await self.obligations.update_status(canceled, expected_status=ObligationStatus.PENDING)
        await self.audit.append(
            AuditRecord(
                audit_id=uuid4(),
                obligation_id=obligation_id,
                action=AuditAction.CANCELED,
                created_at=now or utcnow(),
                reason=reason,
                user_id=user_id,
            )
        )
        logger.info("Payment %s canceled", obligation_id)
        return canceled

    async def reverse(
        self,
        obligation_id: UUID,
        reason: str | None,
        *,
        user_id: str | None = None,
        reversed_on: date | None = None,
        now: datetime | None = None,
    ) -> LedgerEntry:
        """Append a reversal entry for a paid obligation.

        The original obligation and its payment entry are left untouched.

        Raises:
            NotFoundError: If the obligation is absent or was never paid
            ValidationError: If the reason is blank
            InvalidTransitionError: If it was already reversed
        """
        created_at = now or utcnow()
        original = await self.obligations.get(obligation_id)
        if original is None:
            raise NotFoundError("Payment", obligation_id)
        existing = await self.ledger.list_for_obligation(obligation_id)

        reversal = lifecycle.reverse(
            original,
            existing,
            reason,
            reversed_on=reversed_on or created_at.date(),
            created_by=user_id,
            now=created_at,
        )

        if not await self.ledger.append(reversal):
            # A concurrent reversal won the race
            raise InvalidTransitionError("paid", "reversed", "payment already reversed")

        await self.audit.append(
            AuditRecord(
                audit_id=uuid4(),
                obligation_id=obligation_id,
                action=AuditAction.REVERSED,
                created_at=created_at,
                reason=reversal.reason,
                user_id=user_id,
            )
        )
        logger.info("Payment %s reversed: %s", obligation_id, reversal.reason)
        return reversal

    async def audit_trail(self, obligation_id: UUID) -> list[AuditRecord]:
        await self.get(obligation_id)
        return await self.audit.list_for_obligation(obligation_id)
