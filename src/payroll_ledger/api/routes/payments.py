"""Payment obligation API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from payroll_ledger.api.dependencies import Generation, Payments, StoresDep
from payroll_ledger.api.schemas import (
    AuditRecordResponse,
    CancelRequest,
    ErrorResponse,
    GenerateRequest,
    GenerateYearRequest,
    GenerationResponse,
    LedgerEntryResponse,
    MarkPaidRequest,
    MarkPaidResponse,
    NextCheckNumberResponse,
    PaymentListResponse,
    PaymentResponse,
    ReversalResponse,
    ReverseRequest,
)
from payroll_ledger.core.errors import ValidationError
from payroll_ledger.core.types import InstrumentDetails, ObligationFilter, ObligationStatus
from payroll_ledger.services import GenerationReport

router = APIRouter(prefix="/payments", tags=["payments"])


def _generation_response(report: GenerationReport) -> GenerationResponse:
    return GenerationResponse(
        range_start=report.range_start,
        range_end=report.range_end,
        created=report.created_count,
        skipped_duplicate=report.skipped_duplicate_count,
        skipped_ineligible=report.skipped_ineligible_count,
        payments=[PaymentResponse.from_domain(o) for o in report.created],
    )


# ============================================================================
# Generation
# ============================================================================


@router.post(
    "/generate",
    response_model=GenerationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def generate_payments(
    payload: GenerateRequest,
    generation: Generation,
    stores: StoresDep,
) -> GenerationResponse:
    """Generate weekly obligations for every active employee in a date range.

    Existing (employee, week) pairs are skipped, so repeating a request is safe.
    """
    report = await generation.generate(payload.range_start, payload.range_end)
    await stores.commit()
    return _generation_response(report)


@router.post(
    "/generate-year",
    response_model=GenerationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def generate_year(
    payload: GenerateYearRequest,
    generation: Generation,
    stores: StoresDep,
) -> GenerationResponse:
    """Generate weekly obligations covering a calendar year."""
    report = await generation.generate_year(payload.year)
    await stores.commit()
    return _generation_response(report)


# ============================================================================
# Queries
# ============================================================================


@router.get("", response_model=PaymentListResponse, responses={400: {"model": ErrorResponse}})
async def list_payments(
    stores: StoresDep,
    employee_id: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> PaymentListResponse:
    """List obligations, newest week first."""
    obligation_status = None
    if status_filter:
        try:
            obligation_status = ObligationStatus(status_filter)
        except ValueError:
            raise ValidationError(f"Unknown payment status: {status_filter}", field="status")

    obligations = await stores.obligations.list(
        ObligationFilter(
            employee_id=employee_id,
            status=obligation_status,
            date_from=date_from,
            date_to=date_to,
        )
    )
    return PaymentListResponse(
        items=[PaymentResponse.from_domain(o) for o in obligations],
        total=len(obligations),
    )


@router.get("/next-check-number", response_model=NextCheckNumberResponse)
async def get_next_check_number(payments: Payments) -> NextCheckNumberResponse:
    """Preview the next check number. Nothing is reserved."""
    return NextCheckNumberResponse(next_check_number=await payments.next_check_number())


@router.get(
    "/{obligation_id}",
    response_model=PaymentResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payment(
    payments: Payments,
    obligation_id: Annotated[UUID, Path()],
) -> PaymentResponse:
    """Get a payment obligation by ID."""
    return PaymentResponse.from_domain(await payments.get(obligation_id))


@router.get(
    "/{obligation_id}/audit",
    response_model=list[AuditRecordResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_payment_audit(
    payments: Payments,
    obligation_id: Annotated[UUID, Path()],
) -> list[AuditRecordResponse]:
    """Audit trail for a payment, newest first."""
    records = await payments.audit_trail(obligation_id)
    return [AuditRecordResponse.from_domain(r) for r in records]


# ============================================================================
# Transitions
# ============================================================================


@router.post(
    "/{obligation_id}/pay",
    response_model=MarkPaidResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def mark_paid(
    payments: Payments,
    stores: StoresDep,
    obligation_id: Annotated[UUID, Path()],
    payload: MarkPaidRequest,
) -> MarkPaidResponse:
    """Mark a pending payment as paid and record it in the ledger."""
    paid, entry = await payments.mark_paid(
        obligation_id,
        payload.paid_date,
        payload.payment_method,
        InstrumentDetails(
            check_number=payload.check_number,
            bank_name=payload.bank_name,
            account_last_four=payload.account_last_four,
        ),
        deduction_amount=payload.deduction_amount,
        note=payload.note,
        user_id=payload.user_id,
    )
    await stores.commit()
    return MarkPaidResponse(
        payment=PaymentResponse.from_domain(paid),
        ledger_entry=LedgerEntryResponse.from_domain(entry),
    )


@router.post(
    "/{obligation_id}/cancel",
    response_model=PaymentResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_payment(
    payments: Payments,
    stores: StoresDep,
    obligation_id: Annotated[UUID, Path()],
    payload: CancelRequest | None = None,
) -> PaymentResponse:
    """Cancel a pending payment."""
    request = payload or CancelRequest()
    canceled = await payments.cancel(
        obligation_id, reason=request.reason, user_id=request.user_id
    )
    await stores.commit()
    return PaymentResponse.from_domain(canceled)


@router.post(
    "/{obligation_id}/reverse",
    response_model=ReversalResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def reverse_payment(
    payments: Payments,
    stores: StoresDep,
    obligation_id: Annotated[UUID, Path()],
    payload: ReverseRequest,
) -> ReversalResponse:
    """Reverse a paid payment.

    The original payment and its ledger entry are left unchanged. A new
    reversal entry carrying the negated amount is appended.
    """
    reversal = await payments.reverse(obligation_id, payload.reason, user_id=payload.user_id)
    await stores.commit()
    return ReversalResponse(
        message="Payment reversed",
        reversal_id=reversal.entry_id,
        original_payment_id=obligation_id,
        entry=LedgerEntryResponse.from_domain(reversal),
    )
