"""Ledger reporting endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path

from payroll_ledger.api.dependencies import Ledger
from payroll_ledger.api.schemas import ErrorResponse, LedgerArchiveResponse, LedgerBatchResponse
from payroll_ledger.core.types import LedgerFilter

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get(
    "/batches",
    response_model=list[LedgerBatchResponse],
    responses={400: {"model": ErrorResponse}},
)
async def list_batches(
    ledger: Ledger,
    employee_id: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[LedgerBatchResponse]:
    """Payment batches and reversals, most recent paid date first."""
    batches = await ledger.batches(
        LedgerFilter(employee_id=employee_id, date_from=date_from, date_to=date_to)
    )
    return [LedgerBatchResponse.from_domain(b) for b in batches]


@router.get("/archive/{year}", response_model=LedgerArchiveResponse)
async def get_archive(
    ledger: Ledger,
    year: Annotated[int, Path(ge=1, le=9999)],
    employee_id: str | None = None,
) -> LedgerArchiveResponse:
    """Batches paid within a calendar year, with totals."""
    return LedgerArchiveResponse.from_domain(await ledger.archive(year, employee_id))
