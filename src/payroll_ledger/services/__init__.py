"""Payroll ledger services."""

from payroll_ledger.services.generation_service import GenerationReport, GenerationService
from payroll_ledger.services.ledger_service import LedgerQueryService
from payroll_ledger.services.payment_service import CheckNumberAllocator, PaymentService

__all__ = [
    "GenerationReport",
    "GenerationService",
    "LedgerQueryService",
    "CheckNumberAllocator",
    "PaymentService",
]
