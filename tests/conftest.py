"""Pytest fixtures for payroll ledger tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from payroll_ledger.core.generator import build_obligation
from payroll_ledger.core.periods import PayPeriod
from payroll_ledger.core.types import Employee, PaymentObligation
from payroll_ledger.services import CheckNumberAllocator, GenerationService, PaymentService
from payroll_ledger.services.memory import (
    InMemoryAuditStore,
    InMemoryEmployeeRepository,
    InMemoryLedgerStore,
    InMemoryObligationStore,
)

# 2024-01-07 is a Sunday, the default period anchor
FIRST_SUNDAY = date(2024, 1, 7)
NOW = datetime(2024, 2, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_employee():
    """Factory for roster entries."""

    def _make(employee_id: str = "E-100", weekly_rate: str = "1000.00", **kwargs) -> Employee:
        kwargs.setdefault("name", f"Employee {employee_id}")
        return Employee(employee_id=employee_id, weekly_rate=Decimal(weekly_rate), **kwargs)

    return _make


@pytest.fixture
def make_obligation(make_employee):
    """Factory for pending obligations; keyword changes are applied on top."""

    def _make(
        employee_id: str = "E-100",
        period_start: date = FIRST_SUNDAY,
        weekly_rate: str = "1000.00",
        **changes,
    ) -> PaymentObligation:
        employee = make_employee(employee_id, weekly_rate)
        obligation = build_obligation(employee, PayPeriod(period_start), NOW)
        return replace(obligation, **changes) if changes else obligation

    return _make


@pytest.fixture
def employee_repo() -> InMemoryEmployeeRepository:
    return InMemoryEmployeeRepository()


@pytest.fixture
def obligation_store() -> InMemoryObligationStore:
    return InMemoryObligationStore()


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def allocator() -> CheckNumberAllocator:
    return CheckNumberAllocator(configured_start=1001)


@pytest.fixture
def payment_service(obligation_store, ledger_store, audit_store, allocator) -> PaymentService:
    return PaymentService(obligation_store, ledger_store, audit_store, allocator)


@pytest.fixture
def generation_service(employee_repo, obligation_store, audit_store) -> GenerationService:
    return GenerationService(employee_repo, obligation_store, audit_store)
