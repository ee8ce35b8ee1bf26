"""Tests for the generation service over in-memory stores."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import pytest

from payroll_ledger.core.errors import DuplicateSkipped
from payroll_ledger.core.types import AuditAction, ObligationFilter
from payroll_ledger.services import GenerationService
from payroll_ledger.services.memory import InMemoryObligationStore

pytestmark = pytest.mark.asyncio

RANGE_START = date(2024, 1, 7)
RANGE_END = date(2024, 2, 3)
NOW = datetime(2024, 1, 6, 8, 0, tzinfo=timezone.utc)


class StaleReadObligationStore(InMemoryObligationStore):
    """Store whose listing misses rows a concurrent run already inserted."""

    async def list(self, obligation_filter: ObligationFilter | None = None):
        return []


class TestGenerate:
    """Test persisted generation runs."""

    async def test_creates_and_persists(self, generation_service, employee_repo, obligation_store, make_employee):
        employee_repo.put(make_employee("E-1"))
        employee_repo.put(make_employee("E-2", "900.00"))

        report = await generation_service.generate(RANGE_START, RANGE_END, now=NOW)

        assert report.created_count == 8
        assert report.skipped_duplicate_count == 0
        assert len(await obligation_store.list()) == 8

    async def test_rerun_creates_nothing(self, generation_service, employee_repo, obligation_store, make_employee):
        employee_repo.put(make_employee("E-1"))
        await generation_service.generate(RANGE_START, RANGE_END, now=NOW)

        report = await generation_service.generate(RANGE_START, RANGE_END, now=NOW)

        assert report.created_count == 0
        assert report.skipped_duplicate_count == 4
        assert len(await obligation_store.list()) == 4

    async def test_records_generated_audit(self, generation_service, employee_repo, audit_store, make_employee):
        employee_repo.put(make_employee("E-1"))

        report = await generation_service.generate(RANGE_START, RANGE_START, now=NOW)

        [obligation] = report.created
        [record] = await audit_store.list_for_obligation(obligation.obligation_id)
        assert record.action == AuditAction.GENERATED
        assert record.created_at == NOW

    async def test_concurrent_insert_is_reported_as_duplicate(
        self, employee_repo, audit_store, make_employee, make_obligation
    ):
        store = StaleReadObligationStore()
        await store.insert(make_obligation("E-1", RANGE_START))
        employee_repo.put(make_employee("E-1"))
        service = GenerationService(employee_repo, store, audit_store)

        report = await service.generate(RANGE_START, date(2024, 1, 14), now=NOW)

        assert [o.period_start for o in report.created] == [date(2024, 1, 14)]
        assert report.skipped_duplicate == [DuplicateSkipped("E-1", RANGE_START)]

    async def test_ineligible_counts(self, generation_service, employee_repo, make_employee):
        employee_repo.put(make_employee("E-1", payment_start_date=date(2024, 1, 21)))

        report = await generation_service.generate(RANGE_START, RANGE_END, now=NOW)

        assert report.created_count == 2
        assert report.skipped_ineligible_count == 2

    async def test_inverted_range(self, generation_service, employee_repo, obligation_store, make_employee):
        employee_repo.put(make_employee("E-1"))

        report = await generation_service.generate(RANGE_END, RANGE_START, now=NOW)

        assert report.created_count == 0
        assert await obligation_store.list() == []

    async def test_logs_counts(self, generation_service, employee_repo, make_employee, caplog):
        employee_repo.put(make_employee("E-1"))

        with caplog.at_level(logging.INFO, logger="payroll_ledger.services.generation_service"):
            await generation_service.generate(RANGE_START, RANGE_END, now=NOW)

        assert "created=4 skipped_duplicate=0 skipped_ineligible=0" in caplog.text


class TestGenerateYear:
    """Test whole-year generation."""

    async def test_generate_year(self, generation_service, employee_repo, make_employee):
        employee_repo.put(make_employee("E-1"))

        report = await generation_service.generate_year(2024, now=NOW)

        assert report.range_start == date(2024, 1, 1)
        assert report.range_end == date(2024, 12, 31)
        assert report.created_count == 53
        assert report.created[0].period_start == date(2023, 12, 31)
