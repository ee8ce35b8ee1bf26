"""CLI tests against a SQLite database."""

from __future__ import annotations

from datetime import date

import pytest

from payroll_ledger.cli import LedgerCli, format_amount
from payroll_ledger.services import CheckNumberAllocator, PaymentService
from payroll_ledger.services.sql_stores import build_sql_stores

pytestmark = pytest.mark.asyncio


@pytest.fixture
def cli(seeded_db, test_settings) -> LedgerCli:
    return LedgerCli(session_factory=seeded_db, settings=test_settings)


async def count_obligations(session_factory) -> int:
    async with session_factory() as session:
        return len(await build_sql_stores(session).obligations.list())


async def pay_first(session_factory, count: int, method: str = "check") -> list:
    async with session_factory() as session:
        stores = build_sql_stores(session)
        service = PaymentService(
            stores.obligations, stores.ledger, stores.audit, CheckNumberAllocator(1001)
        )
        obligations = sorted(
            await stores.obligations.list(), key=lambda o: (o.period_start, o.employee_id)
        )
        paid = []
        for obligation in obligations[:count]:
            paid.append(
                (await service.mark_paid(obligation.obligation_id, date(2024, 1, 15), method))[0]
            )
        await stores.commit()
        return paid


class TestGenerateCommand:
    """Test generate and generate-year."""

    async def test_generate(self, cli, seeded_db, capsys):
        code = await cli.run_async(["generate", "--from", "2024-01-07", "--to", "2024-02-03"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Created:            10" in out
        assert "before_payment_start" in out
        assert await count_obligations(seeded_db) == 10

    async def test_dry_run_saves_nothing(self, cli, seeded_db, capsys):
        code = await cli.run_async(
            ["generate", "--from", "2024-01-07", "--to", "2024-02-03", "--dry-run"]
        )

        assert code == 0
        out = capsys.readouterr().out
        assert "[DRY RUN]" in out
        assert "Created:            10" in out
        assert await count_obligations(seeded_db) == 0

    async def test_generate_year(self, cli, seeded_db, capsys):
        code = await cli.run_async(["generate-year", "--year", "2024"])

        assert code == 0
        assert "2024-01-01 .. 2024-12-31" in capsys.readouterr().out
        assert await count_obligations(seeded_db) == 156

    async def test_rejects_bad_date(self, cli):
        with pytest.raises(SystemExit):
            await cli.run_async(["generate", "--from", "last week", "--to", "2024-02-03"])


class TestReportCommands:
    """Test next-check, batches and archive."""

    async def test_next_check(self, cli, seeded_db, capsys):
        await cli.run_async(["generate", "--from", "2024-01-07", "--to", "2024-01-13"])
        await pay_first(seeded_db, 2)
        capsys.readouterr()

        code = await cli.run_async(["next-check"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "1003"

    async def test_batches(self, cli, seeded_db, capsys):
        await cli.run_async(["generate", "--from", "2024-01-07", "--to", "2024-01-13"])
        await pay_first(seeded_db, 2, method="cash")
        capsys.readouterr()

        code = await cli.run_async(["batches"])

        assert code == 0
        out = capsys.readouterr().out
        assert "2024-01-07_2024-01-15" in out
        assert format_amount(1900) in out

    async def test_batches_empty(self, cli, capsys):
        code = await cli.run_async(["batches", "--employee-id", "E-1"])

        assert code == 0
        assert "No ledger batches." in capsys.readouterr().out

    async def test_archive(self, cli, seeded_db, capsys):
        await cli.run_async(["generate", "--from", "2024-01-07", "--to", "2024-01-13"])
        await pay_first(seeded_db, 1, method="cash")
        capsys.readouterr()

        code = await cli.run_async(["archive", "--year", "2024"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Ledger archive 2024" in out
        assert "Records: 1" in out


class TestCliBasics:
    """Test argument handling."""

    async def test_no_command(self, cli, capsys):
        assert await cli.run_async([]) == 1
        assert "payroll-ledger" in capsys.readouterr().out

    async def test_init_db_is_repeatable(self, cli, capsys):
        assert await cli.run_async(["init-db"]) == 0
        assert "up to date" in capsys.readouterr().out

