"""Payroll ledger command line interface.

Provides operational tools for:
- Schema creation
- Weekly payment generation
- Check number preview
- Ledger batch and archive reports

Usage:
    payroll-ledger init-db
    payroll-ledger generate --from 2024-01-07 --to 2024-02-03
    payroll-ledger generate-year --year 2024 --dry-run
    payroll-ledger next-check
    payroll-ledger batches --employee-id E-100 --from 2024-01-01
    payroll-ledger archive --year 2024
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from decimal import Decimal
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_ledger.config import Settings, get_settings
from payroll_ledger.core.errors import PayrollLedgerError
from payroll_ledger.core.types import LedgerBatch, LedgerFilter
from payroll_ledger.database import init_db
from payroll_ledger.logging_config import configure_logging
from payroll_ledger.models import Base
from payroll_ledger.services import (
    CheckNumberAllocator,
    GenerationReport,
    GenerationService,
    LedgerQueryService,
)
from payroll_ledger.services.sql_stores import build_sql_stores


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {s!r} (expected YYYY-MM-DD)")


def format_amount(amount: Decimal) -> str:
    return f"{amount:>12,.2f}"


class LedgerCli:
    """Payroll ledger command line interface."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._session_factory = session_factory
        self.parser = self._build_parser()

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            _, self._session_factory = init_db(self.settings.database_url)
        return self._session_factory

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="payroll-ledger",
            description="Weekly payroll ledger tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # init-db command
        subparsers.add_parser("init-db", help="Create missing database tables")

        # generate command
        generate = subparsers.add_parser(
            "generate",
            help="Generate weekly obligations for a date range",
        )
        generate.add_argument(
            "--from",
            dest="range_start",
            type=parse_date,
            required=True,
            help="First day of the range (YYYY-MM-DD)",
        )
        generate.add_argument(
            "--to",
            dest="range_end",
            type=parse_date,
            required=True,
            help="Last day of the range (YYYY-MM-DD)",
        )
        generate.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be generated without saving",
        )

        # generate-year command
        generate_year = subparsers.add_parser(
            "generate-year",
            help="Generate weekly obligations for a calendar year",
        )
        generate_year.add_argument("--year", type=int, required=True, help="Calendar year")
        generate_year.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be generated without saving",
        )

        # next-check command
        subparsers.add_parser("next-check", help="Show the next check number")

        # batches command
        batches = subparsers.add_parser("batches", help="List ledger batches")
        batches.add_argument("--employee-id", type=str, help="Only this employee's payments")
        batches.add_argument(
            "--from", dest="date_from", type=parse_date, help="Paid on or after (YYYY-MM-DD)"
        )
        batches.add_argument(
            "--to", dest="date_to", type=parse_date, help="Paid on or before (YYYY-MM-DD)"
        )

        # archive command
        archive = subparsers.add_parser("archive", help="Show the ledger archive for a year")
        archive.add_argument("--year", type=int, required=True, help="Calendar year")
        archive.add_argument("--employee-id", type=str, help="Only this employee's payments")

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        return asyncio.run(self.run_async(args))

    async def run_async(self, args: list[str] | None = None) -> int:
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., Awaitable[int]]] = {
            "init-db": self._cmd_init_db,
            "generate": self._cmd_generate,
            "generate-year": self._cmd_generate_year,
            "next-check": self._cmd_next_check,
            "batches": self._cmd_batches,
            "archive": self._cmd_archive,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return await handler(parsed)
        except PayrollLedgerError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create missing tables."""
        async with self.session_factory() as session:
            connection = await session.connection()
            await connection.run_sync(Base.metadata.create_all)
            await session.commit()
        print("Database schema is up to date.")
        return 0

    async def _generate(
        self, run: Callable[[GenerationService], Awaitable[GenerationReport]], dry_run: bool
    ) -> int:
        async with self.session_factory() as session:
            stores = build_sql_stores(session)
            service = GenerationService(
                stores.employees,
                stores.obligations,
                stores.audit,
                anchor_weekday=self.settings.period_anchor_weekday,
            )
            report = await run(service)
            if dry_run:
                await stores.rollback()
            else:
                await stores.commit()

        self._print_report(report, dry_run)
        return 0

    async def _cmd_generate(self, args: argparse.Namespace) -> int:
        """Generate obligations for a date range."""
        return await self._generate(
            lambda service: service.generate(args.range_start, args.range_end),
            args.dry_run,
        )

    async def _cmd_generate_year(self, args: argparse.Namespace) -> int:
        """Generate obligations for a calendar year."""
        return await self._generate(
            lambda service: service.generate_year(args.year),
            args.dry_run,
        )

    def _print_report(self, report: GenerationReport, dry_run: bool) -> None:
        if dry_run:
            print("[DRY RUN] Nothing was saved.")
        print(f"Generation for {report.range_start.isoformat()} .. {report.range_end.isoformat()}")
        print(f"  Created:            {report.created_count}")
        print(f"  Skipped (existing): {report.skipped_duplicate_count}")
        print(f"  Skipped (ineligible): {report.skipped_ineligible_count}")
        for obligation in report.created:
            print(
                f"    {obligation.employee_id:<12} {obligation.period_start.isoformat()}"
                f" {format_amount(obligation.amount)}"
            )
        for skip in report.skipped_ineligible:
            print(f"    skipped {skip.employee_id} {skip.period_start.isoformat()}: {skip.reason}")

    async def _cmd_next_check(self, args: argparse.Namespace) -> int:
        """Show the next check number."""
        allocator = CheckNumberAllocator(self.settings.check_start_number)
        async with self.session_factory() as session:
            stores = build_sql_stores(session)
            next_number = await allocator.peek(stores.obligations)
        print(next_number)
        return 0

    def _ledger(self, session: AsyncSession) -> LedgerQueryService:
        stores = build_sql_stores(session)
        return LedgerQueryService(stores.obligations, stores.ledger)

    async def _cmd_batches(self, args: argparse.Namespace) -> int:
        """List ledger batches, most recent first."""
        async with self.session_factory() as session:
            ledger = self._ledger(session)
            batches = await ledger.batches(
                LedgerFilter(
                    employee_id=args.employee_id,
                    date_from=args.date_from,
                    date_to=args.date_to,
                )
            )

        if not batches:
            print("No ledger batches.")
            return 0
        for batch in batches:
            self._print_batch(batch)
        return 0

    async def _cmd_archive(self, args: argparse.Namespace) -> int:
        """Show a year's ledger archive."""
        async with self.session_factory() as session:
            ledger = self._ledger(session)
            archive = await ledger.archive(args.year, args.employee_id)

        print(f"Ledger archive {archive.year}")
        print("=" * 40)
        for batch in archive.batches:
            self._print_batch(batch)
        print("=" * 40)
        print(f"Records: {archive.total_records}")
        print(f"Total:   {format_amount(archive.total_amount)}")
        return 0

    def _print_batch(self, batch: LedgerBatch) -> None:
        label = "REVERSAL" if batch.is_reversal else "PAYMENT "
        print(
            f"{batch.paid_date.isoformat()}  {label} {batch.batch_key:<48}"
            f" {batch.employee_count:>3} {format_amount(batch.total_amount)}"
        )
        if batch.is_reversal:
            print(f"    net {format_amount(batch.net_amount)}  reason: {'; '.join(batch.reasons)}")


def main() -> int:
    """CLI entry point."""
    settings = get_settings()
    configure_logging(settings.log_level)
    cli = LedgerCli(settings=settings)
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
