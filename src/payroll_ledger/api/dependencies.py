"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.config import Settings, get_settings
from payroll_ledger.database import init_db
from payroll_ledger.services import (
    CheckNumberAllocator,
    GenerationService,
    LedgerQueryService,
    PaymentService,
)
from payroll_ledger.services.sql_stores import build_sql_stores
from payroll_ledger.services.stores import Stores


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, session_factory = init_db()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_stores(db: DbSession) -> Stores:
    return build_sql_stores(db)


def get_allocator(request: Request) -> CheckNumberAllocator:
    """The process-wide check number allocator held on app state."""
    return request.app.state.check_allocator


StoresDep = Annotated[Stores, Depends(get_stores)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Allocator = Annotated[CheckNumberAllocator, Depends(get_allocator)]


def get_payment_service(stores: StoresDep, allocator: Allocator) -> PaymentService:
    return PaymentService(
        stores.obligations, stores.ledger, stores.audit, allocator, commit=stores.commit
    )


def get_generation_service(stores: StoresDep, settings: AppSettings) -> GenerationService:
    return GenerationService(
        stores.employees,
        stores.obligations,
        stores.audit,
        anchor_weekday=settings.period_anchor_weekday,
    )


def get_ledger_service(stores: StoresDep) -> LedgerQueryService:
    return LedgerQueryService(stores.obligations, stores.ledger)


# Type aliases for cleaner dependency injection
Payments = Annotated[PaymentService, Depends(get_payment_service)]
Generation = Annotated[GenerationService, Depends(get_generation_service)]
Ledger = Annotated[LedgerQueryService, Depends(get_ledger_service)]
