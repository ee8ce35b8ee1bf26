"""API routes."""

from payroll_ledger.api.routes.health import router as health_router
from payroll_ledger.api.routes.ledger import router as ledger_router
from payroll_ledger.api.routes.payments import router as payments_router

__all__ = ["payments_router", "ledger_router", "health_router"]
