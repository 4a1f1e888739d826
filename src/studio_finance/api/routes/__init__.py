"""API routes."""

from studio_finance.api.routes.finance import router as finance_router
from studio_finance.api.routes.health import router as health_router
from studio_finance.api.routes.payroll import router as payroll_router

__all__ = ["finance_router", "health_router", "payroll_router"]
