"""API routes."""

from monthly_payroll.api.routes.adjustments import router as adjustments_router
from monthly_payroll.api.routes.health import router as health_router
from monthly_payroll.api.routes.periods import router as periods_router

__all__ = ["adjustments_router", "health_router", "periods_router"]
