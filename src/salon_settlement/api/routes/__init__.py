"""API routes."""

from salon_settlement.api.routes.checkout import router as checkout_router
from salon_settlement.api.routes.health import router as health_router
from salon_settlement.api.routes.payroll import router as payroll_router

__all__ = ["checkout_router", "health_router", "payroll_router"]
