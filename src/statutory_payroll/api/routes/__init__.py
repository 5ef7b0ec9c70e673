"""API routes."""

from statutory_payroll.api.routes.gl_rules import router as gl_rules_router
from statutory_payroll.api.routes.health import router as health_router
from statutory_payroll.api.routes.payroll import router as payroll_router
from statutory_payroll.api.routes.statutory import router as statutory_router

__all__ = ["gl_rules_router", "health_router", "payroll_router", "statutory_router"]
