"""Business services for the statutory payroll service."""

from statutory_payroll.services.state_machine import (
    AssemblyStateMachine,
    AssemblyStatus,
    InvalidTransitionError,
)
from statutory_payroll.services.catalog_service import CatalogStore
from statutory_payroll.services.gl_rule_service import GLRuleService
from statutory_payroll.services.gl_service import GLService, JournalBatch, JournalLine

__all__ = [
    "AssemblyStateMachine",
    "AssemblyStatus",
    "InvalidTransitionError",
    "CatalogStore",
    "GLRuleService",
    "GLService",
    "JournalBatch",
    "JournalLine",
]
