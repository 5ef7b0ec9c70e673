"""SQLAlchemy ORM models."""

from statutory_payroll.models.base import Base, TimestampMixin
from statutory_payroll.models.catalog import CatalogRule, CatalogRuleVersion
from statutory_payroll.models.gl import (
    GLOverrideConditionModel,
    GLOverrideRuleModel,
    GLOverrideTargetModel,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "CatalogRule",
    "CatalogRuleVersion",
    "GLOverrideConditionModel",
    "GLOverrideRuleModel",
    "GLOverrideTargetModel",
]
