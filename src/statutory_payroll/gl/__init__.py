"""GL override rules and resolution."""

from statutory_payroll.gl.resolver import GLOverrideResolver, GLResolution
from statutory_payroll.gl.rules import (
    ConditionOperator,
    DimensionType,
    GLOverrideCondition,
    GLOverrideRule,
    GLOverrideTarget,
    LineDimensions,
    MappingType,
    OverrideType,
    Polarity,
    validate_rule,
)

__all__ = [
    "ConditionOperator",
    "DimensionType",
    "GLOverrideCondition",
    "GLOverrideResolver",
    "GLOverrideRule",
    "GLOverrideTarget",
    "GLResolution",
    "LineDimensions",
    "MappingType",
    "OverrideType",
    "Polarity",
    "validate_rule",
]
