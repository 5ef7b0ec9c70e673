"""Error taxonomy shared by calculators, resolver and encoder."""

from __future__ import annotations

from datetime import date
from typing import Any


class PayrollError(Exception):
    """Base class for all statutory payroll errors."""

    code = "PAYROLL_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.context = context or {}
        super().__init__(message)


class UnknownCatalogCode(PayrollError):
    """Raised when a code is not present in a catalog."""

    code = "UNKNOWN_CATALOG_CODE"

    def __init__(self, catalog: str, value: str):
        self.catalog = catalog
        self.value = value
        super().__init__(
            f"Unknown {catalog} code '{value}'",
            {"catalog": catalog, "value": value},
        )


class NotFound(PayrollError):
    """Raised when no reference data is effective for the requested date."""

    code = "NOT_FOUND"

    def __init__(self, key: str, as_of_date: date):
        self.key = key
        self.as_of_date = as_of_date
        super().__init__(
            f"No '{key}' reference data effective on {as_of_date}",
            {"key": key, "as_of_date": as_of_date.isoformat()},
        )


class InvalidAmount(PayrollError):
    """Raised for negative or non-finite monetary input."""

    code = "INVALID_AMOUNT"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid amount for {field}: {value!r}",
            {"field": field, "value": str(value)},
        )


class MissingRegistration(PayrollError):
    """Raised when an employee or company lacks statutory identifiers."""

    code = "MISSING_REGISTRATION"

    def __init__(self, subject: str, missing: list[str]):
        self.subject = subject
        self.missing = missing
        super().__init__(
            f"{subject} is missing required registration fields: {', '.join(missing)}",
            {"subject": subject, "missing": missing},
        )


class EncodingFieldOverflow(PayrollError):
    """A value exceeded its fixed field width and was truncated.

    Recorded on the encoding result and logged; never raised.
    """

    code = "ENCODING_FIELD_OVERFLOW"

    def __init__(self, record_type: str, field: str, width: int, value: str):
        self.record_type = record_type
        self.field = field
        self.width = width
        self.value = value
        super().__init__(
            f"{record_type}.{field} value {value!r} exceeds width {width}; truncated",
            {"record_type": record_type, "field": field, "width": width, "value": value},
        )


class RuleAuthoringError(PayrollError):
    """Raised when a GL override rule is saved in an invalid shape."""

    code = "RULE_AUTHORING_ERROR"

    def __init__(self, rule_code: str, reason: str):
        self.rule_code = rule_code
        self.reason = reason
        super().__init__(
            f"GL override rule '{rule_code}' is invalid: {reason}",
            {"rule_code": rule_code, "reason": reason},
        )


class CalculationFailed(PayrollError):
    """Raised when a payroll assembly ends in the failed state."""

    code = "CALCULATION_FAILED"

    def __init__(self, employee_id: str, error: Exception, stage: str):
        self.employee_id = employee_id
        self.error = error
        self.stage = stage
        context: dict[str, Any] = {"employee_id": employee_id, "stage": stage}
        if isinstance(error, PayrollError):
            context["error_code"] = error.code
            context.update(error.context)
        super().__init__(
            f"Payroll calculation failed for employee {employee_id} during {stage}: {error}",
            context,
        )
