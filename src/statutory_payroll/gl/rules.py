"""GL override rule types and authoring-time validation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterable, Mapping

from statutory_payroll.errors import RuleAuthoringError


class DimensionType(str, Enum):
    """Line attributes a condition can test."""

    PAY_ELEMENT = "pay_element"
    DEPARTMENT = "department"
    DIVISION = "division"
    LOCATION = "location"
    JOB = "job"
    EMPLOYEE = "employee"
    PAY_GROUP = "pay_group"
    COST_CENTER = "cost_center"
    SECTION = "section"
    MAPPING_TYPE = "mapping_type"


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    IN = "in"
    NOT_IN = "not_in"
    ANY = "any"


class OverrideType(str, Enum):
    ACCOUNT = "account"
    SEGMENT = "segment"
    FULL_STRING = "full_string"


class Polarity(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class MappingType(str, Enum):
    """Posting categories of payroll lines."""

    WAGES_EXPENSE = "wages_expense"
    TAX_LIABILITY = "tax_liability"
    TAX_EXPENSE = "tax_expense"
    DEDUCTION_LIABILITY = "deduction_liability"
    BENEFIT_EXPENSE = "benefit_expense"
    BENEFIT_LIABILITY = "benefit_liability"
    EMPLOYER_CONTRIBUTION = "employer_contribution"
    SAVINGS_EMPLOYEE_DEDUCTION = "savings_employee_deduction"
    SAVINGS_EMPLOYER_CONTRIBUTION = "savings_employer_contribution"
    LOAN_REPAYMENT = "loan_repayment"
    GARNISHMENT = "garnishment"


@dataclass(frozen=True)
class LineDimensions:
    """Dimension values of one payroll line; ``None`` means not set."""

    pay_element: str | None = None
    department: str | None = None
    division: str | None = None
    location: str | None = None
    job: str | None = None
    employee: str | None = None
    pay_group: str | None = None
    cost_center: str | None = None
    section: str | None = None
    mapping_type: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return asdict(self)


@dataclass(frozen=True)
class GLOverrideCondition:
    """One predicate over a single dimension."""

    dimension: DimensionType
    operator: ConditionOperator
    values: tuple[str, ...] = ()

    @property
    def problem(self) -> str | None:
        """Why the condition cannot be evaluated, or None if it can."""
        op = self.operator
        if op in (ConditionOperator.EQUALS, ConditionOperator.NOT_EQUALS) and len(self.values) != 1:
            return f"'{op.value}' on {self.dimension.value} needs exactly one value"
        if op in (ConditionOperator.IN, ConditionOperator.NOT_IN) and not self.values:
            return f"'{op.value}' on {self.dimension.value} needs at least one value"
        return None

    def matches(self, dimensions: Mapping[str, str | None]) -> bool:
        if self.operator == ConditionOperator.ANY:
            return True

        value = dimensions.get(self.dimension.value)
        if self.operator == ConditionOperator.EQUALS:
            return value is not None and value == self.values[0]
        if self.operator == ConditionOperator.NOT_EQUALS:
            return value != self.values[0]
        if self.operator == ConditionOperator.IN:
            return value is not None and value in self.values
        # NOT_IN
        return value not in self.values


@dataclass(frozen=True)
class GLOverrideTarget:
    """Replacement account(s) or string of a rule."""

    debit_account: str | None = None
    credit_account: str | None = None
    segment_overrides: dict[str, str] = field(default_factory=dict)
    custom_gl_string: str | None = None


@dataclass(frozen=True)
class GLOverrideRule:
    """A prioritized, conditional instruction redirecting a line's account.

    Higher ``priority`` is evaluated first. ``defined_at`` orders rules of
    equal priority (most recent first), then ``rule_code``.
    """

    rule_code: str
    priority: int
    override_type: OverrideType
    conditions: tuple[GLOverrideCondition, ...]
    target: GLOverrideTarget
    effective_start: date
    effective_end: date | None = None
    applies_to_debit: bool = True
    applies_to_credit: bool = True
    is_active: bool = True
    defined_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rule_name: str | None = None
    description: str | None = None
    rule_id: str | None = None

    def is_effective(self, as_of_date: date) -> bool:
        if as_of_date < self.effective_start:
            return False
        return self.effective_end is None or as_of_date <= self.effective_end

    def applies_to(self, polarity: Polarity) -> bool:
        if polarity == Polarity.DEBIT:
            return self.applies_to_debit
        return self.applies_to_credit


def validate_rule(
    rule: GLOverrideRule,
    segment_codes: Iterable[str] | None = None,
) -> None:
    """Reject rules that cannot be saved.

    Raises:
        RuleAuthoringError: On the first problem found
    """
    code = rule.rule_code

    if not code:
        raise RuleAuthoringError(code, "rule_code is required")
    if not rule.conditions:
        raise RuleAuthoringError(
            code, "rule has no conditions; add an explicit 'any' condition to match every line"
        )
    if not (rule.applies_to_debit or rule.applies_to_credit):
        raise RuleAuthoringError(code, "rule applies to neither debit nor credit")
    if rule.effective_end is not None and rule.effective_end < rule.effective_start:
        raise RuleAuthoringError(code, "effective_end precedes effective_start")

    for condition in rule.conditions:
        if condition.problem:
            raise RuleAuthoringError(code, condition.problem)

    target = rule.target
    if rule.override_type == OverrideType.ACCOUNT:
        if not (target.debit_account or target.credit_account):
            raise RuleAuthoringError(code, "account override needs a debit or credit account")
    elif rule.override_type == OverrideType.SEGMENT:
        if not target.segment_overrides:
            raise RuleAuthoringError(code, "segment override needs at least one segment")
        if segment_codes is not None:
            known = set(segment_codes)
            unknown = sorted(set(target.segment_overrides) - known)
            if unknown:
                raise RuleAuthoringError(code, f"unknown segments: {', '.join(unknown)}")
    elif not target.custom_gl_string:
        raise RuleAuthoringError(code, "full_string override needs custom_gl_string")
