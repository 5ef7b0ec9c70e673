"""Type definitions for the statutory calculation pipeline."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence


class PeriodType(str, Enum):
    """Pay period lengths recognised by the bracket tables."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


# Codes of the deductions appended by the assembler
ISR_DEDUCTION_CODE = "ISR"
IMSS_DEDUCTION_CODE = "IMSS"


class DeductionSource(str, Enum):
    """Where a deduction line came from."""

    MANUAL = "manual"
    COMPUTED = "computed"


@dataclass(frozen=True)
class PayPeriod:
    """An inclusive pay period."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Pay period ends ({self.end}) before it starts ({self.start})")

    @property
    def days_worked(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def period_type(self) -> PeriodType:
        days = self.days_worked
        if days <= 7:
            return PeriodType.WEEKLY
        if days <= 16:
            return PeriodType.BIWEEKLY
        return PeriodType.MONTHLY


@dataclass(frozen=True)
class PerceptionLine:
    """A payroll line that adds to gross pay.

    ``taxable_amount`` and ``exempt_amount`` stay ``None`` until the line has
    been through the exemption splitter.
    """

    code: str
    gross_amount: Decimal
    taxable_amount: Decimal | None = None
    exempt_amount: Decimal | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if (self.taxable_amount is None) != (self.exempt_amount is None):
            raise ValueError("taxable_amount and exempt_amount must be set together")
        if self.is_split and self.taxable_amount + self.exempt_amount != self.gross_amount:
            raise ValueError(
                f"Perception {self.code}: taxable {self.taxable_amount} + exempt "
                f"{self.exempt_amount} != gross {self.gross_amount}"
            )

    @property
    def is_split(self) -> bool:
        return self.taxable_amount is not None


@dataclass(frozen=True)
class DeductionLine:
    """A payroll line that subtracts from gross pay."""

    code: str
    amount: Decimal
    source: DeductionSource = DeductionSource.MANUAL
    description: str | None = None


# ===== Bracket tables =====


def _validate_rows(name: str, rows: Sequence[Any]) -> None:
    """Bounds must start at zero, be contiguous and strictly increasing."""
    if not rows:
        raise ValueError(f"{name} has no rows")
    if rows[0].lower_bound != 0:
        raise ValueError(f"{name} must start at 0, got {rows[0].lower_bound}")
    for i, row in enumerate(rows):
        last = i == len(rows) - 1
        if row.upper_bound is None:
            if not last:
                raise ValueError(f"{name} row {i} is unbounded but is not the last row")
            continue
        if row.upper_bound <= row.lower_bound:
            raise ValueError(
                f"{name} row {i} upper bound {row.upper_bound} <= lower bound {row.lower_bound}"
            )
        if not last and rows[i + 1].lower_bound != row.upper_bound:
            raise ValueError(
                f"{name} row {i} upper bound {row.upper_bound} does not meet "
                f"row {i + 1} lower bound {rows[i + 1].lower_bound}"
            )


def _select_row(rows: Sequence[Any], amount: Decimal) -> Any | None:
    """Select the row with lower_bound <= amount < upper_bound."""
    lowers = [row.lower_bound for row in rows]
    idx = bisect_right(lowers, amount) - 1
    if idx < 0:
        return None
    row = rows[idx]
    if row.upper_bound is not None and amount >= row.upper_bound:
        return None
    return row


@dataclass(frozen=True)
class TaxBracket:
    """One row of a progressive tax table."""

    lower_bound: Decimal
    upper_bound: Decimal | None  # None = no upper limit
    marginal_rate: Decimal  # As decimal, e.g. 0.1088 for 10.88%
    cumulative_base: Decimal = Decimal("0")  # Fixed quota at bracket start


@dataclass(frozen=True)
class TaxBracketTable:
    """Progressive tax table valid for one period type and date range."""

    period_type: PeriodType
    effective_start: date
    rows: tuple[TaxBracket, ...]
    effective_end: date | None = None

    def __post_init__(self) -> None:
        _validate_rows(f"Tax table ({self.period_type.value})", self.rows)

    def select(self, amount: Decimal) -> TaxBracket | None:
        return _select_row(self.rows, amount)


@dataclass(frozen=True)
class SubsidyBracket:
    """One row of the employment subsidy table."""

    lower_bound: Decimal
    upper_bound: Decimal | None
    amount: Decimal


@dataclass(frozen=True)
class SubsidyTable:
    """Subsidy/credit table parallel to a tax table."""

    period_type: PeriodType
    effective_start: date
    rows: tuple[SubsidyBracket, ...]
    effective_end: date | None = None

    def __post_init__(self) -> None:
        _validate_rows(f"Subsidy table ({self.period_type.value})", self.rows)

    def select(self, amount: Decimal) -> SubsidyBracket | None:
        return _select_row(self.rows, amount)


@dataclass(frozen=True)
class PayrollTaxSchedule:
    """Payroll tax brackets for one jurisdiction.

    A single unbounded row is a flat rate.
    """

    jurisdiction: str
    effective_start: date
    rows: tuple[TaxBracket, ...]
    effective_end: date | None = None

    def __post_init__(self) -> None:
        _validate_rows(f"Payroll tax schedule ({self.jurisdiction})", self.rows)

    def select(self, amount: Decimal) -> TaxBracket | None:
        return _select_row(self.rows, amount)


# ===== Calculator results =====


@dataclass(frozen=True)
class TaxResult:
    """Income tax withholding for one period."""

    taxable_income: Decimal
    gross_tax: Decimal
    subsidy: Decimal
    net_tax: Decimal
    subsidy_to_pay: Decimal  # Credit in excess of the tax


@dataclass(frozen=True)
class ContributionLine:
    """Employee/employer contribution for one sub-category."""

    category: str
    daily_base: Decimal
    employee_amount: Decimal
    employer_amount: Decimal
    description: str | None = None


@dataclass(frozen=True)
class ContributionResult:
    """Itemized social-security contributions."""

    base_salary: Decimal  # Daily base after the overall cap
    days_worked: int
    risk_class: str
    lines: tuple[ContributionLine, ...]

    @property
    def employee_total(self) -> Decimal:
        return sum((line.employee_amount for line in self.lines), Decimal("0"))

    @property
    def employer_total(self) -> Decimal:
        return sum((line.employer_amount for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class PayrollTaxResult:
    """State payroll tax owed by the employer."""

    jurisdiction: str
    taxable_base: Decimal
    amount: Decimal
    registered: bool


# ===== Assembler request/result =====


@dataclass(frozen=True)
class EmployeeProfile:
    """Statutory identity and contribution attributes of an employee."""

    employee_id: str
    tax_id: str | None  # RFC
    social_security_number: str | None  # NSS
    base_salary: Decimal  # Daily contribution base (SBC)
    risk_class: str
    jurisdiction: str


@dataclass(frozen=True)
class PayrollCalculationRequest:
    """Inputs for one employee and one pay period."""

    employee: EmployeeProfile
    period: PayPeriod
    perceptions: tuple[PerceptionLine, ...]
    deductions: tuple[DeductionLine, ...] = ()
    as_of_date: date | None = None  # Defaults to the period end

    @property
    def calculation_date(self) -> date:
        return self.as_of_date or self.period.end

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "employee": {
                "employee_id": self.employee.employee_id,
                "tax_id": self.employee.tax_id,
                "social_security_number": self.employee.social_security_number,
                "base_salary": str(self.employee.base_salary),
                "risk_class": self.employee.risk_class,
                "jurisdiction": self.employee.jurisdiction,
            },
            "period_start": self.period.start.isoformat(),
            "period_end": self.period.end.isoformat(),
            "as_of_date": self.calculation_date.isoformat(),
            "perceptions": [[p.code, str(p.gross_amount)] for p in self.perceptions],
            "deductions": [[d.code, str(d.amount)] for d in self.deductions],
        }


@dataclass
class PayrollCalculationResult:
    """Full net-pay breakdown for one employee and period."""

    employee_id: str
    calculation_id: str
    period: PayPeriod
    perceptions: list[PerceptionLine]
    deductions: list[DeductionLine]
    tax: TaxResult
    contributions: ContributionResult
    payroll_tax: PayrollTaxResult
    total_perceptions: Decimal
    total_taxable: Decimal
    total_exempt: Decimal
    total_deductions: Decimal
    subsidy_paid: Decimal
    net_pay: Decimal
    warnings: list[str] = field(default_factory=list)

    @property
    def employer_cost(self) -> Decimal:
        """Gross pay plus employer contributions and payroll tax."""
        return self.total_perceptions + self.contributions.employer_total + self.payroll_tax.amount
