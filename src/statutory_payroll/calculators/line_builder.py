"""Money rounding and line item construction."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from statutory_payroll.calculators.types import (
    DeductionLine,
    DeductionSource,
    PerceptionLine,
)
from statutory_payroll.errors import InvalidAmount


class LineItemBuilder:
    """Builds perception and deduction lines with consistent rounding.

    Rounding:
    - Amounts are MXN with 2 decimals, ROUND_HALF_UP
    - Rates and daily figures are never rounded
    - Every total is the sum of already-rounded lines
    """

    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def to_money(value: Any, field: str) -> Decimal:
        """Convert input to a rounded, non-negative, finite amount."""
        if isinstance(value, float):
            value = str(value)
        try:
            amount = value if isinstance(value, Decimal) else Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidAmount(field, value) from None
        if not amount.is_finite() or amount < 0:
            raise InvalidAmount(field, value)
        return LineItemBuilder.round_to_cents(amount)

    @staticmethod
    def create_perception_line(
        code: str,
        amount: Any,
        description: str | None = None,
    ) -> PerceptionLine:
        """Create an unsplit perception line."""
        return PerceptionLine(
            code=code,
            gross_amount=LineItemBuilder.to_money(amount, f"perception {code}"),
            description=description,
        )

    @staticmethod
    def create_deduction_line(
        code: str,
        amount: Any,
        description: str | None = None,
    ) -> DeductionLine:
        """Create a manual deduction line."""
        return DeductionLine(
            code=code,
            amount=LineItemBuilder.to_money(amount, f"deduction {code}"),
            source=DeductionSource.MANUAL,
            description=description,
        )

    @staticmethod
    def create_computed_deduction(
        code: str,
        amount: Decimal,
        description: str,
    ) -> DeductionLine:
        """Create a deduction appended by the assembler (tax, contribution)."""
        return DeductionLine(
            code=code,
            amount=LineItemBuilder.round_to_cents(amount),
            source=DeductionSource.COMPUTED,
            description=description,
        )

    @staticmethod
    def sum_gross(lines: Iterable[PerceptionLine]) -> Decimal:
        return sum((line.gross_amount for line in lines), Decimal("0.00"))

    @staticmethod
    def sum_taxable(lines: Iterable[PerceptionLine]) -> Decimal:
        return sum((line.taxable_amount or Decimal("0") for line in lines), Decimal("0.00"))

    @staticmethod
    def sum_exempt(lines: Iterable[PerceptionLine]) -> Decimal:
        return sum((line.exempt_amount or Decimal("0") for line in lines), Decimal("0.00"))

    @staticmethod
    def sum_deductions(lines: Iterable[DeductionLine]) -> Decimal:
        return sum((line.amount for line in lines), Decimal("0.00"))
