"""State payroll tax (ISN) calculation."""

from __future__ import annotations

from decimal import Decimal

from statutory_payroll.calculators.line_builder import LineItemBuilder
from statutory_payroll.calculators.types import PayrollTaxResult, PayrollTaxSchedule
from statutory_payroll.errors import InvalidAmount, NotFound


class PayrollTaxCalculator:
    """Calculates employer payroll tax on total payroll cost.

    Uses the same row selection as the income tax table, keyed by
    jurisdiction. A jurisdiction without a schedule levies no tax.
    """

    def calculate(
        self,
        total_payroll_cost: Decimal,
        jurisdiction: str,
        schedule: PayrollTaxSchedule | None,
    ) -> PayrollTaxResult:
        if not total_payroll_cost.is_finite() or total_payroll_cost < 0:
            raise InvalidAmount("total_payroll_cost", total_payroll_cost)

        if schedule is None:
            return PayrollTaxResult(
                jurisdiction=jurisdiction,
                taxable_base=total_payroll_cost,
                amount=Decimal("0.00"),
                registered=False,
            )

        row = schedule.select(total_payroll_cost)
        if row is None:
            raise NotFound(f"isn:{jurisdiction} bracket", schedule.effective_start)

        tax = row.cumulative_base + (total_payroll_cost - row.lower_bound) * row.marginal_rate
        return PayrollTaxResult(
            jurisdiction=jurisdiction,
            taxable_base=total_payroll_cost,
            amount=LineItemBuilder.round_to_cents(tax),
            registered=True,
        )
