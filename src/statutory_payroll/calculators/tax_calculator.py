"""Progressive income tax (ISR) withholding."""

from __future__ import annotations

from decimal import Decimal

from statutory_payroll.calculators.line_builder import LineItemBuilder
from statutory_payroll.calculators.types import SubsidyTable, TaxBracketTable, TaxResult
from statutory_payroll.errors import InvalidAmount, NotFound


class ProgressiveTaxCalculator:
    """Calculates income tax withholding from a bracket table.

    Bracket table rows are ``{lower, upper, rate, fixed}``; exactly one row
    applies to a given income (lower-bound inclusive, upper-bound exclusive,
    last row unbounded):

        gross_tax = fixed + (income - lower) * rate

    The employment subsidy is looked up from a parallel table using the same
    selection rule and credited against the tax. Any credit left over is
    reported as ``subsidy_to_pay``.
    """

    def calculate(
        self,
        taxable_income: Decimal,
        table: TaxBracketTable,
        subsidy_table: SubsidyTable | None = None,
    ) -> TaxResult:
        """Compute withholding for income already periodized to the table.

        Raises:
            InvalidAmount: If the income is negative or not finite
        """
        if not taxable_income.is_finite() or taxable_income < 0:
            raise InvalidAmount("taxable_income", taxable_income)

        gross_tax = self.calculate_gross_tax(taxable_income, table)
        subsidy = self.calculate_subsidy(taxable_income, subsidy_table)

        return TaxResult(
            taxable_income=taxable_income,
            gross_tax=gross_tax,
            subsidy=subsidy,
            net_tax=max(Decimal("0.00"), gross_tax - subsidy),
            subsidy_to_pay=max(Decimal("0.00"), subsidy - gross_tax),
        )

    @staticmethod
    def calculate_gross_tax(taxable_income: Decimal, table: TaxBracketTable) -> Decimal:
        row = table.select(taxable_income)
        if row is None:
            raise NotFound(f"isr_table:{table.period_type.value} bracket", table.effective_start)

        tax = row.cumulative_base + (taxable_income - row.lower_bound) * row.marginal_rate
        return LineItemBuilder.round_to_cents(tax)

    @staticmethod
    def calculate_subsidy(taxable_income: Decimal, subsidy_table: SubsidyTable | None) -> Decimal:
        if subsidy_table is None:
            return Decimal("0.00")
        row = subsidy_table.select(taxable_income)
        if row is None:
            return Decimal("0.00")
        return LineItemBuilder.round_to_cents(row.amount)
