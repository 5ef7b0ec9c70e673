"""Unit tests for ProgressiveTaxCalculator.

Expected amounts are worked from the 2024 monthly tables. The subsidy
changed on 2024-05-01 from a bracketed table to a flat amount, so both are
covered.
"""

from datetime import date
from decimal import Decimal

import pytest

from statutory_payroll.calculators.tax_calculator import ProgressiveTaxCalculator
from statutory_payroll.calculators.types import (
    PeriodType,
    SubsidyBracket,
    SubsidyTable,
    TaxBracket,
    TaxBracketTable,
)
from statutory_payroll.errors import InvalidAmount

AS_OF = date(2024, 6, 30)
BEFORE_DECREE = date(2024, 3, 31)


@pytest.fixture
def monthly_table(catalog):
    return catalog.tax_table(PeriodType.MONTHLY, AS_OF)


@pytest.fixture
def monthly_subsidy(catalog):
    return catalog.subsidy_table(PeriodType.MONTHLY, BEFORE_DECREE)


@pytest.fixture
def flat_subsidy(catalog):
    return catalog.subsidy_table(PeriodType.MONTHLY, AS_OF)


class TestBracketSelection:
    """Lower bound inclusive, upper bound exclusive."""

    def test_lower_bound_is_inclusive(self, monthly_table):
        """An income equal to a lower bound selects that row."""
        row = monthly_table.select(Decimal("746.05"))

        assert row.lower_bound == Decimal("746.05")
        assert row.marginal_rate == Decimal("0.0640")

    def test_just_below_bound_uses_previous_row(self, monthly_table):
        """One cent below a bound stays in the previous row."""
        row = monthly_table.select(Decimal("746.04"))

        assert row.lower_bound == Decimal("0")

    def test_zero_income_selects_first_row(self, monthly_table):
        """Zero income selects the first row."""
        assert monthly_table.select(Decimal("0")) is monthly_table.rows[0]

    def test_last_row_unbounded(self, monthly_table):
        """The top row has no upper bound."""
        row = monthly_table.select(Decimal("10000000"))

        assert row.upper_bound is None
        assert row.marginal_rate == Decimal("0.35")


class TestProgressiveTaxCalculation:
    """Test gross tax and subsidy credit."""

    def test_first_bracket(self, monthly_table):
        """746.04 x 1.92% = 14.32."""
        assert ProgressiveTaxCalculator.calculate_gross_tax(
            Decimal("746.04"), monthly_table
        ) == Decimal("14.32")

    def test_exactly_at_bracket_start_is_fixed_quota(self, monthly_table):
        """At a bracket start only the fixed quota is owed."""
        assert ProgressiveTaxCalculator.calculate_gross_tax(
            Decimal("746.05"), monthly_table
        ) == Decimal("14.32")

    def test_mid_table_income(self, monthly_table):
        """371.83 + (10000 - 6332.06) x 10.88% = 770.90."""
        result = ProgressiveTaxCalculator().calculate(Decimal("10000.00"), monthly_table)

        assert result.gross_tax == Decimal("770.90")
        assert result.subsidy == Decimal("0.00")
        assert result.net_tax == Decimal("770.90")
        assert result.subsidy_to_pay == Decimal("0.00")

    def test_subsidy_credited(self, monthly_table, monthly_subsidy):
        """5000 monthly: tax 286.57, subsidy 324.87, credit left over 38.30."""
        result = ProgressiveTaxCalculator().calculate(
            Decimal("5000.00"), monthly_table, monthly_subsidy
        )

        assert result.gross_tax == Decimal("286.57")
        assert result.subsidy == Decimal("324.87")
        assert result.net_tax == Decimal("0.00")
        assert result.subsidy_to_pay == Decimal("38.30")

    def test_subsidy_exhausted_above_ceiling(self, monthly_table, monthly_subsidy):
        """Above the last bracketed row there is no subsidy."""
        result = ProgressiveTaxCalculator().calculate(
            Decimal("7382.34"), monthly_table, monthly_subsidy
        )

        assert result.subsidy == Decimal("0.00")
        assert result.net_tax == result.gross_tax

    def test_flat_subsidy_after_decree(self, monthly_table, flat_subsidy):
        """5000 monthly from May: tax 286.57, subsidy 390.12, credit 103.55."""
        result = ProgressiveTaxCalculator().calculate(
            Decimal("5000.00"), monthly_table, flat_subsidy
        )

        assert result.subsidy == Decimal("390.12")
        assert result.net_tax == Decimal("0.00")
        assert result.subsidy_to_pay == Decimal("103.55")

    def test_flat_subsidy_ceiling_inclusive(self, monthly_table, flat_subsidy):
        """9081.00 still gets the subsidy; one cent more does not."""
        calculator = ProgressiveTaxCalculator()

        at_ceiling = calculator.calculate(Decimal("9081.00"), monthly_table, flat_subsidy)
        above = calculator.calculate(Decimal("9081.01"), monthly_table, flat_subsidy)

        assert at_ceiling.subsidy == Decimal("390.12")
        assert above.subsidy == Decimal("0.00")
        assert above.net_tax == above.gross_tax

    def test_zero_income(self, monthly_table):
        """Zero income owes nothing."""
        result = ProgressiveTaxCalculator().calculate(Decimal("0"), monthly_table)

        assert result.gross_tax == Decimal("0.00")
        assert result.net_tax == Decimal("0.00")

    def test_negative_income_rejected(self, monthly_table):
        """Negative income raises InvalidAmount."""
        with pytest.raises(InvalidAmount):
            ProgressiveTaxCalculator().calculate(Decimal("-1"), monthly_table)

    def test_custom_single_bracket_table(self):
        """Amounts round half-up to the cent."""
        table = TaxBracketTable(
            PeriodType.WEEKLY,
            AS_OF,
            (TaxBracket(Decimal("0"), None, Decimal("0.10")),),
        )
        subsidy = SubsidyTable(
            PeriodType.WEEKLY,
            AS_OF,
            (SubsidyBracket(Decimal("0"), None, Decimal("5.005")),),
        )

        result = ProgressiveTaxCalculator().calculate(Decimal("1000"), table, subsidy)

        assert result.gross_tax == Decimal("100.00")
        assert result.subsidy == Decimal("5.01")
        assert result.net_tax == Decimal("94.99")


class TestTableValidation:
    """Tables must start at zero and be contiguous."""

    def test_must_start_at_zero(self):
        """A table whose first row is above zero is rejected."""
        with pytest.raises(ValueError):
            TaxBracketTable(
                PeriodType.MONTHLY,
                AS_OF,
                (TaxBracket(Decimal("1"), None, Decimal("0.1")),),
            )

    def test_unbounded_row_must_be_last(self):
        """Only the last row may be open-ended."""
        with pytest.raises(ValueError):
            TaxBracketTable(
                PeriodType.MONTHLY,
                AS_OF,
                (
                    TaxBracket(Decimal("0"), None, Decimal("0.1")),
                    TaxBracket(Decimal("100"), None, Decimal("0.2")),
                ),
            )
