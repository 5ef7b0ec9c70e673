"""Tests for statutory benefit calculations."""

from datetime import date
from decimal import Decimal

import pytest

from statutory_payroll.calculators.benefits import (
    StatutoryBenefitsCalculator,
    TerminationType,
    vacation_days,
    years_of_service,
)
from statutory_payroll.calculators.types import EmployeeProfile, PayPeriod, PayrollCalculationRequest
from statutory_payroll.errors import InvalidAmount

DAILY = Decimal("500.00")


@pytest.fixture
def calculator():
    return StatutoryBenefitsCalculator(Decimal("108.57"))


class TestServiceTables:
    def test_years_of_service(self):
        """Only completed anniversaries count."""
        assert years_of_service(date(2020, 3, 15), date(2024, 3, 14)) == 3
        assert years_of_service(date(2020, 3, 15), date(2024, 3, 15)) == 4
        assert years_of_service(date(2024, 3, 15), date(2024, 1, 1)) == 0

    @pytest.mark.parametrize(
        "years, days",
        [(0, 0), (1, 12), (2, 14), (5, 20), (6, 22), (10, 22), (11, 24), (35, 32)],
    )
    def test_vacation_days(self, years, days):
        """Vacation days follow the 2023 entitlement table."""
        assert vacation_days(years) == days


class TestAguinaldo:
    def test_full_year(self, calculator):
        """A full year earns 15 days of salary, unsplit."""
        line = calculator.aguinaldo(DAILY, 2024, hire_date=date(2020, 1, 1))

        assert line.code == "P002"
        assert line.gross_amount == Decimal("7500.00")
        assert not line.is_split

    def test_hired_mid_year(self, calculator):
        """184 of 366 days in 2024."""
        line = calculator.aguinaldo(DAILY, 2024, hire_date=date(2024, 7, 1))

        assert line.gross_amount == Decimal("3770.49")

    def test_terminated_mid_year(self, calculator):
        """Termination prorates the aguinaldo."""
        full = calculator.aguinaldo(DAILY, 2023, hire_date=date(2020, 1, 1))
        partial = calculator.aguinaldo(
            DAILY, 2023, hire_date=date(2020, 1, 1), termination_date=date(2023, 6, 30)
        )

        assert partial.gross_amount < full.gross_amount

    def test_negative_salary_rejected(self, calculator):
        """A negative salary raises InvalidAmount."""
        with pytest.raises(InvalidAmount):
            calculator.aguinaldo(Decimal("-1"), 2024, hire_date=date(2020, 1, 1))


class TestVacation:
    def test_first_year(self, calculator):
        """12 days of pay plus the 25% vacation premium."""
        pay, premium = calculator.vacation(DAILY, 1)

        assert (pay.code, pay.gross_amount) == ("P038", Decimal("6000.00"))
        assert (premium.code, premium.gross_amount) == ("P021", Decimal("1500.00"))


class TestProfitSharing:
    def test_half_by_days_half_by_salary(self, calculator):
        """Half the pool by days worked, half by salary."""
        line = calculator.profit_sharing(
            pool=Decimal("100000"),
            days_worked=365,
            total_company_days=3650,
            annual_salary=Decimal("182500"),
            total_company_salaries=Decimal("1825000"),
        )

        assert line.code == "P003"
        assert line.gross_amount == Decimal("10000.00")

    def test_zero_totals_rejected(self, calculator):
        """Company totals of zero cannot be divided."""
        with pytest.raises(InvalidAmount):
            calculator.profit_sharing(Decimal("1000"), 10, 0, Decimal("1"), Decimal("1"))


class TestSettlement:
    """Hired 2020-03-15, terminated 2024-06-10 (4 full years)."""

    HIRE = date(2020, 3, 15)
    TERMINATION = date(2024, 6, 10)

    def test_voluntary(self, calculator):
        """Voluntary exit pays only accrued benefits and final salary."""
        lines = calculator.settlement(DAILY, self.HIRE, self.TERMINATION, TerminationType.VOLUNTARY)

        assert [(l.code, l.gross_amount) for l in lines] == [
            ("P002", Decimal("3750.00")),
            ("P038", Decimal("5000.00")),
            ("P021", Decimal("1250.00")),
            ("P001", Decimal("5000.00")),
        ]

    def test_unjustified_adds_seniority_and_indemnity(self, calculator):
        """Unjustified dismissal adds seniority premium and indemnity."""
        lines = calculator.settlement(
            DAILY, self.HIRE, self.TERMINATION, TerminationType.UNJUSTIFIED
        )
        by_code = {l.code: l.gross_amount for l in lines}

        # 12 days x 4 years on the 2 UMA cap (217.14)
        assert by_code["P022"] == Decimal("10422.72")
        # 90 days + 20 days x 4 years
        assert by_code["P025"] == Decimal("85000.00")

    def test_seniority_after_fifteen_years_even_if_voluntary(self, calculator):
        """After 15 years seniority premium is owed even on voluntary exit."""
        lines = calculator.settlement(
            DAILY, date(2009, 1, 1), self.TERMINATION, TerminationType.VOLUNTARY
        )
        by_code = {l.code: l.gross_amount for l in lines}

        assert by_code["P022"] == Decimal("39085.20")
        assert "P025" not in by_code

    def test_termination_before_hire_rejected(self, calculator):
        """A termination date before the hire date is rejected."""
        with pytest.raises(ValueError):
            calculator.settlement(DAILY, self.TERMINATION, self.HIRE, TerminationType.VOLUNTARY)

    async def test_settlement_lines_feed_the_assembler(self, calculator, assembler):
        """Settlement lines go through the exemption ceilings like any other perception."""
        lines = calculator.settlement(
            DAILY, self.HIRE, self.TERMINATION, TerminationType.UNJUSTIFIED
        )
        request = PayrollCalculationRequest(
            employee=EmployeeProfile("EMP-009", "PEPJ800101AB1", "12345678901", DAILY, "I", "CDMX"),
            period=PayPeriod(date(2024, 6, 1), date(2024, 6, 10)),
            perceptions=tuple(lines),
        )

        result = await assembler.calculate(request)
        indemnity = next(p for p in result.perceptions if p.code == "P025")

        # 90 x 108.57
        assert indemnity.exempt_amount == Decimal("9771.30")
        assert result.total_perceptions == sum(l.gross_amount for l in lines)
