"""Statutory employment benefits that feed the payroll assembler.

Each calculation returns unsplit ``PerceptionLine``s whose codes exist in
the perception catalog, so the exemption splitter applies the ceilings
(aguinaldo 30 UMA, vacation premium and PTU 15 UMA, separation payments
90 UMA) when the lines go through ``PayrollAssembler``.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from enum import Enum

from statutory_payroll.calculators.line_builder import LineItemBuilder
from statutory_payroll.calculators.types import PerceptionLine
from statutory_payroll.errors import InvalidAmount

# Perception codes (SAT catalog numbering)
SALARY_CODE = "P001"
AGUINALDO_CODE = "P002"
PROFIT_SHARING_CODE = "P003"
VACATION_PREMIUM_CODE = "P021"
SENIORITY_PREMIUM_CODE = "P022"
INDEMNITY_CODE = "P025"
VACATION_PAY_CODE = "P038"

AGUINALDO_DAYS = 15
VACATION_PREMIUM_RATE = Decimal("0.25")
SENIORITY_DAYS_PER_YEAR = 12
SENIORITY_CAP_UMA_MULTIPLE = Decimal("2")
SENIORITY_MIN_YEARS = 15
INDEMNITY_DAYS = 90
INDEMNITY_DAYS_PER_YEAR = 20

# (minimum years of service, vacation days), 2023 reform
VACATION_TABLE: tuple[tuple[int, int], ...] = (
    (1, 12),
    (2, 14),
    (3, 16),
    (4, 18),
    (5, 20),
    (6, 22),
    (11, 24),
    (16, 26),
    (21, 28),
    (26, 30),
    (31, 32),
)


class TerminationType(str, Enum):
    VOLUNTARY = "voluntary"
    JUSTIFIED = "justified"
    UNJUSTIFIED = "unjustified"


def years_of_service(hire_date: date, as_of_date: date) -> int:
    """Completed years between two dates."""
    years = as_of_date.year - hire_date.year
    if (as_of_date.month, as_of_date.day) < (hire_date.month, hire_date.day):
        years -= 1
    return max(0, years)


def vacation_days(years: int) -> int:
    """Vacation days for the given completed years of service."""
    days = 0
    for min_years, entitled in VACATION_TABLE:
        if years >= min_years:
            days = entitled
    return days


class StatutoryBenefitsCalculator:
    """Year-end bonus, vacation, profit sharing and termination settlement."""

    def __init__(self, reference_unit_daily: Decimal):
        self.reference_unit_daily = reference_unit_daily

    def aguinaldo(
        self,
        daily_salary: Decimal,
        year: int,
        hire_date: date,
        termination_date: date | None = None,
    ) -> PerceptionLine:
        """Year-end bonus proportional to the days employed in ``year``."""
        self._check_salary(daily_salary)
        year_start = date(year, 1, 1)
        year_end = date(year, 12, 31)
        start = max(hire_date, year_start)
        end = min(termination_date, year_end) if termination_date else year_end
        days_employed = max(0, (end - start).days + 1)
        days_in_year = 366 if calendar.isleap(year) else 365

        days = Decimal(AGUINALDO_DAYS) * Decimal(days_employed) / Decimal(days_in_year)
        return LineItemBuilder.create_perception_line(
            AGUINALDO_CODE,
            LineItemBuilder.round_to_cents(days * daily_salary),
            f"Aguinaldo {year}",
        )

    def vacation(self, daily_salary: Decimal, years: int) -> list[PerceptionLine]:
        """Vacation pay and its premium for a full year of entitlement."""
        self._check_salary(daily_salary)
        pay = LineItemBuilder.round_to_cents(Decimal(vacation_days(years)) * daily_salary)
        return [
            LineItemBuilder.create_perception_line(VACATION_PAY_CODE, pay, "Vacation pay"),
            LineItemBuilder.create_perception_line(
                VACATION_PREMIUM_CODE,
                LineItemBuilder.round_to_cents(pay * VACATION_PREMIUM_RATE),
                "Vacation premium",
            ),
        ]

    def profit_sharing(
        self,
        pool: Decimal,
        days_worked: int,
        total_company_days: int,
        annual_salary: Decimal,
        total_company_salaries: Decimal,
    ) -> PerceptionLine:
        """PTU share: half the pool by days worked, half by salary earned."""
        if pool < 0:
            raise InvalidAmount("pool", pool)
        if total_company_days <= 0:
            raise InvalidAmount("total_company_days", total_company_days)
        if total_company_salaries <= 0:
            raise InvalidAmount("total_company_salaries", total_company_salaries)

        half = pool / 2
        by_days = Decimal(days_worked) / Decimal(total_company_days) * half
        by_salary = annual_salary / total_company_salaries * half
        return LineItemBuilder.create_perception_line(
            PROFIT_SHARING_CODE,
            LineItemBuilder.round_to_cents(by_days + by_salary),
            "Profit sharing (PTU)",
        )

    def settlement(
        self,
        daily_salary: Decimal,
        hire_date: date,
        termination_date: date,
        termination_type: TerminationType,
    ) -> list[PerceptionLine]:
        """Termination settlement (finiquito, plus liquidation when unjustified)."""
        self._check_salary(daily_salary)
        if termination_date < hire_date:
            raise ValueError("termination_date precedes hire_date")

        years = years_of_service(hire_date, termination_date)
        months = Decimal(termination_date.month)
        lines: list[PerceptionLine] = []

        aguinaldo_days = Decimal(AGUINALDO_DAYS) * months / 12
        lines.append(
            LineItemBuilder.create_perception_line(
                AGUINALDO_CODE,
                LineItemBuilder.round_to_cents(aguinaldo_days * daily_salary),
                "Proportional aguinaldo",
            )
        )

        # The year in progress earns the next year's entitlement
        vacation_pay = LineItemBuilder.round_to_cents(
            Decimal(vacation_days(years + 1)) * months / 12 * daily_salary
        )
        lines.append(
            LineItemBuilder.create_perception_line(
                VACATION_PAY_CODE, vacation_pay, "Proportional vacation"
            )
        )
        lines.append(
            LineItemBuilder.create_perception_line(
                VACATION_PREMIUM_CODE,
                LineItemBuilder.round_to_cents(vacation_pay * VACATION_PREMIUM_RATE),
                "Proportional vacation premium",
            )
        )

        lines.append(
            LineItemBuilder.create_perception_line(
                SALARY_CODE,
                LineItemBuilder.round_to_cents(Decimal(termination_date.day) * daily_salary),
                "Pending salary",
            )
        )

        unjustified = termination_type == TerminationType.UNJUSTIFIED
        if years >= SENIORITY_MIN_YEARS or unjustified:
            capped_daily = min(
                daily_salary, SENIORITY_CAP_UMA_MULTIPLE * self.reference_unit_daily
            )
            lines.append(
                LineItemBuilder.create_perception_line(
                    SENIORITY_PREMIUM_CODE,
                    LineItemBuilder.round_to_cents(
                        Decimal(SENIORITY_DAYS_PER_YEAR * years) * capped_daily
                    ),
                    "Seniority premium",
                )
            )

        if unjustified:
            # One line: the separation exemption ceiling applies to the total
            indemnity_days = INDEMNITY_DAYS + INDEMNITY_DAYS_PER_YEAR * years
            lines.append(
                LineItemBuilder.create_perception_line(
                    INDEMNITY_CODE,
                    LineItemBuilder.round_to_cents(Decimal(indemnity_days) * daily_salary),
                    f"Indemnity ({INDEMNITY_DAYS} days + {INDEMNITY_DAYS_PER_YEAR} per year)",
                )
            )

        return lines

    @staticmethod
    def _check_salary(daily_salary: Decimal) -> None:
        if not daily_salary.is_finite() or daily_salary < 0:
            raise InvalidAmount("daily_salary", daily_salary)
