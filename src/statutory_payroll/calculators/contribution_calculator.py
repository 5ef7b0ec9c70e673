"""Social-security (IMSS) contribution calculation."""

from __future__ import annotations

from decimal import Decimal

from statutory_payroll.calculators.catalog import ContributionCategory, ContributionSchedule
from statutory_payroll.calculators.line_builder import LineItemBuilder
from statutory_payroll.calculators.types import ContributionLine, ContributionResult
from statutory_payroll.errors import InvalidAmount, UnknownCatalogCode


class SocialContributionCalculator:
    """Calculates employee and employer contributions per sub-category.

    Pipeline:
    1) Cap the daily base salary to ``base_cap_multiple`` x UMA
    2) Derive each category's daily base (salary, one UMA, or excess over a
       threshold) and clamp it to the category's own floor/ceiling
    3) amount = round(daily_base * rate * days_worked) per category
    4) Totals are sums of the rounded category amounts

    The risk class only selects the employer rate of the risk-premium
    category.
    """

    def calculate(
        self,
        base_salary: Decimal,
        risk_class: str,
        days_worked: int,
        schedule: ContributionSchedule,
        reference_unit_daily: Decimal,
    ) -> ContributionResult:
        """Compute itemized contributions.

        Raises:
            InvalidAmount: If the base salary is negative or days_worked < 0
            UnknownCatalogCode: If the risk class has no rate
        """
        if not base_salary.is_finite() or base_salary < 0:
            raise InvalidAmount("base_salary", base_salary)
        if days_worked < 0:
            raise InvalidAmount("days_worked", days_worked)
        if risk_class not in schedule.risk_rates:
            raise UnknownCatalogCode("risk class", risk_class)

        capped = self.cap_base_salary(base_salary, schedule.base_cap_multiple, reference_unit_daily)
        days = Decimal(days_worked)

        lines: list[ContributionLine] = []
        for category in schedule.categories:
            daily_base = self._category_base(category, capped, reference_unit_daily)
            employer_rate = (
                schedule.risk_rates[risk_class] if category.risk_premium else category.employer_rate
            )
            lines.append(
                ContributionLine(
                    category=category.code,
                    daily_base=daily_base,
                    employee_amount=LineItemBuilder.round_to_cents(
                        daily_base * category.employee_rate * days
                    ),
                    employer_amount=LineItemBuilder.round_to_cents(daily_base * employer_rate * days),
                    description=category.description,
                )
            )

        return ContributionResult(
            base_salary=capped,
            days_worked=days_worked,
            risk_class=risk_class,
            lines=tuple(lines),
        )

    @staticmethod
    def cap_base_salary(
        base_salary: Decimal, cap_multiple: Decimal, reference_unit_daily: Decimal
    ) -> Decimal:
        """Apply the overall cap; a base already under the cap is unchanged."""
        return min(base_salary, cap_multiple * reference_unit_daily)

    @staticmethod
    def _category_base(
        category: ContributionCategory,
        capped_base: Decimal,
        reference_unit_daily: Decimal,
    ) -> Decimal:
        if category.base_kind == "reference_unit":
            base = reference_unit_daily
        elif category.base_kind == "excess":
            threshold = category.threshold_multiple * reference_unit_daily
            base = max(Decimal("0"), capped_base - threshold)
        else:
            base = capped_base

        if category.floor_multiple is not None:
            base = max(base, category.floor_multiple * reference_unit_daily)
        if category.ceiling_multiple is not None:
            base = min(base, category.ceiling_multiple * reference_unit_daily)
        return base
