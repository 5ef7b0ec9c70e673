"""Property-based tests for calculation and encoding invariants.

These tests use hypothesis to generate amounts, salaries and free-form
names, and check the invariants that must hold for every input.
"""

from datetime import date
from decimal import Decimal

from hypothesis import HealthCheck, given, settings, strategies as st

from statutory_payroll.calculators.catalog import CatalogSnapshot
from statutory_payroll.calculators.contribution_calculator import SocialContributionCalculator
from statutory_payroll.calculators.exemption import ExemptionSplitter
from statutory_payroll.calculators.tax_calculator import ProgressiveTaxCalculator
from statutory_payroll.calculators.types import PerceptionLine, PeriodType
from statutory_payroll.reference_data import catalog_versions_2024
from statutory_payroll.statutory.encoder import (
    RECORD_LENGTH,
    CompanyRegistration,
    MovementType,
    StatutoryFileEncoder,
    StatutoryMovementRecord,
)
from statutory_payroll.statutory.fields import FieldKind, FieldSpec

AS_OF = date(2024, 6, 30)
UMA = Decimal("108.57")
CATALOG = CatalogSnapshot.from_versions(catalog_versions_2024())

money = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("1000000"), places=2, allow_nan=False, allow_infinity=False
)


class TestSplitProperties:
    @given(
        code=st.sampled_from(["P001", "P002", "P003", "P005", "P020", "P021", "P025"]),
        amount=money,
    )
    @settings(max_examples=200)
    def test_taxable_plus_exempt_is_gross(self, code, amount):
        """Splitting never creates or loses money."""
        line = ExemptionSplitter(CATALOG).split(PerceptionLine(code, amount), UMA, AS_OF)

        assert line.taxable_amount + line.exempt_amount == amount
        assert line.taxable_amount >= 0
        assert line.exempt_amount >= 0


class TestTaxProperties:
    @given(
        income=money,
        period_type=st.sampled_from(list(PeriodType)),
    )
    @settings(max_examples=200)
    def test_net_tax_and_credit_are_exclusive(self, income, period_type):
        """Net tax and subsidy credit are never both positive."""
        table = CATALOG.tax_table(period_type, AS_OF)
        subsidy = CATALOG.subsidy_table(period_type, AS_OF)

        result = ProgressiveTaxCalculator().calculate(income, table, subsidy)

        assert result.net_tax >= 0
        assert result.subsidy_to_pay >= 0
        assert result.net_tax == 0 or result.subsidy_to_pay == 0
        assert result.net_tax - result.subsidy_to_pay == result.gross_tax - result.subsidy
        assert result.gross_tax == result.gross_tax.quantize(Decimal("0.01"))

    @given(data=st.data(), period_type=st.sampled_from(list(PeriodType)))
    @settings(max_examples=200)
    def test_tax_non_decreasing_within_a_bracket(self, data, period_type):
        """More income within a row never lowers the tax."""
        # Published fixed fees are rounded, so the check stays inside one row
        table = CATALOG.tax_table(period_type, AS_OF)
        subsidy = CATALOG.subsidy_table(period_type, AS_OF)
        row = data.draw(st.sampled_from(table.rows))
        upper = (row.upper_bound or row.lower_bound + 1000000) - Decimal("0.01")
        incomes = st.decimals(min_value=row.lower_bound, max_value=upper, places=2)
        a, b = sorted([data.draw(incomes), data.draw(incomes)])

        calculator = ProgressiveTaxCalculator()
        low = calculator.calculate(a, table, subsidy)
        high = calculator.calculate(b, table, subsidy)

        assert low.gross_tax <= high.gross_tax
        assert low.net_tax <= high.net_tax
        assert low.subsidy_to_pay >= high.subsidy_to_pay


class TestContributionProperties:
    @given(
        salary=st.decimals(min_value=Decimal("0"), max_value=Decimal("50000"), places=2),
        days=st.integers(min_value=0, max_value=31),
        risk_class=st.sampled_from(["I", "II", "III", "IV", "V"]),
    )
    @settings(max_examples=100)
    def test_totals_are_sums_of_lines(self, salary, days, risk_class):
        """Contribution totals are always the sum of their lines."""
        result = SocialContributionCalculator().calculate(
            salary, risk_class, days, CATALOG.contribution_schedule(AS_OF), UMA
        )

        assert result.employee_total == sum((l.employee_amount for l in result.lines), Decimal("0"))
        assert result.employer_total == sum((l.employer_amount for l in result.lines), Decimal("0"))
        assert result.base_salary <= 25 * UMA

    @given(extra=st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2))
    @settings(max_examples=50)
    def test_salary_above_cap_behaves_as_cap(self, extra):
        """Any salary above 25 UMA contributes as if it were 25 UMA."""
        schedule = CATALOG.contribution_schedule(AS_OF)
        calculator = SocialContributionCalculator()

        at_cap = calculator.calculate(25 * UMA, "II", 15, schedule, UMA)
        above = calculator.calculate(25 * UMA + extra, "II", 15, schedule, UMA)

        assert above.lines == at_cap.lines


class TestEncoderProperties:
    @given(
        names=st.lists(st.text(min_size=1, max_size=80), min_size=0, max_size=5),
        salary=st.decimals(min_value=Decimal("0"), max_value=Decimal("999999"), places=2),
    )
    @settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
    def test_every_record_is_fixed_width_ascii(self, names, salary):
        """Any names give 120-character ASCII records and a trailer that adds up."""
        company = CompanyRegistration("Y1234567890", "ABC010101AB1", "Ejemplo")
        records = [
            StatutoryMovementRecord(
                employee_id=f"E{i}",
                national_id="PEPJ800101HDFRRN09",
                social_security_number="12345678901",
                full_name=name,
                movement_type=MovementType.SALARY_CHANGE,
                movement_date=AS_OF,
                base_salary=salary,
            )
            for i, name in enumerate(names)
        ]

        encoded = StatutoryFileEncoder().encode(company, records, AS_OF)

        assert encoded.detail_count + len(encoded.skipped) == len(names)
        assert len(encoded.lines) == encoded.detail_count + 2
        assert all(len(line) == RECORD_LENGTH for line in encoded.lines)
        assert encoded.salary_total_cents == sum(int(line[101:108]) for line in encoded.lines[1:-1])
        encoded.to_bytes()

    @given(value=st.text(max_size=30))
    def test_numeric_field_is_ascii_digits(self, value):
        """Whatever the input, a numeric field holds only 0-9."""
        rendered, _ = FieldSpec("social_security_number", 11, FieldKind.NUMERIC).render(value)

        assert len(rendered) == 11
        assert set(rendered) <= set("0123456789")
