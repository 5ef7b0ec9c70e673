"""Tests for GL journal posting."""

import csv
import io
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from statutory_payroll.calculators.types import PerceptionLine
from statutory_payroll.gl.resolver import GLOverrideResolver
from statutory_payroll.gl.rules import (
    ConditionOperator,
    DimensionType,
    GLOverrideCondition,
    GLOverrideRule,
    GLOverrideTarget,
    LineDimensions,
    MappingType,
    OverrideType,
)
from statutory_payroll.services.gl_service import GLService


@pytest.fixture
async def result(assembler, biweekly_request):
    return await assembler.calculate(biweekly_request)


class TestGenerateJournal:
    """Test journal lines for one calculation."""

    async def test_balanced(self, result):
        """Debits equal credits for a full calculation."""
        batch = GLService(GLOverrideResolver([])).generate_journal(result)

        assert batch.is_balanced
        # 8000 wages + 972.45 withholdings + 1500.50 employer + 240 ISN
        assert batch.total_debit == Decimal("10712.95")
        assert batch.posting_date == date(2024, 2, 15)

    async def test_mapping_types(self, result):
        """Each pay element posts under its mapping type."""
        batch = GLService(GLOverrideResolver([])).generate_journal(result)
        by_element = {line.pay_element: line.mapping_type for line in batch.lines}

        assert by_element["P001"] == MappingType.WAGES_EXPENSE
        assert by_element["ISR"] == MappingType.TAX_LIABILITY
        assert by_element["IMSS"] == MappingType.TAX_LIABILITY
        assert by_element["RT"] == MappingType.EMPLOYER_CONTRIBUTION
        assert by_element["ISN"] == MappingType.TAX_EXPENSE

    async def test_zero_amounts_not_posted(self, result):
        """Zero-amount lines are left out of the journal."""
        batch = GLService(GLOverrideResolver([])).generate_journal(result)

        assert all(line.debit > 0 or line.credit > 0 for line in batch.lines)
        # EM_FIXED has no employee share but an employer share
        assert any(line.pay_element == "EM_FIXED" for line in batch.lines)

    async def test_override_applied_with_dimensions(self, result):
        """Override rules see the line dimensions plus pay element and mapping type."""
        rule = GLOverrideRule(
            rule_code="SALES_WAGES",
            priority=10,
            override_type=OverrideType.SEGMENT,
            conditions=(
                GLOverrideCondition(DimensionType.DEPARTMENT, ConditionOperator.EQUALS, ("SALES",)),
                GLOverrideCondition(
                    DimensionType.MAPPING_TYPE, ConditionOperator.EQUALS, ("wages_expense",)
                ),
            ),
            target=GLOverrideTarget(segment_overrides={"cost_center": "410"}),
            effective_start=date(2024, 1, 1),
            applies_to_credit=False,
        )
        service = GLService(GLOverrideResolver([rule]))

        batch = service.generate_journal(result, LineDimensions(department="SALES"))

        wages_debit = next(l for l in batch.lines if l.pay_element == "P001" and l.debit > 0)
        wages_credit = next(l for l in batch.lines if l.pay_element == "P001" and l.credit > 0)
        assert wages_debit.account == "100-6000-410"
        assert wages_debit.original_account == "100-6000-000"
        assert wages_debit.override_rule == "SALES_WAGES"
        assert wages_credit.account == "100-2100-000"
        assert batch.is_balanced

    async def test_subsidy_reverses_liability(self, assembler, biweekly_request):
        """A paid subsidy credit is posted against the tax liability."""
        low = replace(biweekly_request, perceptions=(PerceptionLine("P001", Decimal("2000.00")),))
        result = await assembler.calculate(low)

        batch = GLService(GLOverrideResolver([])).generate_journal(result)
        subsidy = [l for l in batch.lines if l.pay_element == "SUBSIDY"]

        assert {(l.account, l.debit, l.credit) for l in subsidy} == {
            ("100-2200-000", Decimal("77.21"), Decimal("0.00")),
            ("100-2100-000", Decimal("0.00"), Decimal("77.21")),
        }
        assert batch.is_balanced


class TestExportToCsv:
    async def test_csv_layout(self, result):
        """CSV rows follow the export header, one row per journal line."""
        service = GLService(GLOverrideResolver([]))
        batch = service.generate_journal(result)

        rows = list(csv.reader(io.StringIO(service.export_to_csv([batch]))))

        assert rows[0] == ["Account", "Debit", "Credit", "Description", "Reference", "Date"]
        assert len(rows) == len(batch.lines) + 1
        assert rows[1][0] == "100-6000-000"
        assert rows[1][1] == "7500.00"
        assert rows[1][2] == ""
        assert rows[1][4] == f"Payroll {result.calculation_id}"
        assert rows[1][5] == "2024-02-15"
