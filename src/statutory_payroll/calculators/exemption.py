"""Taxable/exempt split of perception lines."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from statutory_payroll.calculators.catalog import CatalogSnapshot, PerceptionCatalogEntry
from statutory_payroll.calculators.line_builder import LineItemBuilder
from statutory_payroll.calculators.types import PerceptionLine


class ExemptionSplitter:
    """Classifies each perception into taxable and exempt amounts.

    Treatment comes from the perception catalog:
    - fully exempt perceptions are entirely exempt
    - perceptions with a ceiling of N x reference unit are exempt up to it
    - everything else is fully taxable
    """

    def __init__(self, catalog: CatalogSnapshot):
        self.catalog = catalog

    def split(
        self,
        line: PerceptionLine,
        reference_unit_daily: Decimal,
        as_of_date: date,
    ) -> PerceptionLine:
        """Return a copy of ``line`` with taxable/exempt amounts filled.

        Raises:
            UnknownCatalogCode: If the perception code is not in the catalog
        """
        entry = self.catalog.perception(line.code, as_of_date)
        return self.split_with_entry(line, entry, reference_unit_daily)

    @staticmethod
    def split_with_entry(
        line: PerceptionLine,
        entry: PerceptionCatalogEntry,
        reference_unit_daily: Decimal,
    ) -> PerceptionLine:
        gross = line.gross_amount

        if entry.fully_exempt:
            exempt = gross
        elif entry.exempt_uma_multiple is not None:
            ceiling = LineItemBuilder.round_to_cents(entry.exempt_uma_multiple * reference_unit_daily)
            exempt = min(gross, ceiling)
        else:
            exempt = Decimal("0.00")

        # Taxable is derived by subtraction so the pair always sums to gross
        return replace(
            line,
            taxable_amount=gross - exempt,
            exempt_amount=exempt,
            description=line.description or entry.description,
        )

    @staticmethod
    def split_fully_taxable(line: PerceptionLine) -> PerceptionLine:
        """Treat a line as fully taxable (caller policy for unknown codes)."""
        return replace(line, taxable_amount=line.gross_amount, exempt_amount=Decimal("0.00"))
