"""Tests for the effective-dated reference catalog."""

from datetime import date
from decimal import Decimal

import pytest

from statutory_payroll.calculators.catalog import CatalogSnapshot, EffectiveIndex, ReferenceUnit
from statutory_payroll.calculators.types import PeriodType
from statutory_payroll.errors import NotFound, UnknownCatalogCode
from statutory_payroll.reference_data import catalog_versions_2024


def _versions_with_2025_uma():
    versions = catalog_versions_2024()
    versions.append(("reference_unit", date(2025, 2, 1), None, {"daily_value": "113.14"}))
    return versions


class TestEffectiveIndex:
    """Test "latest version at or before date" selection."""

    def test_most_recent_version_wins(self):
        """The latest start at or before the date wins, in any input order."""
        index = EffectiveIndex(
            "reference_unit",
            [
                ReferenceUnit(date(2024, 2, 1), Decimal("108.57")),
                ReferenceUnit(date(2023, 2, 1), Decimal("103.74")),
            ],
        )

        assert index.get(date(2024, 1, 31)).daily_value == Decimal("103.74")
        assert index.get(date(2024, 2, 1)).daily_value == Decimal("108.57")
        assert index.get(date(2030, 1, 1)).daily_value == Decimal("108.57")

    def test_before_first_version_not_found(self):
        """Lookups before the first version raise NotFound with the key and date."""
        index = EffectiveIndex("reference_unit", [ReferenceUnit(date(2024, 1, 1), Decimal("1"))])

        with pytest.raises(NotFound) as exc_info:
            index.get(date(2023, 12, 31))

        assert exc_info.value.key == "reference_unit"
        assert exc_info.value.context["as_of_date"] == "2023-12-31"

    def test_expired_version_not_found(self):
        """The end date is inclusive."""
        index = EffectiveIndex(
            "reference_unit",
            [ReferenceUnit(date(2024, 1, 1), Decimal("1"), effective_end=date(2024, 12, 31))],
        )

        assert index.find(date(2024, 12, 31)) is not None
        assert index.find(date(2025, 1, 1)) is None

    def test_duplicate_start_rejected(self):
        """Two versions cannot start on the same date."""
        with pytest.raises(ValueError):
            EffectiveIndex(
                "reference_unit",
                [
                    ReferenceUnit(date(2024, 1, 1), Decimal("1")),
                    ReferenceUnit(date(2024, 1, 1), Decimal("2")),
                ],
            )


class TestCatalogSnapshot:
    """Test snapshot parsing and lookups."""

    def test_reference_unit_by_date(self):
        """UMA versions switch on their start dates."""
        catalog = CatalogSnapshot.from_versions(_versions_with_2025_uma())

        assert catalog.reference_unit(date(2024, 1, 31)).daily_value == Decimal("103.74")
        assert catalog.reference_unit(date(2024, 2, 1)).daily_value == Decimal("108.57")
        assert catalog.reference_unit(date(2025, 1, 31)).daily_value == Decimal("108.57")
        assert catalog.reference_unit(date(2025, 2, 1)).daily_value == Decimal("113.14")

    def test_tax_tables_per_period(self, catalog):
        """Every period type has a complete tax table."""
        for period_type in PeriodType:
            table = catalog.tax_table(period_type, date(2024, 6, 1))
            assert table.period_type == period_type
            assert table.rows[0].lower_bound == 0
            assert table.rows[-1].upper_bound is None

    def test_subsidy_switches_to_flat_amount_in_may(self, catalog):
        """The bracketed subsidy ends in April; May starts the flat amount."""
        before = catalog.subsidy_table(PeriodType.MONTHLY, date(2024, 4, 30))
        after = catalog.subsidy_table(PeriodType.MONTHLY, date(2024, 5, 1))

        assert before.rows[0].amount == Decimal("407.02")
        assert len(before.rows) == 11
        assert [(r.lower_bound, r.upper_bound, r.amount) for r in after.rows] == [
            (Decimal("0"), Decimal("9081.01"), Decimal("390.12")),
            (Decimal("9081.01"), None, Decimal("0")),
        ]

    @pytest.mark.parametrize(
        "period_type, amount, ceiling",
        [
            (PeriodType.MONTHLY, "390.12", "9081.00"),
            (PeriodType.BIWEEKLY, "192.49", "4480.76"),
            (PeriodType.WEEKLY, "89.83", "2091.02"),
        ],
    )
    def test_flat_subsidy_per_period(self, catalog, period_type, amount, ceiling):
        """Each period gets its prorated amount up to an inclusive income ceiling."""
        table = catalog.subsidy_table(period_type, date(2024, 6, 30))

        assert table.select(Decimal(ceiling)).amount == Decimal(amount)
        assert table.select(Decimal(ceiling) + Decimal("0.01")).amount == 0

    def test_unknown_perception_code(self, catalog):
        """Unknown perception codes name the catalog and the value."""
        with pytest.raises(UnknownCatalogCode) as exc_info:
            catalog.perception("P999", date(2024, 6, 1))

        assert exc_info.value.catalog == "perception"
        assert exc_info.value.value == "P999"

    def test_perception_treatment(self, catalog):
        """Catalog entries carry their exemption treatment."""
        aguinaldo = catalog.perception("P002", date(2024, 6, 1))
        savings = catalog.perception("P005", date(2024, 6, 1))
        salary = catalog.perception("P001", date(2024, 6, 1))

        assert aguinaldo.exempt_uma_multiple == Decimal("30")
        assert savings.fully_exempt is True
        assert salary.exempt_uma_multiple is None and not salary.fully_exempt

    def test_payroll_tax_schedule_unregistered_is_none(self, catalog):
        """Jurisdictions without a schedule are unregistered."""
        assert catalog.payroll_tax_schedule("CDMX", date(2024, 6, 1)) is not None
        assert catalog.payroll_tax_schedule("ZZZ", date(2024, 6, 1)) is None
        assert not catalog.is_jurisdiction_registered("ZZZ")

    def test_lookup_before_catalog_starts(self, catalog):
        """Lookups before the first version raise NotFound."""
        with pytest.raises(NotFound):
            catalog.contribution_schedule(date(2023, 12, 31))

    def test_unknown_catalog_key_rejected(self):
        """Unrecognised catalog keys are rejected when loading."""
        with pytest.raises(UnknownCatalogCode):
            CatalogSnapshot.from_versions([("bogus", date(2024, 1, 1), None, {})])

    def test_gapped_bracket_table_rejected(self):
        """Bracket tables with gaps are rejected when loading."""
        payload = {
            "brackets": [
                {"lower": "0", "upper": "100", "rate": "0.01", "fixed": "0"},
                {"lower": "150", "upper": None, "rate": "0.02", "fixed": "1"},
            ]
        }
        with pytest.raises(ValueError):
            CatalogSnapshot.from_versions([("isr_table:monthly", date(2024, 1, 1), None, payload)])

    def test_fingerprint_is_order_independent(self):
        """The fingerprint does not depend on version order."""
        versions = catalog_versions_2024()
        forward = CatalogSnapshot.from_versions(versions)
        backward = CatalogSnapshot.from_versions(list(reversed(versions)))

        assert forward.fingerprint == backward.fingerprint
        assert forward.fingerprint != CatalogSnapshot.from_versions(_versions_with_2025_uma()).fingerprint
