"""Read-only reference catalog with effective-date lookup.

Catalog payloads are stored as versioned JSON documents, one per catalog
key, mirroring the ``catalog_rule_version.payload_json`` column:

    reference_unit            {"daily_value": "108.57"}
    isr_table:<period>        {"brackets": [{"lower": 0, "upper": 746.04,
                                             "rate": 0.0192, "fixed": 0}, ...]}
    isr_subsidy:<period>      {"brackets": [{"lower": 0, "upper": 1768.96,
                                             "amount": 407.02}, ...]}
    perceptions               {"items": [{"code": "P001", "fully_exempt": false,
                                          "exempt_uma_multiple": 30}, ...]}
    imss_contributions        {"base_cap_multiple": 25, "categories": [...],
                               "risk_rates": {"I": 0.0054355, ...}}
    isn:<jurisdiction>        {"brackets": [{"lower": 0, "upper": null,
                                             "rate": 0.03, "fixed": 0}]}
"""

from __future__ import annotations

import hashlib
import json
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Generic, Iterable, TypeVar

from statutory_payroll.calculators.types import (
    PayrollTaxSchedule,
    PeriodType,
    SubsidyBracket,
    SubsidyTable,
    TaxBracket,
    TaxBracketTable,
)
from statutory_payroll.errors import NotFound, UnknownCatalogCode

T = TypeVar("T")

REFERENCE_UNIT_KEY = "reference_unit"
PERCEPTIONS_KEY = "perceptions"
CONTRIBUTIONS_KEY = "imss_contributions"
TAX_TABLE_PREFIX = "isr_table:"
SUBSIDY_TABLE_PREFIX = "isr_subsidy:"
PAYROLL_TAX_PREFIX = "isn:"


@dataclass(frozen=True)
class ReferenceUnit:
    """Daily reference unit (UMA) value."""

    effective_start: date
    daily_value: Decimal
    effective_end: date | None = None


@dataclass(frozen=True)
class PerceptionCatalogEntry:
    """Tax treatment of a perception code."""

    code: str
    description: str
    fully_exempt: bool = False
    exempt_uma_multiple: Decimal | None = None  # Exempt up to N x UMA daily value


@dataclass(frozen=True)
class PerceptionCatalog:
    """Perception catalog version."""

    effective_start: date
    entries: dict[str, PerceptionCatalogEntry]
    effective_end: date | None = None


@dataclass(frozen=True)
class ContributionCategory:
    """One social-security sub-category (branch).

    ``base_kind``:
    - ``salary``: the capped daily base salary
    - ``reference_unit``: one UMA per day regardless of salary
    - ``excess``: the part of the base above ``threshold_multiple`` x UMA

    ``floor_multiple``/``ceiling_multiple`` clamp this category's daily base
    independently of the overall base cap.
    """

    code: str
    description: str
    employee_rate: Decimal
    employer_rate: Decimal
    base_kind: str = "salary"
    threshold_multiple: Decimal | None = None
    floor_multiple: Decimal | None = None
    ceiling_multiple: Decimal | None = None
    risk_premium: bool = False

    def __post_init__(self) -> None:
        if self.base_kind not in ("salary", "reference_unit", "excess"):
            raise ValueError(f"Unsupported base_kind '{self.base_kind}' for {self.code}")
        if self.base_kind == "excess" and self.threshold_multiple is None:
            raise ValueError(f"Category {self.code} uses 'excess' without threshold_multiple")


@dataclass(frozen=True)
class ContributionSchedule:
    """Social-security contribution rules effective over a date range."""

    effective_start: date
    base_cap_multiple: Decimal
    categories: tuple[ContributionCategory, ...]
    risk_rates: dict[str, Decimal]
    effective_end: date | None = None


class EffectiveIndex(Generic[T]):
    """Sorted-by-date index answering "most recent row at or before date"."""

    def __init__(self, key: str, items: Iterable[T]):
        self.key = key
        self._items: list[T] = sorted(items, key=lambda i: i.effective_start)  # type: ignore[attr-defined]
        self._starts: list[date] = [i.effective_start for i in self._items]  # type: ignore[attr-defined]
        if len(set(self._starts)) != len(self._starts):
            raise ValueError(f"Catalog '{key}' has two versions with the same effective start")

    def __len__(self) -> int:
        return len(self._items)

    def find(self, as_of_date: date) -> T | None:
        idx = bisect_right(self._starts, as_of_date) - 1
        if idx < 0:
            return None
        item = self._items[idx]
        end = item.effective_end  # type: ignore[attr-defined]
        if end is not None and end < as_of_date:
            return None
        return item

    def get(self, as_of_date: date) -> T:
        item = self.find(as_of_date)
        if item is None:
            raise NotFound(self.key, as_of_date)
        return item


def _dec(value: Any) -> Decimal:
    return Decimal(str(value))


def _opt_dec(value: Any) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def _parse_tax_brackets(payload: dict[str, Any]) -> tuple[TaxBracket, ...]:
    return tuple(
        TaxBracket(
            lower_bound=_dec(b["lower"]),
            upper_bound=_opt_dec(b.get("upper")),
            marginal_rate=_dec(b["rate"]),
            cumulative_base=_dec(b.get("fixed", 0)),
        )
        for b in payload.get("brackets", [])
    )


def _parse_contribution_schedule(
    payload: dict[str, Any], start: date, end: date | None
) -> ContributionSchedule:
    categories = tuple(
        ContributionCategory(
            code=c["code"],
            description=c.get("description", c["code"]),
            employee_rate=_dec(c.get("employee_rate", 0)),
            employer_rate=_dec(c.get("employer_rate", 0)),
            base_kind=c.get("base_kind", "salary"),
            threshold_multiple=_opt_dec(c.get("threshold_multiple")),
            floor_multiple=_opt_dec(c.get("floor_multiple")),
            ceiling_multiple=_opt_dec(c.get("ceiling_multiple")),
            risk_premium=bool(c.get("risk_premium", False)),
        )
        for c in payload.get("categories", [])
    )
    return ContributionSchedule(
        effective_start=start,
        base_cap_multiple=_dec(payload["base_cap_multiple"]),
        categories=categories,
        risk_rates={k: _dec(v) for k, v in payload.get("risk_rates", {}).items()},
        effective_end=end,
    )


@dataclass
class CatalogSnapshot:
    """Immutable view of all reference data a calculation may need.

    Built once by the caller (usually from the catalog store) and passed
    into the calculators; nothing here performs I/O.
    """

    reference_units: EffectiveIndex[ReferenceUnit]
    tax_tables: dict[PeriodType, EffectiveIndex[TaxBracketTable]]
    subsidy_tables: dict[PeriodType, EffectiveIndex[SubsidyTable]]
    perception_catalogs: EffectiveIndex[PerceptionCatalog]
    contribution_schedules: EffectiveIndex[ContributionSchedule]
    payroll_tax_schedules: dict[str, EffectiveIndex[PayrollTaxSchedule]]
    fingerprint: str = field(default="")

    def reference_unit(self, as_of_date: date) -> ReferenceUnit:
        return self.reference_units.get(as_of_date)

    def tax_table(self, period_type: PeriodType, as_of_date: date) -> TaxBracketTable:
        index = self.tax_tables.get(period_type)
        if index is None:
            raise NotFound(f"{TAX_TABLE_PREFIX}{period_type.value}", as_of_date)
        return index.get(as_of_date)

    def subsidy_table(self, period_type: PeriodType, as_of_date: date) -> SubsidyTable:
        index = self.subsidy_tables.get(period_type)
        if index is None:
            raise NotFound(f"{SUBSIDY_TABLE_PREFIX}{period_type.value}", as_of_date)
        return index.get(as_of_date)

    def perception(self, code: str, as_of_date: date) -> PerceptionCatalogEntry:
        catalog = self.perception_catalogs.get(as_of_date)
        entry = catalog.entries.get(code)
        if entry is None:
            raise UnknownCatalogCode("perception", code)
        return entry

    def contribution_schedule(self, as_of_date: date) -> ContributionSchedule:
        return self.contribution_schedules.get(as_of_date)

    def is_jurisdiction_registered(self, jurisdiction: str) -> bool:
        return jurisdiction in self.payroll_tax_schedules

    def payroll_tax_schedule(self, jurisdiction: str, as_of_date: date) -> PayrollTaxSchedule | None:
        """Schedule for a jurisdiction, or None if it levies no payroll tax."""
        index = self.payroll_tax_schedules.get(jurisdiction)
        if index is None:
            return None
        return index.get(as_of_date)

    @classmethod
    def from_versions(
        cls, versions: Iterable[tuple[str, date, date | None, dict[str, Any]]]
    ) -> CatalogSnapshot:
        """Build a snapshot from ``(key, effective_start, effective_end, payload)`` rows."""
        reference_units: list[ReferenceUnit] = []
        tax_tables: dict[PeriodType, list[TaxBracketTable]] = {}
        subsidy_tables: dict[PeriodType, list[SubsidyTable]] = {}
        perception_catalogs: list[PerceptionCatalog] = []
        schedules: list[ContributionSchedule] = []
        payroll_taxes: dict[str, list[PayrollTaxSchedule]] = {}
        canonical: list[Any] = []

        for key, start, end, payload in versions:
            canonical.append([key, start.isoformat(), end.isoformat() if end else None, payload])

            if key == REFERENCE_UNIT_KEY:
                reference_units.append(
                    ReferenceUnit(start, _dec(payload["daily_value"]), end)
                )
            elif key.startswith(TAX_TABLE_PREFIX):
                period_type = PeriodType(key[len(TAX_TABLE_PREFIX):])
                tax_tables.setdefault(period_type, []).append(
                    TaxBracketTable(period_type, start, _parse_tax_brackets(payload), end)
                )
            elif key.startswith(SUBSIDY_TABLE_PREFIX):
                period_type = PeriodType(key[len(SUBSIDY_TABLE_PREFIX):])
                rows = tuple(
                    SubsidyBracket(
                        lower_bound=_dec(b["lower"]),
                        upper_bound=_opt_dec(b.get("upper")),
                        amount=_dec(b["amount"]),
                    )
                    for b in payload.get("brackets", [])
                )
                subsidy_tables.setdefault(period_type, []).append(
                    SubsidyTable(period_type, start, rows, end)
                )
            elif key == PERCEPTIONS_KEY:
                entries = {
                    item["code"]: PerceptionCatalogEntry(
                        code=item["code"],
                        description=item.get("description", item["code"]),
                        fully_exempt=bool(item.get("fully_exempt", False)),
                        exempt_uma_multiple=_opt_dec(item.get("exempt_uma_multiple")),
                    )
                    for item in payload.get("items", [])
                }
                perception_catalogs.append(PerceptionCatalog(start, entries, end))
            elif key == CONTRIBUTIONS_KEY:
                schedules.append(_parse_contribution_schedule(payload, start, end))
            elif key.startswith(PAYROLL_TAX_PREFIX):
                jurisdiction = key[len(PAYROLL_TAX_PREFIX):]
                payroll_taxes.setdefault(jurisdiction, []).append(
                    PayrollTaxSchedule(jurisdiction, start, _parse_tax_brackets(payload), end)
                )
            else:
                raise UnknownCatalogCode("catalog key", key)

        canonical.sort(key=lambda row: (row[0], row[1]))
        fingerprint = hashlib.sha256(
            json.dumps(canonical, sort_keys=True, default=str).encode()
        ).hexdigest()[:32]

        return cls(
            reference_units=EffectiveIndex(REFERENCE_UNIT_KEY, reference_units),
            tax_tables={
                pt: EffectiveIndex(f"{TAX_TABLE_PREFIX}{pt.value}", items)
                for pt, items in tax_tables.items()
            },
            subsidy_tables={
                pt: EffectiveIndex(f"{SUBSIDY_TABLE_PREFIX}{pt.value}", items)
                for pt, items in subsidy_tables.items()
            },
            perception_catalogs=EffectiveIndex(PERCEPTIONS_KEY, perception_catalogs),
            contribution_schedules=EffectiveIndex(CONTRIBUTIONS_KEY, schedules),
            payroll_tax_schedules={
                j: EffectiveIndex(f"{PAYROLL_TAX_PREFIX}{j}", items)
                for j, items in payroll_taxes.items()
            },
            fingerprint=fingerprint,
        )
