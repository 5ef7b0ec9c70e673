"""GL (General Ledger) journal posting service."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Iterable

from statutory_payroll.calculators.types import (
    IMSS_DEDUCTION_CODE,
    ISR_DEDUCTION_CODE,
    DeductionSource,
    PayrollCalculationResult,
)
from statutory_payroll.gl.resolver import GLOverrideResolver
from statutory_payroll.gl.rules import LineDimensions, MappingType, Polarity

logger = logging.getLogger(__name__)

# (debit account, credit account) per mapping type
DEFAULT_ACCOUNTS: dict[MappingType, tuple[str, str]] = {
    MappingType.WAGES_EXPENSE: ("100-6000-000", "100-2100-000"),
    MappingType.TAX_LIABILITY: ("100-2100-000", "100-2200-000"),
    MappingType.DEDUCTION_LIABILITY: ("100-2100-000", "100-2300-000"),
    MappingType.EMPLOYER_CONTRIBUTION: ("100-6100-000", "100-2400-000"),
    MappingType.TAX_EXPENSE: ("100-6200-000", "100-2500-000"),
}

STATUTORY_WITHHOLDINGS = {ISR_DEDUCTION_CODE, IMSS_DEDUCTION_CODE}


@dataclass(frozen=True)
class JournalLine:
    """Individual GL journal entry line."""

    account: str
    debit: Decimal
    credit: Decimal
    description: str
    pay_element: str
    mapping_type: MappingType
    original_account: str
    override_rule: str | None = None


@dataclass
class JournalBatch:
    """Balanced journal entries for one payroll calculation."""

    calculation_id: str
    employee_id: str
    posting_date: date
    lines: list[JournalLine] = field(default_factory=list)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0.00"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0.00"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class GLService:
    """Generates GL journal entries from payroll results.

    Every posting is a debit/credit pair on the default accounts of its
    mapping type; each side then goes through the override resolver with
    the line's dimensions.
    """

    def __init__(
        self,
        resolver: GLOverrideResolver,
        default_accounts: dict[MappingType, tuple[str, str]] | None = None,
    ):
        self.resolver = resolver
        self.default_accounts = default_accounts or DEFAULT_ACCOUNTS

    def generate_journal(
        self,
        result: PayrollCalculationResult,
        dimensions: LineDimensions | None = None,
        posting_date: date | None = None,
    ) -> JournalBatch:
        """Build the journal batch for one employee's calculation."""
        posting_date = posting_date or result.period.end
        base = replace(dimensions or LineDimensions(), employee=result.employee_id)
        batch = JournalBatch(
            calculation_id=result.calculation_id,
            employee_id=result.employee_id,
            posting_date=posting_date,
        )

        for perception in result.perceptions:
            self._post(batch, base, MappingType.WAGES_EXPENSE, perception.code,
                       perception.gross_amount, perception.description or perception.code)

        for deduction in result.deductions:
            mapping_type = (
                MappingType.TAX_LIABILITY
                if deduction.source == DeductionSource.COMPUTED
                and deduction.code in STATUTORY_WITHHOLDINGS
                else MappingType.DEDUCTION_LIABILITY
            )
            self._post(batch, base, mapping_type, deduction.code,
                       deduction.amount, deduction.description or deduction.code)

        if result.subsidy_paid > 0:
            # Credit paid out reverses the withholding liability
            self._post(batch, base, MappingType.TAX_LIABILITY, "SUBSIDY",
                       result.subsidy_paid, "Employment subsidy paid", reverse=True)

        for line in result.contributions.lines:
            self._post(batch, base, MappingType.EMPLOYER_CONTRIBUTION, line.category,
                       line.employer_amount, line.description or line.category)

        self._post(batch, base, MappingType.TAX_EXPENSE, "ISN",
                   result.payroll_tax.amount, f"Payroll tax {result.payroll_tax.jurisdiction}")

        if not batch.is_balanced:
            # Pairs are always equal; a mismatch means an amount was altered
            raise ValueError(
                f"Journal for {result.calculation_id} is unbalanced: "
                f"{batch.total_debit} != {batch.total_credit}"
            )
        return batch

    def export_to_csv(self, batches: Iterable[JournalBatch]) -> str:
        """Export journal batches to CSV format."""
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow([
            "Account",
            "Debit",
            "Credit",
            "Description",
            "Reference",
            "Date",
        ])

        for batch in batches:
            for line in batch.lines:
                writer.writerow([
                    line.account,
                    str(line.debit) if line.debit > 0 else "",
                    str(line.credit) if line.credit > 0 else "",
                    line.description,
                    f"Payroll {batch.calculation_id}",
                    batch.posting_date.isoformat(),
                ])

        return output.getvalue()

    def _post(
        self,
        batch: JournalBatch,
        base: LineDimensions,
        mapping_type: MappingType,
        pay_element: str,
        amount: Decimal,
        description: str,
        reverse: bool = False,
    ) -> None:
        if amount == 0:
            return

        debit_account, credit_account = self.default_accounts.get(
            mapping_type, ("9999-SUSPENSE", "9999-SUSPENSE")
        )
        if reverse:
            debit_account, credit_account = credit_account, debit_account

        dims = replace(base, pay_element=pay_element, mapping_type=mapping_type.value).as_dict()
        for polarity, account in ((Polarity.DEBIT, debit_account), (Polarity.CREDIT, credit_account)):
            resolution = self.resolver.apply(account, polarity, batch.posting_date, dims)
            if resolution.overridden:
                logger.debug(
                    "Line %s %s overridden by %s: %s -> %s",
                    pay_element,
                    polarity.value,
                    resolution.rule.rule_code,
                    account,
                    resolution.account,
                )
            batch.lines.append(
                JournalLine(
                    account=resolution.account,
                    debit=amount if polarity == Polarity.DEBIT else Decimal("0.00"),
                    credit=amount if polarity == Polarity.CREDIT else Decimal("0.00"),
                    description=description,
                    pay_element=pay_element,
                    mapping_type=mapping_type,
                    original_account=account,
                    override_rule=resolution.rule.rule_code if resolution.rule else None,
                )
            )
