"""Payroll assembler - main orchestrator."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from statutory_payroll.calculators.catalog import CatalogSnapshot
from statutory_payroll.calculators.contribution_calculator import SocialContributionCalculator
from statutory_payroll.calculators.exemption import ExemptionSplitter
from statutory_payroll.calculators.line_builder import LineItemBuilder
from statutory_payroll.calculators.payroll_tax_calculator import PayrollTaxCalculator
from statutory_payroll.calculators.tax_calculator import ProgressiveTaxCalculator
from statutory_payroll.calculators.types import (
    IMSS_DEDUCTION_CODE,
    ISR_DEDUCTION_CODE,
    ContributionResult,
    DeductionLine,
    PayPeriod,
    PayrollCalculationRequest,
    PayrollCalculationResult,
    PayrollTaxResult,
    PerceptionLine,
    TaxResult,
)
from statutory_payroll.config import CalculationConfig
from statutory_payroll.errors import (
    CalculationFailed,
    MissingRegistration,
    PayrollError,
    UnknownCatalogCode,
)
from statutory_payroll.services.state_machine import AssemblyStateMachine, AssemblyStatus

logger = logging.getLogger(__name__)


@dataclass
class EmployeeOutcome:
    """Result or error of one employee in a batch."""

    employee_id: str
    result: PayrollCalculationResult | None = None
    error: PayrollError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class BatchCalculationResult:
    """Outcomes of a batch, in request order."""

    outcomes: list[EmployeeOutcome] = field(default_factory=list)
    total_perceptions: Decimal = Decimal("0.00")
    total_net: Decimal = Decimal("0.00")
    error_count: int = 0


class PayrollAssembler:
    """Main payroll calculation orchestrator.

    Calculation pipeline (per employee and period):
    1) Collect inputs: validate registration and amounts
    2) Split every perception into taxable/exempt
    3) Compute income tax, contributions and payroll tax concurrently
    4) Merge: append computed deductions, total, and compute net pay

        net_pay = total_perceptions - total_deductions + subsidy_paid

    Any failure moves the assembly to ``failed`` and raises
    ``CalculationFailed``; partial results are never returned.
    """

    def __init__(self, catalog: CatalogSnapshot, config: CalculationConfig | None = None):
        self.catalog = catalog
        self.config = config or CalculationConfig()
        self.splitter = ExemptionSplitter(catalog)
        self.tax_calculator = ProgressiveTaxCalculator()
        self.contribution_calculator = SocialContributionCalculator()
        self.payroll_tax_calculator = PayrollTaxCalculator()

    async def calculate(self, request: PayrollCalculationRequest) -> PayrollCalculationResult:
        """Calculate pay for a single employee.

        Raises:
            CalculationFailed: Wrapping the originating error
        """
        machine = AssemblyStateMachine()
        try:
            return await self._assemble(request, machine)
        except Exception as exc:
            stage = machine.fail()
            logger.warning(
                "Payroll assembly failed for employee %s during %s: %s",
                request.employee.employee_id,
                stage.value,
                exc,
            )
            raise CalculationFailed(request.employee.employee_id, exc, stage.value) from exc

    async def calculate_batch(
        self, requests: Sequence[PayrollCalculationRequest]
    ) -> BatchCalculationResult:
        """Calculate many employees; one failure never aborts the others."""
        results = await asyncio.gather(
            *(self.calculate(request) for request in requests),
            return_exceptions=True,
        )

        batch = BatchCalculationResult()
        for request, outcome in zip(requests, results):
            employee_id = request.employee.employee_id
            if isinstance(outcome, PayrollCalculationResult):
                batch.outcomes.append(EmployeeOutcome(employee_id, result=outcome))
                batch.total_perceptions += outcome.total_perceptions
                batch.total_net += outcome.net_pay
            elif isinstance(outcome, CalculationFailed):
                batch.outcomes.append(EmployeeOutcome(employee_id, error=outcome))
                batch.error_count += 1
            else:
                raise outcome

        return batch

    async def _assemble(
        self, request: PayrollCalculationRequest, machine: AssemblyStateMachine
    ) -> PayrollCalculationResult:
        warnings: list[str] = []
        as_of = request.calculation_date

        # 1) Collect inputs
        self._check_registration(request)
        # Any split supplied by the caller is discarded; the catalog decides
        perceptions = [
            replace(
                p,
                gross_amount=LineItemBuilder.to_money(p.gross_amount, f"perception {p.code}"),
                taxable_amount=None,
                exempt_amount=None,
            )
            for p in request.perceptions
        ]
        manual_deductions = [
            replace(d, amount=LineItemBuilder.to_money(d.amount, f"deduction {d.code}"))
            for d in request.deductions
        ]
        reference_unit = self.catalog.reference_unit(as_of).daily_value

        # 2) Split perceptions
        machine.advance(AssemblyStatus.SPLITTING)
        split_lines = [
            self._split_line(line, reference_unit, as_of, warnings) for line in perceptions
        ]

        # 3) Statutory computations (independent of each other)
        machine.advance(AssemblyStatus.COMPUTING_STATUTORY)
        total_perceptions = LineItemBuilder.sum_gross(split_lines)
        total_taxable = LineItemBuilder.sum_taxable(split_lines)

        tax, contributions, payroll_tax = await asyncio.gather(
            self._compute_income_tax(total_taxable, request.period, as_of),
            self._compute_contributions(request, reference_unit, as_of),
            self._compute_payroll_tax(total_perceptions, request.employee.jurisdiction, as_of),
        )

        # 4) Merge
        machine.advance(AssemblyStatus.MERGING)
        deductions: list[DeductionLine] = list(manual_deductions)
        if tax.net_tax > 0:
            deductions.append(
                LineItemBuilder.create_computed_deduction(
                    ISR_DEDUCTION_CODE, tax.net_tax, "Income tax withholding"
                )
            )
        if contributions.employee_total > 0:
            deductions.append(
                LineItemBuilder.create_computed_deduction(
                    IMSS_DEDUCTION_CODE,
                    contributions.employee_total,
                    "Social security employee contribution",
                )
            )

        total_deductions = LineItemBuilder.sum_deductions(deductions)
        subsidy_paid = tax.subsidy_to_pay if self.config.pay_excess_subsidy else Decimal("0.00")
        net_pay = total_perceptions - total_deductions + subsidy_paid

        if net_pay < 0:
            warnings.append(f"Negative net pay: {net_pay}")
            logger.warning(
                "Negative net pay %s for employee %s", net_pay, request.employee.employee_id
            )

        result = PayrollCalculationResult(
            employee_id=request.employee.employee_id,
            calculation_id=self._generate_calculation_id(request),
            period=request.period,
            perceptions=split_lines,
            deductions=deductions,
            tax=tax,
            contributions=contributions,
            payroll_tax=payroll_tax,
            total_perceptions=total_perceptions,
            total_taxable=total_taxable,
            total_exempt=LineItemBuilder.sum_exempt(split_lines),
            total_deductions=total_deductions,
            subsidy_paid=subsidy_paid,
            net_pay=net_pay,
            warnings=warnings,
        )
        machine.advance(AssemblyStatus.COMPLETE)
        return result

    def _check_registration(self, request: PayrollCalculationRequest) -> None:
        employee = request.employee
        missing = []
        if not employee.tax_id:
            missing.append("tax_id")
        if not employee.social_security_number:
            missing.append("social_security_number")
        if missing:
            raise MissingRegistration(f"Employee {employee.employee_id}", missing)

    def _split_line(
        self,
        line: PerceptionLine,
        reference_unit: Decimal,
        as_of: date,
        warnings: list[str],
    ) -> PerceptionLine:
        try:
            return self.splitter.split(line, reference_unit, as_of)
        except UnknownCatalogCode:
            if self.config.unknown_perception_policy != "taxable":
                raise
            logger.info("Unknown perception %s treated as fully taxable", line.code)
            warnings.append(f"Unknown perception {line.code} treated as fully taxable")
            return self.splitter.split_fully_taxable(line)

    async def _compute_income_tax(
        self, taxable_income: Decimal, period: PayPeriod, as_of: date
    ) -> TaxResult:
        table = self.catalog.tax_table(period.period_type, as_of)
        subsidy_index = self.catalog.subsidy_tables.get(period.period_type)
        subsidy_table = subsidy_index.find(as_of) if subsidy_index else None
        return self.tax_calculator.calculate(taxable_income, table, subsidy_table)

    async def _compute_contributions(
        self,
        request: PayrollCalculationRequest,
        reference_unit: Decimal,
        as_of: date,
    ) -> ContributionResult:
        schedule = self.catalog.contribution_schedule(as_of)
        return self.contribution_calculator.calculate(
            base_salary=request.employee.base_salary,
            risk_class=request.employee.risk_class,
            days_worked=request.period.days_worked,
            schedule=schedule,
            reference_unit_daily=reference_unit,
        )

    async def _compute_payroll_tax(
        self, total_payroll_cost: Decimal, jurisdiction: str, as_of: date
    ) -> PayrollTaxResult:
        schedule = self.catalog.payroll_tax_schedule(jurisdiction, as_of)
        return self.payroll_tax_calculator.calculate(total_payroll_cost, jurisdiction, schedule)

    def _generate_calculation_id(self, request: PayrollCalculationRequest) -> str:
        """Generate deterministic calculation ID."""
        data = {
            "request": request.to_canonical_dict(),
            "catalog_fingerprint": self.catalog.fingerprint,
            "engine_version": self.config.engine_version,
            "pay_excess_subsidy": self.config.pay_excess_subsidy,
            "unknown_perception_policy": self.config.unknown_perception_policy,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return str(UUID(bytes=hash_bytes[:16]))
