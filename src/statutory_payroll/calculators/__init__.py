"""Statutory payroll calculation engine."""

from statutory_payroll.calculators.benefits import StatutoryBenefitsCalculator, TerminationType
from statutory_payroll.calculators.catalog import CatalogSnapshot
from statutory_payroll.calculators.contribution_calculator import SocialContributionCalculator
from statutory_payroll.calculators.engine import (
    BatchCalculationResult,
    EmployeeOutcome,
    PayrollAssembler,
)
from statutory_payroll.calculators.exemption import ExemptionSplitter
from statutory_payroll.calculators.line_builder import LineItemBuilder
from statutory_payroll.calculators.payroll_tax_calculator import PayrollTaxCalculator
from statutory_payroll.calculators.tax_calculator import ProgressiveTaxCalculator

__all__ = [
    "BatchCalculationResult",
    "CatalogSnapshot",
    "EmployeeOutcome",
    "ExemptionSplitter",
    "LineItemBuilder",
    "PayrollAssembler",
    "PayrollTaxCalculator",
    "ProgressiveTaxCalculator",
    "SocialContributionCalculator",
    "StatutoryBenefitsCalculator",
    "TerminationType",
]
