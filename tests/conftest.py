"""Pytest fixtures for statutory payroll tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from statutory_payroll.calculators.catalog import CatalogSnapshot
from statutory_payroll.calculators.engine import PayrollAssembler
from statutory_payroll.calculators.types import (
    EmployeeProfile,
    PayPeriod,
    PayrollCalculationRequest,
    PerceptionLine,
)
from statutory_payroll.reference_data import catalog_versions_2024


@pytest.fixture(scope="session")
def catalog() -> CatalogSnapshot:
    """2024 reference catalog."""
    return CatalogSnapshot.from_versions(catalog_versions_2024())


@pytest.fixture
def assembler(catalog: CatalogSnapshot) -> PayrollAssembler:
    return PayrollAssembler(catalog)


@pytest.fixture
def employee() -> EmployeeProfile:
    return EmployeeProfile(
        employee_id="EMP-001",
        tax_id="PEPJ800101AB1",
        social_security_number="12345678901",
        base_salary=Decimal("500.00"),
        risk_class="I",
        jurisdiction="CDMX",
    )


@pytest.fixture
def biweekly_period() -> PayPeriod:
    """First half of February 2024: UMA 108.57, bracketed subsidy."""
    return PayPeriod(date(2024, 2, 1), date(2024, 2, 15))


@pytest.fixture
def biweekly_request(employee: EmployeeProfile, biweekly_period: PayPeriod) -> PayrollCalculationRequest:
    """Salary plus a fully exempt savings fund contribution."""
    return PayrollCalculationRequest(
        employee=employee,
        period=biweekly_period,
        perceptions=(
            PerceptionLine(code="P001", gross_amount=Decimal("7500.00")),
            PerceptionLine(code="P005", gross_amount=Decimal("500.00")),
        ),
    )
