"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from statutory_payroll.calculators.types import (
    DeductionLine,
    DeductionSource,
    EmployeeProfile,
    PayPeriod,
    PayrollCalculationRequest,
    PayrollCalculationResult,
    PerceptionLine,
)
from statutory_payroll.errors import PayrollError
from statutory_payroll.gl.rules import (
    ConditionOperator,
    DimensionType,
    GLOverrideCondition,
    GLOverrideRule,
    GLOverrideTarget,
    LineDimensions,
    OverrideType,
    Polarity,
)
from statutory_payroll.models import GLOverrideRuleModel
from statutory_payroll.statutory.encoder import (
    CompanyRegistration,
    MovementType,
    StatutoryMovementRecord,
)


# ============================================================================
# Payroll calculation schemas
# ============================================================================


class EmployeeInput(BaseModel):
    """Statutory attributes of the employee being calculated."""

    employee_id: str
    tax_id: str | None = None
    social_security_number: str | None = None
    base_salary: Decimal
    risk_class: str = "I"
    jurisdiction: str


class PerceptionInput(BaseModel):
    code: str
    amount: Decimal
    description: str | None = None


class DeductionInput(BaseModel):
    code: str
    amount: Decimal
    description: str | None = None


class CalculationRequest(BaseModel):
    """Schema for a single-employee calculation."""

    employee: EmployeeInput
    period_start: date
    period_end: date
    perceptions: list[PerceptionInput]
    deductions: list[DeductionInput] = []
    as_of_date: date | None = None

    @model_validator(mode="after")
    def check_period(self) -> "CalculationRequest":
        if self.period_end < self.period_start:
            raise ValueError("period_end must not precede period_start")
        return self

    def to_domain(self) -> PayrollCalculationRequest:
        return PayrollCalculationRequest(
            employee=EmployeeProfile(**self.employee.model_dump()),
            period=PayPeriod(self.period_start, self.period_end),
            perceptions=tuple(
                PerceptionLine(code=p.code, gross_amount=p.amount, description=p.description)
                for p in self.perceptions
            ),
            deductions=tuple(
                DeductionLine(code=d.code, amount=d.amount, description=d.description)
                for d in self.deductions
            ),
            as_of_date=self.as_of_date,
        )


class BatchCalculationRequest(BaseModel):
    requests: list[CalculationRequest] = Field(min_length=1)


class PerceptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    description: str | None = None
    gross_amount: Decimal
    taxable_amount: Decimal
    exempt_amount: Decimal


class DeductionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    amount: Decimal
    source: DeductionSource
    description: str | None = None


class TaxResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    taxable_income: Decimal
    gross_tax: Decimal
    subsidy: Decimal
    net_tax: Decimal
    subsidy_to_pay: Decimal


class ContributionLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    description: str | None = None
    daily_base: Decimal
    employee_amount: Decimal
    employer_amount: Decimal


class ContributionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    base_salary: Decimal
    days_worked: int
    risk_class: str
    lines: list[ContributionLineResponse]
    employee_total: Decimal
    employer_total: Decimal


class PayrollTaxResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    jurisdiction: str
    taxable_base: Decimal
    amount: Decimal
    registered: bool


class CalculationResponse(BaseModel):
    """Full net-pay breakdown."""

    employee_id: str
    calculation_id: str
    period_start: date
    period_end: date
    period_type: str
    days_worked: int
    perceptions: list[PerceptionResponse]
    deductions: list[DeductionResponse]
    tax: TaxResponse
    contributions: ContributionResponse
    payroll_tax: PayrollTaxResponse
    total_perceptions: Decimal
    total_taxable: Decimal
    total_exempt: Decimal
    total_deductions: Decimal
    subsidy_paid: Decimal
    net_pay: Decimal
    employer_cost: Decimal
    warnings: list[str] = []

    @classmethod
    def from_result(cls, result: PayrollCalculationResult) -> "CalculationResponse":
        return cls(
            employee_id=result.employee_id,
            calculation_id=result.calculation_id,
            period_start=result.period.start,
            period_end=result.period.end,
            period_type=result.period.period_type.value,
            days_worked=result.period.days_worked,
            perceptions=[PerceptionResponse.model_validate(p) for p in result.perceptions],
            deductions=[DeductionResponse.model_validate(d) for d in result.deductions],
            tax=TaxResponse.model_validate(result.tax),
            contributions=ContributionResponse.model_validate(result.contributions),
            payroll_tax=PayrollTaxResponse.model_validate(result.payroll_tax),
            total_perceptions=result.total_perceptions,
            total_taxable=result.total_taxable,
            total_exempt=result.total_exempt,
            total_deductions=result.total_deductions,
            subsidy_paid=result.subsidy_paid,
            net_pay=result.net_pay,
            employer_cost=result.employer_cost,
            warnings=result.warnings,
        )


class BatchOutcomeResponse(BaseModel):
    employee_id: str
    success: bool
    result: CalculationResponse | None = None
    error: "ErrorResponse | None" = None


class BatchCalculationResponse(BaseModel):
    outcomes: list[BatchOutcomeResponse]
    total_perceptions: Decimal
    total_net: Decimal
    error_count: int


class LineDimensionsInput(BaseModel):
    pay_element: str | None = None
    department: str | None = None
    division: str | None = None
    location: str | None = None
    job: str | None = None
    employee: str | None = None
    pay_group: str | None = None
    cost_center: str | None = None
    section: str | None = None
    mapping_type: str | None = None

    def to_domain(self) -> LineDimensions:
        return LineDimensions(**self.model_dump())


class JournalRequest(BaseModel):
    """Calculate, then post the result to the GL."""

    calculation: CalculationRequest
    dimensions: LineDimensionsInput | None = None
    posting_date: date | None = None


# ============================================================================
# GL override rule schemas
# ============================================================================


class GLConditionSchema(BaseModel):
    dimension_type: DimensionType
    operator: ConditionOperator
    values: list[str] = []


class GLTargetSchema(BaseModel):
    target_debit_account: str | None = None
    target_credit_account: str | None = None
    segment_overrides: dict[str, str] = {}
    custom_gl_string: str | None = None


class GLRuleCreate(BaseModel):
    """Schema for creating or replacing a GL override rule."""

    rule_code: str
    rule_name: str | None = None
    description: str | None = None
    priority: int = 0
    override_type: OverrideType
    applies_to_debit: bool = True
    applies_to_credit: bool = True
    effective_date: date
    end_date: date | None = None
    is_active: bool = True
    conditions: list[GLConditionSchema] = []
    target: GLTargetSchema

    def to_rule(self) -> GLOverrideRule:
        return GLOverrideRule(
            rule_code=self.rule_code,
            rule_name=self.rule_name,
            description=self.description,
            priority=self.priority,
            override_type=self.override_type,
            conditions=tuple(
                GLOverrideCondition(c.dimension_type, c.operator, tuple(c.values))
                for c in self.conditions
            ),
            target=GLOverrideTarget(
                debit_account=self.target.target_debit_account,
                credit_account=self.target.target_credit_account,
                segment_overrides=dict(self.target.segment_overrides),
                custom_gl_string=self.target.custom_gl_string,
            ),
            applies_to_debit=self.applies_to_debit,
            applies_to_credit=self.applies_to_credit,
            effective_start=self.effective_date,
            effective_end=self.end_date,
            is_active=self.is_active,
        )


class GLRuleResponse(BaseModel):
    """Schema for GL override rule response."""

    rule_id: UUID
    rule_code: str
    rule_name: str | None = None
    description: str | None = None
    priority: int
    override_type: OverrideType
    applies_to_debit: bool
    applies_to_credit: bool
    effective_date: date
    end_date: date | None = None
    is_active: bool
    created_at: datetime
    defined_at: datetime
    conditions: list[GLConditionSchema]
    target: GLTargetSchema

    @classmethod
    def from_model(cls, model: GLOverrideRuleModel) -> "GLRuleResponse":
        target = model.target
        return cls(
            rule_id=model.rule_id,
            rule_code=model.rule_code,
            rule_name=model.rule_name,
            description=model.description,
            priority=model.priority,
            override_type=OverrideType(model.override_type),
            applies_to_debit=model.applies_to_debit,
            applies_to_credit=model.applies_to_credit,
            effective_date=model.effective_start,
            end_date=model.effective_end,
            is_active=model.is_active,
            created_at=model.created_at,
            defined_at=model.defined_at,
            conditions=[
                GLConditionSchema(
                    dimension_type=DimensionType(c.dimension_type),
                    operator=ConditionOperator(c.operator),
                    values=list(c.values_json or []),
                )
                for c in model.conditions
            ],
            target=GLTargetSchema(
                target_debit_account=target.target_debit_account if target else None,
                target_credit_account=target.target_credit_account if target else None,
                segment_overrides=dict(target.segment_overrides_json or {}) if target else {},
                custom_gl_string=target.custom_gl_string if target else None,
            ),
        )


class GLRuleListResponse(BaseModel):
    items: list[GLRuleResponse]
    total: int


class GLResolveRequest(BaseModel):
    original_account: str
    polarity: Polarity
    as_of_date: date
    dimensions: LineDimensionsInput = LineDimensionsInput()


class GLResolveResponse(BaseModel):
    account: str
    original_account: str
    overridden: bool
    rule_code: str | None = None


# ============================================================================
# Statutory file schemas
# ============================================================================


class CompanyInput(BaseModel):
    employer_registration: str | None = None
    tax_id: str | None = None
    legal_name: str | None = None

    def to_domain(self) -> CompanyRegistration:
        return CompanyRegistration(**self.model_dump())


class MovementInput(BaseModel):
    employee_id: str
    national_id: str | None = None
    social_security_number: str | None = None
    full_name: str | None = None
    movement_type: MovementType
    movement_date: date | None = None
    base_salary: Decimal | None = None
    termination_cause: str | None = None

    def to_domain(self) -> StatutoryMovementRecord:
        return StatutoryMovementRecord(**self.model_dump())


class MovementsFileRequest(BaseModel):
    company: CompanyInput
    records: list[MovementInput] = []
    file_date: date


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None

    @classmethod
    def from_error(cls, exc: PayrollError) -> "ErrorResponse":
        return cls(detail=str(exc), code=exc.code, context=exc.context)


BatchOutcomeResponse.model_rebuild()
