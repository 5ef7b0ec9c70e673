"""Payroll calculation endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import Response

from statutory_payroll.api.dependencies import AppSettings, Assembler, DbSession
from statutory_payroll.api.schemas import (
    BatchCalculationRequest,
    BatchCalculationResponse,
    BatchOutcomeResponse,
    CalculationRequest,
    CalculationResponse,
    ErrorResponse,
    JournalRequest,
)
from statutory_payroll.gl.resolver import GLOverrideResolver
from statutory_payroll.services.gl_rule_service import GLRuleService
from statutory_payroll.services.gl_service import GLService

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.post(
    "/calculate",
    response_model=CalculationResponse,
    status_code=status.HTTP_200_OK,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def calculate(payload: CalculationRequest, assembler: Assembler) -> CalculationResponse:
    """Calculate net pay for one employee and period."""
    result = await assembler.calculate(payload.to_domain())
    return CalculationResponse.from_result(result)


@router.post(
    "/calculate-batch",
    response_model=BatchCalculationResponse,
    status_code=status.HTTP_200_OK,
)
async def calculate_batch(
    payload: BatchCalculationRequest, assembler: Assembler
) -> BatchCalculationResponse:
    """Calculate many employees; failures are reported per employee."""
    batch = await assembler.calculate_batch([r.to_domain() for r in payload.requests])
    return BatchCalculationResponse(
        outcomes=[
            BatchOutcomeResponse(
                employee_id=outcome.employee_id,
                success=outcome.success,
                result=CalculationResponse.from_result(outcome.result) if outcome.result else None,
                error=ErrorResponse.from_error(outcome.error) if outcome.error else None,
            )
            for outcome in batch.outcomes
        ],
        total_perceptions=batch.total_perceptions,
        total_net=batch.total_net,
        error_count=batch.error_count,
    )


@router.post(
    "/journal",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, 422: {"model": ErrorResponse}},
)
async def journal(
    payload: JournalRequest,
    assembler: Assembler,
    db: DbSession,
    settings: AppSettings,
) -> Response:
    """Calculate one employee and export the GL journal as CSV."""
    result = await assembler.calculate(payload.calculation.to_domain())
    rules = await GLRuleService(db, settings.gl_segment_codes).active_rules()
    resolver = GLOverrideResolver(rules, settings.gl_segment_codes, settings.gl_segment_separator)
    service = GLService(resolver)

    batch = service.generate_journal(
        result,
        payload.dimensions.to_domain() if payload.dimensions else None,
        payload.posting_date,
    )
    return Response(content=service.export_to_csv([batch]), media_type="text/csv")
