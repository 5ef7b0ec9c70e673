"""GL override rule endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query, status

from statutory_payroll.api.dependencies import AppSettings, DbSession, RuleService
from statutory_payroll.api.schemas import (
    ErrorResponse,
    GLResolveRequest,
    GLResolveResponse,
    GLRuleCreate,
    GLRuleListResponse,
    GLRuleResponse,
)
from statutory_payroll.gl.resolver import GLOverrideResolver

router = APIRouter(prefix="/gl-override-rules", tags=["gl-override-rules"])


@router.get("", response_model=GLRuleListResponse)
async def list_rules(
    service: RuleService,
    active_only: Annotated[bool, Query()] = False,
) -> GLRuleListResponse:
    """List rules in evaluation order."""
    rules = await service.list_rules(active_only=active_only)
    return GLRuleListResponse(
        items=[GLRuleResponse.from_model(r) for r in rules],
        total=len(rules),
    )


@router.post(
    "",
    response_model=GLRuleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_rule(
    db: DbSession,
    service: RuleService,
    payload: GLRuleCreate,
) -> GLRuleResponse:
    """Create a rule; rules without conditions are rejected."""
    model = await service.create_rule(payload.to_rule())
    await db.commit()
    return GLRuleResponse.from_model(model)


@router.post("/resolve", response_model=GLResolveResponse)
async def resolve(
    service: RuleService,
    settings: AppSettings,
    payload: GLResolveRequest,
) -> GLResolveResponse:
    """Resolve the account a line posts to."""
    resolver = GLOverrideResolver(
        await service.active_rules(),
        settings.gl_segment_codes,
        settings.gl_segment_separator,
    )
    resolution = resolver.apply(
        payload.original_account,
        payload.polarity,
        payload.as_of_date,
        payload.dimensions.to_domain().as_dict(),
    )
    return GLResolveResponse(
        account=resolution.account,
        original_account=resolution.original_account,
        overridden=resolution.overridden,
        rule_code=resolution.rule.rule_code if resolution.rule else None,
    )


@router.get(
    "/{rule_id}",
    response_model=GLRuleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_rule(
    service: RuleService,
    rule_id: Annotated[UUID, Path()],
) -> GLRuleResponse:
    model = await service.get_rule(rule_id)
    if model is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"GL override rule {rule_id} not found",
        )
    return GLRuleResponse.from_model(model)


@router.put(
    "/{rule_id}",
    response_model=GLRuleResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_rule(
    db: DbSession,
    service: RuleService,
    payload: GLRuleCreate,
    rule_id: Annotated[UUID, Path()],
) -> GLRuleResponse:
    model = await service.update_rule(rule_id, payload.to_rule())
    if model is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"GL override rule {rule_id} not found",
        )
    await db.commit()
    return GLRuleResponse.from_model(model)


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_rule(
    db: DbSession,
    service: RuleService,
    rule_id: Annotated[UUID, Path()],
) -> None:
    if not await service.delete_rule(rule_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"GL override rule {rule_id} not found",
        )
    await db.commit()
