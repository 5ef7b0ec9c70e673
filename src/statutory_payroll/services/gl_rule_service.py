"""GL override rule authoring."""

from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statutory_payroll.errors import RuleAuthoringError
from statutory_payroll.gl.rules import GLOverrideRule, validate_rule
from statutory_payroll.models import (
    GLOverrideConditionModel,
    GLOverrideRuleModel,
    GLOverrideTargetModel,
)
from statutory_payroll.models.base import utcnow

logger = logging.getLogger(__name__)


class GLRuleService:
    """Create, update, delete and list GL override rules.

    Every save goes through ``validate_rule`` so invalid rules never reach
    the resolver.
    """

    def __init__(self, session: AsyncSession, segment_codes: Iterable[str] | None = None):
        self.session = session
        self.segment_codes = tuple(segment_codes) if segment_codes is not None else None

    async def create_rule(self, rule: GLOverrideRule) -> GLOverrideRuleModel:
        validate_rule(rule, self.segment_codes)
        if await self._find_by_code(rule.rule_code) is not None:
            raise RuleAuthoringError(rule.rule_code, "rule_code already exists")

        model = GLOverrideRuleModel(defined_at=utcnow())
        self._apply(model, rule)
        self.session.add(model)
        await self.session.flush()
        logger.info("Created GL override rule %s", rule.rule_code)
        return model

    async def update_rule(self, rule_id: UUID, rule: GLOverrideRule) -> GLOverrideRuleModel | None:
        validate_rule(rule, self.segment_codes)
        model = await self.get_rule(rule_id)
        if model is None:
            return None

        existing = await self._find_by_code(rule.rule_code)
        if existing is not None and existing.rule_id != model.rule_id:
            raise RuleAuthoringError(rule.rule_code, "rule_code already exists")

        self._apply(model, rule)
        model.defined_at = utcnow()
        await self.session.flush()
        logger.info("Updated GL override rule %s", rule.rule_code)
        return model

    async def delete_rule(self, rule_id: UUID) -> bool:
        model = await self.get_rule(rule_id)
        if model is None:
            return False
        await self.session.delete(model)
        await self.session.flush()
        logger.info("Deleted GL override rule %s", model.rule_code)
        return True

    async def get_rule(self, rule_id: UUID) -> GLOverrideRuleModel | None:
        result = await self.session.execute(
            select(GLOverrideRuleModel).where(GLOverrideRuleModel.rule_id == rule_id)
        )
        return result.scalar_one_or_none()

    async def list_rules(self, active_only: bool = False) -> list[GLOverrideRuleModel]:
        query = select(GLOverrideRuleModel).order_by(
            GLOverrideRuleModel.priority.desc(),
            GLOverrideRuleModel.defined_at.desc(),
            GLOverrideRuleModel.rule_code,
        )
        if active_only:
            query = query.where(GLOverrideRuleModel.is_active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def active_rules(self) -> list[GLOverrideRule]:
        """Active rules as resolver input."""
        return [model.to_rule() for model in await self.list_rules(active_only=True)]

    async def _find_by_code(self, rule_code: str) -> GLOverrideRuleModel | None:
        result = await self.session.execute(
            select(GLOverrideRuleModel).where(GLOverrideRuleModel.rule_code == rule_code)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _apply(model: GLOverrideRuleModel, rule: GLOverrideRule) -> None:
        model.rule_code = rule.rule_code
        model.rule_name = rule.rule_name
        model.description = rule.description
        model.priority = rule.priority
        model.override_type = rule.override_type.value
        model.applies_to_debit = rule.applies_to_debit
        model.applies_to_credit = rule.applies_to_credit
        model.effective_start = rule.effective_start
        model.effective_end = rule.effective_end
        model.is_active = rule.is_active
        model.conditions = [
            GLOverrideConditionModel(
                position=position,
                dimension_type=condition.dimension.value,
                operator=condition.operator.value,
                values_json=list(condition.values),
            )
            for position, condition in enumerate(rule.conditions)
        ]
        # Updated in place; rule_id is unique on the target table
        if model.target is None:
            model.target = GLOverrideTargetModel()
        model.target.target_debit_account = rule.target.debit_account
        model.target.target_credit_account = rule.target.credit_account
        model.target.segment_overrides_json = dict(rule.target.segment_overrides)
        model.target.custom_gl_string = rule.target.custom_gl_string
