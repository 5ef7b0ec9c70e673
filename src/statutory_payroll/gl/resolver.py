"""Priority-ordered GL override resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from statutory_payroll.gl.rules import GLOverrideRule, OverrideType, Polarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GLResolution:
    """Account a line posts to after override resolution."""

    account: str
    original_account: str
    rule: GLOverrideRule | None = None

    @property
    def overridden(self) -> bool:
        return self.rule is not None


class GLOverrideResolver:
    """Selects the applicable override rule for a payroll line.

    Rules are sorted once: priority descending, then ``defined_at``
    descending, then ``rule_code``. The first active, effective rule whose
    polarity flag matches and whose conditions all match wins.
    """

    def __init__(
        self,
        rules: Iterable[GLOverrideRule],
        segment_codes: Iterable[str] = ("company", "account", "cost_center"),
        separator: str = "-",
    ):
        self.rules = sorted(rules, key=self._sort_key)
        self.segment_codes = tuple(segment_codes)
        self.separator = separator

    @staticmethod
    def _sort_key(rule: GLOverrideRule) -> tuple:
        return (-rule.priority, -rule.defined_at.timestamp(), rule.rule_code)

    def candidates(self, polarity: Polarity, as_of_date: date) -> list[GLOverrideRule]:
        """Active rules for the date and polarity, in evaluation order."""
        return [
            rule
            for rule in self.rules
            if rule.is_active and rule.is_effective(as_of_date) and rule.applies_to(polarity)
        ]

    def resolve(
        self,
        dimensions: Mapping[str, str | None],
        polarity: Polarity,
        as_of_date: date,
    ) -> GLOverrideRule | None:
        """Return the winning rule, or None when the line keeps its account."""
        for rule in self.candidates(polarity, as_of_date):
            if not rule.conditions:
                logger.warning("GL override rule %s has no conditions; skipped", rule.rule_code)
                continue
            problems = [c.problem for c in rule.conditions if c.problem]
            if problems:
                logger.warning(
                    "GL override rule %s is malformed (%s); skipped",
                    rule.rule_code,
                    "; ".join(problems),
                )
                continue
            if all(condition.matches(dimensions) for condition in rule.conditions):
                return rule
        return None

    def apply(
        self,
        original_account: str,
        polarity: Polarity,
        as_of_date: date,
        dimensions: Mapping[str, str | None],
    ) -> GLResolution:
        rule = self.resolve(dimensions, polarity, as_of_date)
        if rule is None:
            return GLResolution(account=original_account, original_account=original_account)
        return GLResolution(
            account=self.apply_target(rule, original_account, polarity),
            original_account=original_account,
            rule=rule,
        )

    def apply_target(self, rule: GLOverrideRule, original_account: str, polarity: Polarity) -> str:
        target = rule.target

        if rule.override_type == OverrideType.FULL_STRING:
            return target.custom_gl_string or original_account

        if rule.override_type == OverrideType.ACCOUNT:
            replacement = (
                target.debit_account if polarity == Polarity.DEBIT else target.credit_account
            )
            return replacement or original_account

        parts = original_account.split(self.separator)
        for segment, value in target.segment_overrides.items():
            if segment not in self.segment_codes:
                logger.warning(
                    "GL override rule %s targets unknown segment %s", rule.rule_code, segment
                )
                continue
            idx = self.segment_codes.index(segment)
            if idx >= len(parts):
                logger.warning(
                    "Account %s has no %s segment for rule %s",
                    original_account,
                    segment,
                    rule.rule_code,
                )
                continue
            parts[idx] = value
        return self.separator.join(parts)
