"""SQL-backed catalog store."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statutory_payroll.calculators.catalog import CatalogSnapshot
from statutory_payroll.errors import NotFound
from statutory_payroll.models import CatalogRule, CatalogRuleVersion

logger = logging.getLogger(__name__)


class CatalogStore:
    """Reads and writes versioned catalog payloads.

    Lookups return the single version effective on the requested date:
    the most recent ``effective_start`` at or before it whose
    ``effective_end`` (if any) has not passed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str, as_of_date: date) -> dict[str, Any]:
        """Return the payload of ``key`` effective on ``as_of_date``.

        Raises:
            NotFound: If no version is effective
        """
        result = await self.session.execute(
            select(CatalogRuleVersion)
            .join(CatalogRule, CatalogRule.rule_id == CatalogRuleVersion.rule_id)
            .where(
                CatalogRule.rule_key == key,
                CatalogRuleVersion.effective_start <= as_of_date,
            )
            .order_by(CatalogRuleVersion.effective_start.desc())
            .limit(1)
        )
        version = result.scalar_one_or_none()
        if version is None or not version.is_active_on(as_of_date):
            raise NotFound(key, as_of_date)
        return version.payload_json

    async def load_snapshot(self) -> CatalogSnapshot:
        """Load every version into an in-memory snapshot for the calculators."""
        result = await self.session.execute(
            select(CatalogRule.rule_key, CatalogRuleVersion)
            .join(CatalogRule, CatalogRule.rule_id == CatalogRuleVersion.rule_id)
            .order_by(CatalogRule.rule_key, CatalogRuleVersion.effective_start)
        )
        rows = [
            (key, version.effective_start, version.effective_end, version.payload_json)
            for key, version in result.all()
        ]
        snapshot = CatalogSnapshot.from_versions(rows)
        logger.debug("Loaded catalog snapshot %s (%d versions)", snapshot.fingerprint, len(rows))
        return snapshot

    async def put_version(
        self,
        key: str,
        effective_start: date,
        payload: dict[str, Any],
        effective_end: date | None = None,
        description: str | None = None,
        source_url: str | None = None,
    ) -> CatalogRuleVersion:
        """Add a version, creating the catalog key on first use."""
        result = await self.session.execute(select(CatalogRule).where(CatalogRule.rule_key == key))
        rule = result.scalar_one_or_none()
        if rule is None:
            rule = CatalogRule(rule_key=key, description=description)
            self.session.add(rule)
            await self.session.flush()

        version = CatalogRuleVersion(
            rule_id=rule.rule_id,
            effective_start=effective_start,
            effective_end=effective_end,
            source_url=source_url,
            payload_json=payload,
        )
        self.session.add(version)
        await self.session.flush()
        return version
