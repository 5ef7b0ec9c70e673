"""Seed script for the 2024 reference catalog.

Run with:
    python scripts/seed_catalog.py

Loads UMA, ISR and subsidy tables, the perception catalog, IMSS
contribution rules and state payroll tax rates.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statutory_payroll.config import get_settings
from statutory_payroll.database import create_tables, dispose_db, get_session
from statutory_payroll.models import CatalogRule, CatalogRuleVersion
from statutory_payroll.reference_data import catalog_versions_2024
from statutory_payroll.services.catalog_service import CatalogStore

logger = logging.getLogger("seed_catalog")


async def seed_catalog(session: AsyncSession) -> int:
    """Insert missing 2024 versions; returns how many were created."""
    store = CatalogStore(session)
    created = 0

    for key, start, end, payload in catalog_versions_2024():
        result = await session.execute(
            select(CatalogRuleVersion)
            .join(CatalogRule, CatalogRule.rule_id == CatalogRuleVersion.rule_id)
            .where(CatalogRule.rule_key == key, CatalogRuleVersion.effective_start == start)
        )
        if result.scalar_one_or_none() is not None:
            logger.info("%s effective %s already exists, skipping", key, start)
            continue

        await store.put_version(key, start, payload, effective_end=end)
        logger.info("Created %s effective %s", key, start)
        created += 1

    return created


async def main() -> None:
    logging.basicConfig(level=get_settings().log_level, format="%(levelname)s %(message)s")
    logger.info("Seeding reference catalog...")

    await create_tables()
    async with get_session() as session:
        created = await seed_catalog(session)
    await dispose_db()

    logger.info("Done! %d catalog versions created.", created)


if __name__ == "__main__":
    asyncio.run(main())
