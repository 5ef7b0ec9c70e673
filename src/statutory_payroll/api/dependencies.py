"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from statutory_payroll.calculators.catalog import CatalogSnapshot
from statutory_payroll.calculators.engine import PayrollAssembler
from statutory_payroll.config import Settings, get_settings
from statutory_payroll.database import init_db
from statutory_payroll.services.catalog_service import CatalogStore
from statutory_payroll.services.gl_rule_service import GLRuleService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_catalog(db: DbSession) -> CatalogSnapshot:
    """Load the reference catalog snapshot for this request."""
    return await CatalogStore(db).load_snapshot()


Catalog = Annotated[CatalogSnapshot, Depends(get_catalog)]


async def get_assembler(catalog: Catalog, settings: AppSettings) -> PayrollAssembler:
    return PayrollAssembler(catalog, settings.calculation_config())


async def get_gl_rule_service(db: DbSession, settings: AppSettings) -> GLRuleService:
    return GLRuleService(db, settings.gl_segment_codes)


Assembler = Annotated[PayrollAssembler, Depends(get_assembler)]
RuleService = Annotated[GLRuleService, Depends(get_gl_rule_service)]
