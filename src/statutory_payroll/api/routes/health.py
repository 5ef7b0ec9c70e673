"""Health, readiness and liveness endpoints.

``/health`` reports database reachability and whether reference data has
been seeded; ``/ready`` refuses traffic until it has, since every
calculation needs at least a UMA value.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from statutory_payroll import __version__
from statutory_payroll.api.dependencies import DbSession
from statutory_payroll.errors import PayrollError
from statutory_payroll.services.catalog_service import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
    database: str
    catalog: str
    catalog_fingerprint: str | None = None


async def _catalog_state(db: DbSession) -> tuple[str, str | None]:
    try:
        snapshot = await CatalogStore(db).load_snapshot()
    except (SQLAlchemyError, PayrollError) as exc:
        logger.warning("Reference catalog could not be loaded: %s", exc)
        return "unavailable", None
    if len(snapshot.reference_units) == 0:
        return "empty", snapshot.fingerprint
    return "loaded", snapshot.fingerprint


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        return HealthResponse(
            status="degraded",
            version=__version__,
            timestamp=datetime.now(timezone.utc),
            database="unhealthy",
            catalog="unavailable",
        )

    catalog, fingerprint = await _catalog_state(db)
    return HealthResponse(
        status="healthy" if catalog == "loaded" else "degraded",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        database="healthy",
        catalog=catalog,
        catalog_fingerprint=fingerprint,
    )


@router.get("/ready")
async def readiness_check(db: DbSession) -> JSONResponse:
    """Ready once the reference catalog is seeded."""
    catalog, fingerprint = await _catalog_state(db)
    if catalog != "loaded":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "catalog": catalog},
        )
    return JSONResponse(content={"status": "ready", "catalog_fingerprint": fingerprint})


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
