"""API v1 router - aggregates all v1 endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.api.v1.analytics import router as analytics_router
from askinbio.api.v1.auth import router as auth_router
from askinbio.api.v1.links import router as links_router
from askinbio.api.v1.profiles import router as profiles_router
from askinbio.api.v1.themes import router as themes_router
from askinbio.core.database import get_async_session, ping_db

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1")

# Include sub-routers
router.include_router(auth_router)
router.include_router(links_router)
router.include_router(themes_router)
router.include_router(profiles_router)
router.include_router(analytics_router)


@router.get("/health")
async def health_check(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> JSONResponse:
    """Health check endpoint; also keeps the datastore connection warm."""
    try:
        await ping_db(session)
    except SQLAlchemyError as e:
        logger.error("Health check failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unreachable"},
        )
    return JSONResponse(content={"status": "healthy", "database": "ok"})
