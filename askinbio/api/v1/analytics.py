"""Click analytics endpoints for the dashboard."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.database import get_async_session
from askinbio.core.deps import CurrentUser
from askinbio.core.rate_limit import RATE_LIMIT_API, limiter
from askinbio.schemas.analytics import ClickAnalytics, ReconcileResponse
from askinbio.services import analytics_service, click_service

logger = structlog.get_logger()

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=ClickAnalytics)
@limiter.limit(RATE_LIMIT_API)
async def get_analytics(
    request: Request,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    days: Annotated[int, Query(ge=1, le=365)] = 30,
) -> ClickAnalytics:
    """Click totals and breakdowns for the user's links over ``days`` days."""
    return await analytics_service.get_click_analytics(session, user.id, days=days)


@router.post("/reconcile", response_model=ReconcileResponse)
@limiter.limit(RATE_LIMIT_API)
async def reconcile(
    request: Request,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ReconcileResponse:
    """Reset the user's link counters to their recorded click events."""
    corrected = await click_service.reconcile_click_counts(session, user_id=user.id)
    return ReconcileResponse(links_corrected=corrected)
