"""Link management endpoints and the public click tracker."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Body, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.database import get_async_session
from askinbio.core.deps import CurrentUser
from askinbio.core.exceptions import NotFound
from askinbio.core.observability import record_link_operation
from askinbio.core.rate_limit import (
    RATE_LIMIT_API,
    RATE_LIMIT_TRACK_CLICK,
    get_real_client_ip,
    limiter,
)
from askinbio.models.link import Link
from askinbio.schemas.analytics import ClickContext, TrackClickRequest, TrackClickResult
from askinbio.schemas.link import LinkCreate, LinkReorder, LinkResponse, LinkUpdate
from askinbio.services import click_service, link_service

logger = structlog.get_logger()

router = APIRouter(prefix="/links", tags=["links"])


async def _get_owned_link(session: AsyncSession, link_id: UUID, user_id: UUID) -> Link:
    link = await link_service.get_link_by_id(session=session, link_id=link_id, user_id=user_id)
    if not link:
        raise NotFound("Link not found")
    return link


@router.get("", response_model=list[LinkResponse])
@limiter.limit(RATE_LIMIT_API)
async def list_links(
    request: Request,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[LinkResponse]:
    """List the current user's links in display order."""
    links = await link_service.get_user_links(session=session, user_id=user.id)
    return [LinkResponse.model_validate(link) for link in links]


@router.post("", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_API)
async def create_link(
    request: Request,
    link_data: LinkCreate,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkResponse:
    """Create a link. Without an explicit order it goes after the last one."""
    link = await link_service.create_link(session=session, user_id=user.id, link_data=link_data)
    await session.commit()
    logger.info("Link created", link_id=str(link.id), user_id=str(user.id), order=link.order)
    record_link_operation("create")
    return LinkResponse.model_validate(link)


@router.put("/reorder", response_model=list[LinkResponse])
@limiter.limit(RATE_LIMIT_API)
async def reorder_links(
    request: Request,
    reorder: LinkReorder,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[LinkResponse]:
    """Reorder links; each link's order becomes its index in ``link_ids``."""
    links = await link_service.reorder_links(
        session=session,
        user_id=user.id,
        link_ids=reorder.link_ids,
    )
    await session.commit()
    logger.info("Links reordered", user_id=str(user.id), count=len(reorder.link_ids))
    record_link_operation("reorder")
    return [LinkResponse.model_validate(link) for link in links]


@router.get("/{link_id}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_link(
    request: Request,
    link_id: UUID,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkResponse:
    link = await _get_owned_link(session, link_id, user.id)
    return LinkResponse.model_validate(link)


@router.patch("/{link_id}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_link(
    request: Request,
    link_id: UUID,
    link_data: LinkUpdate,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkResponse:
    """Update a link's properties."""
    link = await _get_owned_link(session, link_id, user.id)
    updated_link = await link_service.update_link(session=session, link=link, link_data=link_data)
    await session.commit()

    logger.info("Link updated", link_id=str(link_id), user_id=str(user.id))
    record_link_operation("update")
    return LinkResponse.model_validate(updated_link)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_API)
async def delete_link(
    request: Request,
    link_id: UUID,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> None:
    """Delete a link together with its click history."""
    link = await _get_owned_link(session, link_id, user.id)
    await link_service.delete_link(session=session, link=link)
    await session.commit()

    logger.info("Link deleted", link_id=str(link_id), user_id=str(user.id))
    record_link_operation("delete")


@router.post("/{link_id}/toggle", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def toggle_link(
    request: Request,
    link_id: UUID,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkResponse:
    """Flip a link between active and inactive."""
    link = await _get_owned_link(session, link_id, user.id)
    link = await link_service.toggle_link_status(session=session, link=link)
    await session.commit()
    record_link_operation("toggle")
    return LinkResponse.model_validate(link)


@router.post("/{link_id}/click", response_model=TrackClickResult, response_model_exclude_none=True)
@limiter.limit(RATE_LIMIT_TRACK_CLICK)
async def track_link_click(
    request: Request,
    link_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    body: Annotated[TrackClickRequest | None, Body()] = None,
) -> TrackClickResult:
    """Record a click from a public profile page.

    Always answers 200; a failed recording is reported in the body as
    ``{"success": false, "error": ...}``.
    """
    context = ClickContext(
        country=body.country if body else None,
        device=body.device if body else None,
        ip_address=get_real_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
        referrer=request.headers.get("Referer"),
    )
    return await click_service.track_click(session, link_id, context)
