"""Theme management endpoints."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.database import get_async_session
from askinbio.core.deps import CurrentUser
from askinbio.core.exceptions import NotFound
from askinbio.core.rate_limit import RATE_LIMIT_API, limiter
from askinbio.models.theme import Theme
from askinbio.schemas.theme import ThemeCreate, ThemeResponse, ThemeUpdate
from askinbio.services import theme_service

logger = structlog.get_logger()

router = APIRouter(prefix="/themes", tags=["themes"])


async def _get_owned_theme(session: AsyncSession, theme_id: UUID, user_id: UUID) -> Theme:
    theme = await theme_service.get_theme_by_id(session, theme_id, user_id=user_id)
    if not theme:
        raise NotFound("Theme not found")
    return theme


@router.get("", response_model=list[ThemeResponse])
@limiter.limit(RATE_LIMIT_API)
async def list_themes(
    request: Request,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[ThemeResponse]:
    themes = await theme_service.get_user_themes(session, user.id)
    return [ThemeResponse.model_validate(theme) for theme in themes]


@router.post("", response_model=ThemeResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_API)
async def create_theme(
    request: Request,
    theme_data: ThemeCreate,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ThemeResponse:
    """Create a theme. The first theme, or one created as default, becomes the default."""
    theme = await theme_service.create_theme(session, user.id, theme_data)
    await session.commit()
    logger.info("Theme created", theme_id=str(theme.id), is_default=theme.is_default)
    return ThemeResponse.model_validate(theme)


@router.patch("/{theme_id}", response_model=ThemeResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_theme(
    request: Request,
    theme_id: UUID,
    theme_data: ThemeUpdate,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ThemeResponse:
    theme = await _get_owned_theme(session, theme_id, user.id)
    theme = await theme_service.update_theme(session, theme, theme_data)
    await session.commit()
    return ThemeResponse.model_validate(theme)


@router.delete("/{theme_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_API)
async def delete_theme(
    request: Request,
    theme_id: UUID,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> None:
    """Delete a theme. Deleting the default leaves the built-in theme active."""
    theme = await _get_owned_theme(session, theme_id, user.id)
    await theme_service.delete_theme(session, theme)
    await session.commit()
    logger.info("Theme deleted", theme_id=str(theme_id), user_id=str(user.id))


@router.post("/{theme_id}/default", response_model=ThemeResponse)
@limiter.limit(RATE_LIMIT_API)
async def set_default_theme(
    request: Request,
    theme_id: UUID,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ThemeResponse:
    """Make a theme the user's only default."""
    theme = await _get_owned_theme(session, theme_id, user.id)
    theme = await theme_service.set_default_theme(session, theme)
    await session.commit()
    return ThemeResponse.model_validate(theme)
