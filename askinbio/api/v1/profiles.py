"""Profile endpoints: the owner's dashboard view and public pages."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.database import get_async_session
from askinbio.core.deps import CurrentAuthUser, CurrentUser
from askinbio.core.exceptions import Unauthorized
from askinbio.core.rate_limit import RATE_LIMIT_API, limiter
from askinbio.schemas.profile import ProfileResponse
from askinbio.schemas.user import UserResponse, UserUpdate
from askinbio.services import profile_service, user_service

router = APIRouter(tags=["profiles"])


@router.get("/user/profile", response_model=ProfileResponse)
async def get_my_profile(
    auth_user: CurrentAuthUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ProfileResponse:
    """The signed-in user's profile with every link and the active theme.

    401 without a session, 404 when the account has no profile row.
    """
    try:
        user_id = UUID(auth_user.id)
    except ValueError:
        raise Unauthorized("Invalid session subject")
    return await profile_service.get_profile(session, user_id)


@router.patch("/user/profile", response_model=UserResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_my_profile(
    request: Request,
    user_data: UserUpdate,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> UserResponse:
    """Edit display name, avatar and bio. Fields left out are unchanged."""
    user = await user_service.update_user(session, user, user_data)
    await session.commit()
    return UserResponse.model_validate(user)


@router.get("/profiles/{username}", response_model=ProfileResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_public_profile(
    request: Request,
    username: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ProfileResponse:
    """Public profile page data; inactive links are left out."""
    return await profile_service.get_public_profile(session, username)
