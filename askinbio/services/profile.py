"""Profile aggregation: user, ordered links and active theme."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.exceptions import NotFound
from askinbio.models.user import User
from askinbio.schemas.link import LinkResponse
from askinbio.schemas.profile import ProfileResponse
from askinbio.schemas.user import UserResponse
from askinbio.services import link as link_service
from askinbio.services import theme as theme_service
from askinbio.services import user as user_service


async def _assemble(session: AsyncSession, user: User, active_only: bool) -> ProfileResponse:
    links = await link_service.get_user_links(
        session,
        user.id,
        include_inactive=not active_only,
    )
    theme = await theme_service.resolve_active_theme(session, user.id)
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        links=[LinkResponse.model_validate(link) for link in links],
        theme=theme,
    )


async def get_profile(
    session: AsyncSession,
    user_id: UUID,
    active_only: bool = False,
) -> ProfileResponse:
    """Assemble a user's profile for the dashboard.

    Links are ordered by ascending ``order``. A user without links gets an
    empty list; a user without a default theme gets the built-in theme.

    Raises:
        NotFound: if the user does not exist.
    """
    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise NotFound("User profile not found")
    return await _assemble(session, user, active_only)


async def get_public_profile(session: AsyncSession, username: str) -> ProfileResponse:
    """Assemble the public profile for a username; inactive links are hidden."""
    user = await user_service.get_user_by_username(session, username)
    if user is None:
        raise NotFound("Profile not found")
    return await _assemble(session, user, active_only=True)
