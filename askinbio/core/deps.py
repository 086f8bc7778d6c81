"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.config import get_settings
from askinbio.core.database import get_async_session
from askinbio.core.exceptions import NotFound, Unauthorized
from askinbio.core.security import REFRESH_COOKIE_MAX_AGE
from askinbio.core.supabase import SupabaseAuthClient
from askinbio.models.user import User
from askinbio.schemas.auth import AuthSession, AuthUser
from askinbio.services.session import AuthEventChannel, SessionAccessor
from askinbio.services.user import get_user_by_id

settings = get_settings()

# Cookie names for the provider session
ACCESS_COOKIE_NAME = "sb-access-token"
REFRESH_COOKIE_NAME = "sb-refresh-token"


def set_session_cookies(response: Response, session: AuthSession) -> None:
    """Store provider tokens in httpOnly cookies."""
    response.set_cookie(
        key=ACCESS_COOKIE_NAME,
        value=session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=session.refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )


def clear_session_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE_NAME, REFRESH_COOKIE_NAME):
        response.delete_cookie(
            key=name,
            path="/",
            httponly=True,
            secure=not settings.debug,
            samesite="lax",
        )


def get_auth_client(request: Request) -> SupabaseAuthClient:
    """Identity provider client created at startup."""
    return request.app.state.auth_client


def get_auth_events(request: Request) -> AuthEventChannel:
    return request.app.state.auth_events


async def get_session_accessor(
    auth_client: Annotated[SupabaseAuthClient, Depends(get_auth_client)],
    events: Annotated[AuthEventChannel, Depends(get_auth_events)],
    access_token: Annotated[str | None, Cookie(alias=ACCESS_COOKIE_NAME)] = None,
    refresh_token: Annotated[str | None, Cookie(alias=REFRESH_COOKIE_NAME)] = None,
) -> SessionAccessor:
    return SessionAccessor(
        auth_client,
        access_token,
        refresh_token,
        events=events,
        refresh_threshold=settings.session_refresh_threshold,
    )


SessionAccessorDep = Annotated[SessionAccessor, Depends(get_session_accessor)]


async def get_current_auth_user_optional(
    accessor: SessionAccessorDep,
    response: Response,
) -> AuthUser | None:
    """Provider user for the request, or None when signed out.

    A session refreshed on the way is written back to the cookies.
    """
    auth_user = await accessor.get_current_user()
    check = await accessor.get_session()
    if check is not None and check.refreshed:
        set_session_cookies(response, check.session)
    return auth_user


async def get_current_auth_user(
    auth_user: Annotated[AuthUser | None, Depends(get_current_auth_user_optional)],
) -> AuthUser:
    if auth_user is None:
        raise Unauthorized()
    return auth_user


async def get_current_user(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    auth_user: Annotated[AuthUser, Depends(get_current_auth_user)],
) -> User:
    """Get the local user row for the signed-in account.

    Raises Unauthorized (401) without a session and NotFound (404) when the
    account has no profile row.
    """
    try:
        user_id = UUID(auth_user.id)
    except ValueError:
        raise Unauthorized("Invalid session subject")

    user = await get_user_by_id(session, user_id)
    if user is None:
        raise NotFound("User profile not found")
    return user


# Type aliases for dependency injection
CurrentAuthUser = Annotated[AuthUser, Depends(get_current_auth_user)]
CurrentUser = Annotated[User, Depends(get_current_user)]
