"""Authentication endpoints backed by the identity provider."""

from typing import Annotated
from urllib.parse import urlencode
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.config import get_settings
from askinbio.core.database import get_async_session
from askinbio.core.deps import (
    CurrentAuthUser,
    CurrentUser,
    SessionAccessorDep,
    clear_session_cookies,
    get_auth_client,
    get_auth_events,
    set_session_cookies,
)
from askinbio.core.exceptions import (
    AskInBioError,
    AuthProviderError,
    Conflict,
    Forbidden,
    Unauthorized,
)
from askinbio.core.rate_limit import (
    RATE_LIMIT_PASSWORD_RESET,
    RATE_LIMIT_SIGN_IN,
    RATE_LIMIT_SIGN_UP,
    limiter,
)
from askinbio.core.security import create_pkce_pair
from askinbio.core.supabase import SupabaseAuthClient
from askinbio.schemas.auth import SessionInfo, SessionStatusResponse
from askinbio.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserCreate,
    UserResponse,
)
from askinbio.services import user_service
from askinbio.services.session import AuthEvent, AuthEventChannel

settings = get_settings()
logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])

AuthClientDep = Annotated[SupabaseAuthClient, Depends(get_auth_client)]
AuthEventsDep = Annotated[AuthEventChannel, Depends(get_auth_events)]

# Session key holding the PKCE verifier between /google and /callback
PKCE_VERIFIER_KEY = "pkce_code_verifier"


@router.post("/login", response_model=UserResponse)
@limiter.limit(RATE_LIMIT_SIGN_IN)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    auth_client: AuthClientDep,
    events: AuthEventsDep,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> UserResponse:
    """Sign in with email and password and set the session cookies."""
    try:
        auth_session = await auth_client.sign_in_with_password(
            credentials.email,
            credentials.password,
        )
    except AuthProviderError as e:
        if "Invalid login credentials" in e.message:
            raise Unauthorized("Invalid email or password", code="INVALID_CREDENTIALS")
        if "Email not confirmed" in e.message:
            raise Forbidden(
                "Please verify your email before logging in",
                code="EMAIL_NOT_VERIFIED",
            )
        raise AuthProviderError("An error occurred during sign in")

    user = None
    if auth_session.user is not None:
        user = await user_service.get_user_by_id(session, UUID(auth_session.user.id))
    if user is None:
        raise Unauthorized("No profile exists for this account", code="AUTH_FAILED")

    set_session_cookies(response, auth_session)
    await events.publish(AuthEvent.SIGNED_IN, auth_session)
    logger.info("User signed in", user_id=str(user.id))
    return UserResponse.model_validate(user)


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_SIGN_UP)
async def register(
    request: Request,
    response: Response,
    form: RegisterRequest,
    auth_client: AuthClientDep,
    events: AuthEventsDep,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> dict:
    """Create a provider account and the matching local profile."""
    if not await user_service.is_username_available(session, form.username):
        raise Conflict("Username is already taken", code="USERNAME_TAKEN")
    if await user_service.get_user_by_email(session, form.email):
        raise Conflict("This email is already registered", code="EMAIL_EXISTS")

    try:
        auth_user, auth_session = await auth_client.sign_up(
            form.email,
            form.password,
            metadata={"username": form.username},
            redirect_to=f"{settings.frontend_url}/auth/confirm",
        )
    except AuthProviderError as e:
        if "already registered" in e.message:
            raise Conflict("This email is already registered", code="EMAIL_EXISTS")
        if "Password" in e.message:
            raise AuthProviderError("Password does not meet requirements", code="WEAK_PASSWORD")
        raise AuthProviderError("Unable to create account", code="SIGNUP_ERROR")

    user = await user_service.create_user(
        session,
        UserCreate(id=UUID(auth_user.id), email=form.email, username=form.username),
    )
    await session.commit()
    logger.info("User registered", user_id=str(user.id), username=user.username)

    if auth_session is not None:
        set_session_cookies(response, auth_session)
        await events.publish(AuthEvent.SIGNED_IN, auth_session)
        return {"success": True, "code": "SIGNUP_SUCCESS", "message": "Account created"}

    return {
        "success": True,
        "code": "SIGNUP_SUCCESS",
        "message": "Please check your email to confirm your account.",
    }


@router.post("/logout")
async def logout(
    response: Response,
    accessor: SessionAccessorDep,
    auth_client: AuthClientDep,
    events: AuthEventsDep,
) -> dict[str, str]:
    """Sign out with the provider and clear the session cookies."""
    check = await accessor.get_session()
    if check is not None:
        try:
            await auth_client.sign_out(check.session.access_token)
        except AskInBioError as e:
            logger.warning("Provider sign-out failed", error=e.message)
    clear_session_cookies(response)
    await events.publish(AuthEvent.SIGNED_OUT, None)
    return {"message": "Logged out successfully"}


@router.post("/forgot-password")
@limiter.limit(RATE_LIMIT_PASSWORD_RESET)
async def forgot_password(
    request: Request,
    form: ForgotPasswordRequest,
    auth_client: AuthClientDep,
    events: AuthEventsDep,
) -> dict[str, str]:
    """Ask the provider to email a recovery link.

    The response is the same whether or not the address is registered.
    """
    try:
        await auth_client.reset_password_for_email(
            form.email,
            redirect_to=f"{settings.frontend_url}/reset-password",
        )
        await events.publish(AuthEvent.PASSWORD_RECOVERY, None)
    except AuthProviderError as e:
        logger.info("Password recovery rejected", error=e.message)
    return {"message": "If an account exists, a password reset email has been sent."}


@router.post("/reset-password")
async def reset_password(
    form: ResetPasswordRequest,
    auth_user: CurrentAuthUser,
    accessor: SessionAccessorDep,
    auth_client: AuthClientDep,
    events: AuthEventsDep,
) -> dict[str, str]:
    """Set a new password for the signed-in (or recovering) account."""
    check = await accessor.get_session()
    if check is None:
        raise Unauthorized()
    try:
        await auth_client.update_user(check.session.access_token, {"password": form.password})
    except AuthProviderError as e:
        raise AuthProviderError(e.message, code="PASSWORD_UPDATE_FAILED")
    await events.publish(AuthEvent.USER_UPDATED, check.session)
    logger.info("Password updated", user_id=auth_user.id)
    return {"message": "Password updated successfully"}


@router.get("/google")
async def google_login(request: Request, auth_client: AuthClientDep) -> RedirectResponse:
    """Start a Google sign-in through the provider (PKCE)."""
    verifier, challenge = create_pkce_pair()
    request.session[PKCE_VERIFIER_KEY] = verifier
    next_path = request.query_params.get("next", "/dashboard")

    redirect_to = str(request.url_for("oauth_callback"))
    redirect_to = f"{redirect_to}?{urlencode({'next': next_path})}"
    url = auth_client.get_authorize_url("google", redirect_to, challenge)
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get("/callback", name="oauth_callback")
async def oauth_callback(
    request: Request,
    auth_client: AuthClientDep,
    events: AuthEventsDep,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> RedirectResponse:
    """Finish an OAuth sign-in and redirect to the frontend."""
    login_url = f"{settings.frontend_url}/login"
    error = request.query_params.get("error")
    if error:
        description = request.query_params.get("error_description") or "Authentication failed"
        logger.warning("OAuth error", error=error, description=description)
        return RedirectResponse(f"{login_url}?{urlencode({'error': description})}")

    code = request.query_params.get("code")
    verifier = request.session.pop(PKCE_VERIFIER_KEY, None)
    if not code or not verifier:
        return RedirectResponse(login_url)

    try:
        auth_session = await auth_client.exchange_code_for_session(code, verifier)
    except AskInBioError as e:
        logger.error("Code exchange failed", error=e.message)
        return RedirectResponse(
            f"{login_url}?{urlencode({'error': 'Failed to complete authentication'})}"
        )

    auth_user = auth_session.user
    if auth_user is None:
        return RedirectResponse(login_url)
    metadata = auth_user.user_metadata
    user, created = await user_service.get_or_create_user_from_oauth(
        session,
        user_id=UUID(auth_user.id),
        email=auth_user.email or "",
        full_name=metadata.get("full_name") or metadata.get("name"),
        avatar_url=metadata.get("avatar_url") or metadata.get("picture"),
    )
    await session.commit()
    logger.info("OAuth sign-in successful", user_id=str(user.id), created=created)

    next_path = request.query_params.get("next", "/dashboard")
    if not next_path.startswith("/") or next_path.startswith("//"):
        next_path = "/dashboard"
    redirect = RedirectResponse(f"{settings.frontend_url}{next_path}", status_code=status.HTTP_302_FOUND)
    set_session_cookies(redirect, auth_session)
    await events.publish(AuthEvent.SIGNED_IN, auth_session)
    return redirect


@router.get("/session", response_model=SessionStatusResponse)
async def session_status(
    response: Response,
    accessor: SessionAccessorDep,
) -> SessionStatusResponse:
    """Report the current session, refreshing it when close to expiry.

    Signed-out callers get ``{"user": null, "session": null}`` with 200.
    """
    check = await accessor.get_session()
    if check is None:
        return SessionStatusResponse(user=None, session=None)

    if check.refreshed:
        set_session_cookies(response, check.session)

    current = check.session
    return SessionStatusResponse(
        user=current.user,
        session=SessionInfo(
            access_token=current.access_token,
            expires_in=current.expires_in,
            expires_at=current.expires_at,
        ),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(user: CurrentUser) -> UserResponse:
    """Get the current authenticated user's information."""
    return UserResponse.model_validate(user)
