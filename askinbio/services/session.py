"""Session resolution, refresh and auth-state notifications."""

import enum
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from askinbio.core.exceptions import AskInBioError
from askinbio.core.observability import record_session_refresh
from askinbio.core.security import decode_access_token
from askinbio.core.supabase import SupabaseAuthClient
from askinbio.schemas.auth import AuthSession, AuthUser

logger = structlog.get_logger()

REFRESH_THRESHOLD_SECONDS = 300


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


AuthEventCallback = Callable[
    [AuthEvent, AuthSession | None],
    Awaitable[None] | None,
]


class Subscription:
    """Handle returned by ``AuthEventChannel.subscribe``."""

    def __init__(self, channel: "AuthEventChannel", callback: AuthEventCallback) -> None:
        self._channel = channel
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._channel._remove(self._callback)
            self.active = False


class AuthEventChannel:
    """Delivers auth-state changes to subscribers.

    Each subscriber keeps its own state; the channel only fans events out.
    A subscriber that raises is logged and skipped so it cannot block the
    others or the operation that published the event.

    Usage:
        channel = AuthEventChannel()
        subscription = channel.subscribe(on_auth_change)
        ...
        subscription.unsubscribe()
    """

    def __init__(self) -> None:
        self._callbacks: list[AuthEventCallback] = []

    def subscribe(self, callback: AuthEventCallback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: AuthEventCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    async def publish(self, event: AuthEvent, session: AuthSession | None = None) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(event, session)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(
                    "Auth event subscriber failed",
                    auth_event=event.value,
                    error=str(e),
                )


async def log_auth_event(event: AuthEvent, session: AuthSession | None) -> None:
    """Default subscriber: log every auth-state change."""
    user_id = session.user.id if session and session.user else None
    logger.info("Auth state changed", auth_event=event.value, user_id=user_id)


class SessionState(str, enum.Enum):
    """Outcome of a session check."""

    VALID = "valid"  # far from expiry, used as-is
    REFRESHED = "refreshed"  # near expiry, refresh succeeded
    STILL_VALID = "still_valid"  # near expiry, refresh failed, original kept


@dataclass
class SessionCheck:
    state: SessionState
    session: AuthSession

    @property
    def refreshed(self) -> bool:
        return self.state is SessionState.REFRESHED


class SessionAccessor:
    """Resolves the current identity for one request.

    The session lives in the request's token cookies. A session with less
    than ``refresh_threshold`` seconds left is refreshed first; if the
    refresh fails the original session is returned for as long as it is
    still valid.
    """

    def __init__(
        self,
        auth_client: SupabaseAuthClient,
        access_token: str | None,
        refresh_token: str | None,
        events: AuthEventChannel | None = None,
        refresh_threshold: int = REFRESH_THRESHOLD_SECONDS,
    ) -> None:
        self._auth_client = auth_client
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._refresh_threshold = refresh_threshold
        self.events = events or AuthEventChannel()
        self._checked: SessionCheck | None = None
        self._resolved = False

    def subscribe(self, callback: AuthEventCallback) -> Subscription:
        return self.events.subscribe(callback)

    def _read_session(self) -> AuthSession | None:
        if not self._access_token:
            return None
        claims = decode_access_token(self._access_token)
        if claims is None:
            return None
        session = AuthSession(
            access_token=self._access_token,
            refresh_token=self._refresh_token or "",
            expires_in=claims.expires_in(),
            expires_at=claims.exp,
            user=AuthUser(id=claims.sub, email=claims.email),
        )
        return session

    async def _try_refresh(self) -> AuthSession | None:
        if not self._refresh_token:
            return None
        try:
            session = await self._auth_client.refresh_session(self._refresh_token)
        except AskInBioError as e:
            logger.warning("Session refresh failed", error=e.message)
            record_session_refresh("failed")
            return None
        record_session_refresh("success")
        await self.events.publish(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def _transition(self, session: AuthSession) -> SessionCheck | None:
        if session.expires_in >= self._refresh_threshold:
            return SessionCheck(SessionState.VALID, session)

        refreshed = await self._try_refresh()
        if refreshed is not None:
            return SessionCheck(SessionState.REFRESHED, refreshed)

        if session.expires_in > 0:
            return SessionCheck(SessionState.STILL_VALID, session)

        # Expired and not renewable
        return None

    async def get_session(self) -> SessionCheck | None:
        """Return the current session, refreshing it when close to expiry.

        The result is memoized for the lifetime of the accessor so a request
        refreshes at most once.
        """
        if self._resolved:
            return self._checked

        read = self._read_session()
        self._checked = await self._transition(read) if read else None
        self._resolved = True
        return self._checked

    async def get_current_user(self) -> AuthUser | None:
        """Resolve the signed-in provider user, or None when signed out."""
        check = await self.get_session()
        if check is None:
            return None
        try:
            return await self._auth_client.get_user(check.session.access_token)
        except AskInBioError as e:
            if e.status_code >= 500:
                raise
            logger.info("Session rejected by identity provider", error=e.message)
            return None
