"""Async client for the Supabase Auth (GoTrue) REST API."""

from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from askinbio.core.config import get_settings
from askinbio.core.exceptions import AuthProviderError, UpstreamError
from askinbio.schemas.auth import AuthSession, AuthUser

logger = structlog.get_logger()


def _error_message(response: httpx.Response) -> str:
    """Pull the human readable message out of a GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    return (
        body.get("error_description")
        or body.get("msg")
        or body.get("message")
        or body.get("error")
        or f"HTTP {response.status_code}"
    )


class SupabaseAuthClient:
    """Thin wrapper over the identity provider endpoints used by the app.

    Every call has a bounded wait. Transport failures, timeouts and 5xx
    responses raise ``UpstreamError``; 4xx responses raise
    ``AuthProviderError`` with the provider's message.

    Usage:
        client = SupabaseAuthClient(url, anon_key)
        session = await client.sign_in_with_password(email, password)
        ...
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/auth/v1",
            headers={"apikey": anon_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.warning("Identity provider timeout", path=path, error=str(e))
            raise UpstreamError("Authentication service timed out") from e
        except httpx.RequestError as e:
            logger.warning("Identity provider unreachable", path=path, error=str(e))
            raise UpstreamError("Authentication service unavailable") from e

        if response.status_code >= 500:
            logger.error(
                "Identity provider error",
                path=path,
                status_code=response.status_code,
            )
            raise UpstreamError("Authentication service unavailable")

        if response.status_code >= 400:
            raise AuthProviderError(
                _error_message(response),
                provider_status=response.status_code,
            )

        if not response.content:
            return {}
        return response.json()

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
        redirect_to: str | None = None,
    ) -> tuple[AuthUser, AuthSession | None]:
        """Register a new account.

        Returns the provider user and, when email confirmation is disabled,
        the issued session.
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        data = await self._request(
            "POST",
            "/signup",
            params=params,
            json={"email": email, "password": password, "data": metadata or {}},
        )
        if "access_token" in data:
            session = AuthSession.model_validate(data)
            return session.user, session
        return AuthUser.model_validate(data.get("user", data)), None

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return AuthSession.model_validate(data)

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        """Exchange a refresh token for a new session."""
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return AuthSession.model_validate(data)

    async def exchange_code_for_session(self, auth_code: str, code_verifier: str) -> AuthSession:
        """Complete a PKCE OAuth flow."""
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": code_verifier},
        )
        return AuthSession.model_validate(data)

    async def get_user(self, access_token: str) -> AuthUser:
        """Ask the provider who owns an access token."""
        data = await self._request("GET", "/user", access_token=access_token)
        return AuthUser.model_validate(data)

    async def update_user(self, access_token: str, attributes: dict[str, Any]) -> AuthUser:
        data = await self._request("PUT", "/user", access_token=access_token, json=attributes)
        return AuthUser.model_validate(data)

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", access_token=access_token)

    async def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None:
        """Ask the provider to send a password recovery email."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._request("POST", "/recover", params=params, json={"email": email})

    def get_authorize_url(
        self,
        provider: str,
        redirect_to: str,
        code_challenge: str,
        scopes: str | None = None,
    ) -> str:
        """Build the provider authorize URL for a PKCE OAuth sign-in."""
        query = {
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        }
        if scopes:
            query["scopes"] = scopes
        return f"{self._base_url}/auth/v1/authorize?{urlencode(query)}"


def create_auth_client(transport: httpx.AsyncBaseTransport | None = None) -> SupabaseAuthClient:
    """Create a client from application settings."""
    settings = get_settings()
    return SupabaseAuthClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout=settings.identity_timeout,
        transport=transport,
    )
