"""Identity provider session schemas."""

from typing import Any

from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    """User as reported by the identity provider."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    email_confirmed_at: str | None = None


class AuthSession(BaseModel):
    """Tokens issued by the identity provider."""

    access_token: str
    refresh_token: str
    expires_in: int
    expires_at: int | None = None
    token_type: str = "bearer"
    user: AuthUser | None = None


class SessionInfo(BaseModel):
    access_token: str
    expires_in: int
    expires_at: int | None


class SessionStatusResponse(BaseModel):
    """Body of the session status endpoint; both fields null when signed out."""

    user: AuthUser | None
    session: SessionInfo | None
