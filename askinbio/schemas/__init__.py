"""Pydantic schemas."""

from askinbio.schemas.analytics import (
    ClickAnalytics,
    ClickContext,
    DailyClicks,
    LinkClicks,
    ReconcileResponse,
    TrackClickRequest,
    TrackClickResult,
)
from askinbio.schemas.auth import AuthSession, AuthUser, SessionInfo, SessionStatusResponse
from askinbio.schemas.link import LinkCreate, LinkReorder, LinkResponse, LinkUpdate
from askinbio.schemas.profile import ProfileResponse
from askinbio.schemas.theme import ThemeCreate, ThemeResponse, ThemeUpdate
from askinbio.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserCreate,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "ClickAnalytics",
    "ClickContext",
    "DailyClicks",
    "LinkClicks",
    "ReconcileResponse",
    "TrackClickRequest",
    "TrackClickResult",
    "AuthSession",
    "AuthUser",
    "SessionInfo",
    "SessionStatusResponse",
    "LinkCreate",
    "LinkReorder",
    "LinkResponse",
    "LinkUpdate",
    "ProfileResponse",
    "ThemeCreate",
    "ThemeResponse",
    "ThemeUpdate",
    "ForgotPasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
