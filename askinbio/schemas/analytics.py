"""Click tracking and analytics schemas."""

from pydantic import BaseModel


class ClickContext(BaseModel):
    """Optional context recorded with a click.

    ``country`` and ``device`` are free-form; they are checked only for type.
    The request metadata fields are filled in by the HTTP layer.
    """

    country: str | None = None
    device: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    referrer: str | None = None


class TrackClickRequest(BaseModel):
    """Body accepted by the public click endpoint."""

    country: str | None = None
    device: str | None = None


class TrackClickResult(BaseModel):
    """Outcome of a tracking call: ``{success}`` or ``{success, error}``."""

    success: bool
    error: str | None = None


class LinkClicks(BaseModel):
    link_id: str
    title: str
    clicks: int
    percentage: int


class DailyClicks(BaseModel):
    date: str  # YYYY-MM-DD
    clicks: int


class ClickAnalytics(BaseModel):
    """Aggregated click analytics for one user over a window of days."""

    total_clicks: int
    clicks_by_link: list[LinkClicks]
    clicks_by_country: dict[str, int]
    clicks_by_device: dict[str, int]
    clicks_by_day: list[DailyClicks]


class ReconcileResponse(BaseModel):
    links_corrected: int
