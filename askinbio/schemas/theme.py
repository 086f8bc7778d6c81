"""Theme Pydantic schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ButtonStyle = Literal["rounded", "square", "pill"]
HEX_COLOR = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


class ThemeBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    primary_color: str = Field(pattern=HEX_COLOR)
    secondary_color: str = Field(pattern=HEX_COLOR)
    background_color: str = Field(pattern=HEX_COLOR)
    text_color: str = Field(pattern=HEX_COLOR)
    font_family: str = Field(min_length=1, max_length=100)
    button_style: ButtonStyle = "rounded"


class ThemeCreate(ThemeBase):
    is_default: bool = False


class ThemeUpdate(BaseModel):
    """Partial theme update. Use the default endpoint to switch defaults."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    primary_color: str | None = Field(default=None, pattern=HEX_COLOR)
    secondary_color: str | None = Field(default=None, pattern=HEX_COLOR)
    background_color: str | None = Field(default=None, pattern=HEX_COLOR)
    text_color: str | None = Field(default=None, pattern=HEX_COLOR)
    font_family: str | None = Field(default=None, min_length=1, max_length=100)
    button_style: ButtonStyle | None = None


class ThemeResponse(ThemeBase):
    """Theme as rendered.

    ``id`` is ``None`` for the built-in fallback theme.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    user_id: UUID | None = None
    is_default: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
