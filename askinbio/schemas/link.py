"""Link Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class LinkBase(BaseModel):
    """Base schema for link data."""

    title: str = Field(min_length=1, max_length=100, description="Link label")
    url: HttpUrl = Field(description="Destination URL")
    description: str | None = Field(default=None, max_length=500)
    icon: str | None = Field(default=None, description="Icon name or thumbnail URL")


class LinkCreate(LinkBase):
    """Schema for creating a new link."""

    order: int | None = Field(
        default=None,
        ge=0,
        description="Display position; appended after the last link when omitted",
    )


class LinkUpdate(BaseModel):
    """Schema for updating a link."""

    title: str | None = Field(default=None, min_length=1, max_length=100)
    url: HttpUrl | None = None
    description: str | None = Field(default=None, max_length=500)
    icon: str | None = None
    order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class LinkReorder(BaseModel):
    """New display order: link ids from first to last."""

    link_ids: list[UUID] = Field(min_length=1)


class LinkResponse(BaseModel):
    """Schema for link response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    url: str
    description: str | None
    icon: str | None
    order: int
    is_active: bool
    clicks: int
    created_at: datetime
    updated_at: datetime
