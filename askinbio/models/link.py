"""Link SQLAlchemy model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from askinbio.core.database import Base

if TYPE_CHECKING:
    from askinbio.models.click import ClickEvent
    from askinbio.models.user import User


class Link(Base):
    """A clickable entry on a user's profile."""

    __tablename__ = "links"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Icon name or thumbnail URL",
    )
    order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Display position among the user's links (ascending)",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Inactive links are hidden from the public profile",
    )
    clicks: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Total click count (denormalized from click_events)",
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user: Mapped["User"] = relationship(back_populates="links")
    click_events: Mapped[list["ClickEvent"]] = relationship(
        back_populates="link",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (CheckConstraint("clicks >= 0", name="clicks_non_negative"),)

    def __repr__(self) -> str:
        return f"<Link {self.title} -> {self.url[:50]}>"
