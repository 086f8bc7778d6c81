"""ClickEvent SQLAlchemy model for storing raw click events."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from askinbio.core.database import Base

if TYPE_CHECKING:
    from askinbio.models.link import Link


class ClickEvent(Base):
    """A single click on a link.

    Rows are written once by the click recorder and never updated.
    """

    __tablename__ = "click_events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    link_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("links.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clicked_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
        index=True,
        comment="Set by the datastore at insert time",
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(45),
        nullable=True,
        comment="Client IP address",
    )
    user_agent: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="HTTP User-Agent header",
    )
    referrer: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="HTTP Referer header",
    )
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    device_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="mobile, tablet or desktop when derived; caller value otherwise",
    )

    link: Mapped["Link"] = relationship(back_populates="click_events")

    __table_args__ = (
        Index("ix_click_events_link_id_clicked_at", "link_id", "clicked_at"),
    )

    def __repr__(self) -> str:
        return f"<ClickEvent {self.id} link={self.link_id} at={self.clicked_at}>"
