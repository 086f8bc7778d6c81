"""Theme SQLAlchemy model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from askinbio.core.database import Base

if TYPE_CHECKING:
    from askinbio.models.user import User


class Theme(Base):
    """Named set of styling attributes for a profile.

    At most one theme per user has ``is_default`` set. The theme service
    clears the previous default in the same transaction and a partial unique
    index rejects a second default that slips past it.
    """

    __tablename__ = "themes"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    primary_color: Mapped[str] = mapped_column(String(32), nullable=False)
    secondary_color: Mapped[str] = mapped_column(String(32), nullable=False)
    background_color: Mapped[str] = mapped_column(String(32), nullable=False)
    text_color: Mapped[str] = mapped_column(String(32), nullable=False)
    font_family: Mapped[str] = mapped_column(String(100), nullable=False)
    button_style: Mapped[str] = mapped_column(
        String(20),
        default="rounded",
        nullable=False,
        comment="One of: rounded, square, pill",
    )
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user: Mapped["User"] = relationship(back_populates="themes")

    __table_args__ = (
        Index(
            "uq_themes_user_id_default",
            "user_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Theme {self.name} default={self.is_default}>"
