"""User SQLAlchemy model."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from askinbio.core.database import Base


class User(Base):
    """Profile owner.

    The id is the identity provider's user id, so the row is linked to
    the provider account without a separate mapping column.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    username: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Public handle used in the profile URL",
    )
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    links: Mapped[list["Link"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Link.order",
    )
    themes: Mapped[list["Theme"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User {self.username}>"


from askinbio.models.link import Link  # noqa: E402
from askinbio.models.theme import Theme  # noqa: E402
