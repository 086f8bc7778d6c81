"""SQLAlchemy models.

All models should be imported here for Alembic to detect them.
"""

from askinbio.core.database import Base
from askinbio.models.user import User
from askinbio.models.link import Link
from askinbio.models.theme import Theme
from askinbio.models.click import ClickEvent

__all__ = ["Base", "User", "Link", "Theme", "ClickEvent"]
