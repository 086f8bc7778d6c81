"""Profile aggregate schema."""

from pydantic import BaseModel

from askinbio.schemas.link import LinkResponse
from askinbio.schemas.theme import ThemeResponse
from askinbio.schemas.user import UserResponse


class ProfileResponse(BaseModel):
    """A user with their ordered links and active theme."""

    user: UserResponse
    links: list[LinkResponse]
    theme: ThemeResponse
