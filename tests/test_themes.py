"""Theme service: exclusive default and built-in fallback."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from askinbio.core.exceptions import Conflict
from askinbio.models import Theme
from askinbio.schemas.theme import ThemeCreate
from askinbio.services import theme_service


def _theme_data(name: str, is_default: bool = False) -> ThemeCreate:
    return ThemeCreate(
        name=name,
        primary_color="#FF5733",
        secondary_color="#333",
        background_color="#FFFFFF",
        text_color="#000000",
        font_family="Inter",
        is_default=is_default,
    )


async def _defaults(session_factory, user_id) -> list[str]:
    async with session_factory() as s:
        result = await s.execute(
            select(Theme.name).where(Theme.user_id == user_id, Theme.is_default == True)  # noqa: E712
        )
        return list(result.scalars().all())


class TestDefaultTheme:
    async def test_first_theme_becomes_default(self, session, user):
        theme = await theme_service.create_theme(session, user.id, _theme_data("First"))
        await session.commit()

        assert theme.is_default is True

    async def test_second_theme_is_not_default(self, session, session_factory, user):
        await theme_service.create_theme(session, user.id, _theme_data("First"))
        second = await theme_service.create_theme(session, user.id, _theme_data("Second"))
        await session.commit()

        assert second.is_default is False
        assert await _defaults(session_factory, user.id) == ["First"]

    async def test_creating_default_clears_previous(self, session, session_factory, user):
        await theme_service.create_theme(session, user.id, _theme_data("First"))
        await theme_service.create_theme(session, user.id, _theme_data("Second", is_default=True))
        await session.commit()

        assert await _defaults(session_factory, user.id) == ["Second"]

    async def test_set_default_is_exclusive(self, session, session_factory, user, make_theme):
        await make_theme(user, name="Ocean", is_default=True)
        forest = await make_theme(user, name="Forest")

        await theme_service.set_default_theme(session, forest)
        await session.commit()

        assert await _defaults(session_factory, user.id) == ["Forest"]

    async def test_resolve_falls_back_to_built_in(self, session, user):
        theme = await theme_service.resolve_active_theme(session, user.id)

        assert theme == theme_service.DEFAULT_THEME
        assert theme.id is None
        assert theme.background_color == "#000000"

    async def test_deleting_default_falls_back(self, session, user, make_theme):
        ocean = await make_theme(user, name="Ocean", is_default=True)

        await theme_service.delete_theme(session, ocean)
        await session.commit()

        assert await theme_service.resolve_active_theme(session, user.id) == theme_service.DEFAULT_THEME

    async def test_second_default_row_is_rejected(self, session, user, make_theme):
        await make_theme(user, name="Ocean", is_default=True)

        with pytest.raises(IntegrityError):
            await make_theme(user, name="Forest", is_default=True)
        await session.rollback()

    async def test_racing_default_is_a_conflict(self, session, session_factory, user, make_theme, monkeypatch):
        user_id = user.id
        await make_theme(user, name="Ocean", is_default=True)

        # A concurrent request commits its default after the clear has run
        async def cleared_too_early(*args, **kwargs):
            return None

        monkeypatch.setattr(theme_service, "_clear_default", cleared_too_early)

        with pytest.raises(Conflict) as exc_info:
            await theme_service.create_theme(session, user_id, _theme_data("Forest", is_default=True))
        await session.rollback()

        assert exc_info.value.code == "DEFAULT_THEME_CONFLICT"
        assert await _defaults(session_factory, user_id) == ["Ocean"]
