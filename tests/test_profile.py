"""Profile aggregation and link ordering."""

from uuid import uuid4

import pytest

from askinbio.core.exceptions import Forbidden, NotFound
from askinbio.schemas.link import LinkCreate
from askinbio.services import link_service, profile_service
from askinbio.services.theme import DEFAULT_THEME


class TestGetProfile:
    async def test_links_in_ascending_order(self, session, user, make_link):
        await make_link(user, title="Third", order=2)
        await make_link(user, title="First", order=0)
        await make_link(user, title="Second", order=1)

        profile = await profile_service.get_profile(session, user.id)

        assert [link.title for link in profile.links] == ["First", "Second", "Third"]
        assert profile.user.username == "ada"

    async def test_no_links_gives_empty_list(self, session, user):
        profile = await profile_service.get_profile(session, user.id)

        assert profile.links == []

    async def test_fallback_theme_without_default(self, session, user, make_theme):
        await make_theme(user, is_default=False)

        profile = await profile_service.get_profile(session, user.id)

        assert profile.theme == DEFAULT_THEME
        assert profile.theme.primary_color == "#B8FFE3"
        assert profile.theme.font_family == "Work Sans"

    async def test_uses_default_theme(self, session, user, make_theme):
        await make_theme(user, name="Plain")
        await make_theme(user, name="Ocean", is_default=True)

        profile = await profile_service.get_profile(session, user.id)

        assert profile.theme.name == "Ocean"
        assert profile.theme.button_style == "pill"

    async def test_unknown_user(self, session):
        with pytest.raises(NotFound):
            await profile_service.get_profile(session, uuid4())

    async def test_inactive_links_kept_for_owner(self, session, user, make_link):
        await make_link(user, title="Hidden", is_active=False)

        profile = await profile_service.get_profile(session, user.id)

        assert [link.title for link in profile.links] == ["Hidden"]


class TestGetPublicProfile:
    async def test_hides_inactive_links(self, session, user, make_link):
        await make_link(user, title="Visible", order=0)
        await make_link(user, title="Hidden", order=1, is_active=False)

        profile = await profile_service.get_public_profile(session, "ada")

        assert [link.title for link in profile.links] == ["Visible"]

    async def test_unknown_username(self, session):
        with pytest.raises(NotFound):
            await profile_service.get_public_profile(session, "nobody")


class TestReorderLinks:
    async def test_reorder_is_reflected_in_profile(self, session, user, make_link):
        a = await make_link(user, title="A", order=0)
        b = await make_link(user, title="B", order=1)
        c = await make_link(user, title="C", order=2)

        await link_service.reorder_links(session, user.id, [c.id, a.id, b.id])
        await session.commit()

        profile = await profile_service.get_profile(session, user.id)
        assert [link.title for link in profile.links] == ["C", "A", "B"]
        assert [link.order for link in profile.links] == [0, 1, 2]

    async def test_foreign_link_is_forbidden(self, session, user, make_link):
        mine = await make_link(user)

        with pytest.raises(Forbidden):
            await link_service.reorder_links(session, user.id, [mine.id, uuid4()])

    async def test_new_link_goes_last(self, session, user, make_link):
        await make_link(user, title="A", order=0)
        await make_link(user, title="B", order=4)

        link = await link_service.create_link(
            session,
            user.id,
            LinkCreate(title="C", url="https://example.com/c"),
        )

        assert link.order == 5
        assert link.url == "https://example.com/c"
