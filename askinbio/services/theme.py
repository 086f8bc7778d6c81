"""Theme service: CRUD and the exclusive default toggle."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.exceptions import Conflict
from askinbio.models.theme import Theme
from askinbio.schemas.theme import ThemeCreate, ThemeResponse, ThemeUpdate

# Used when a user has no theme marked default
DEFAULT_THEME = ThemeResponse(
    name="Default Theme",
    primary_color="#B8FFE3",
    secondary_color="#1F2937",
    background_color="#000000",
    text_color="#FFFFFF",
    font_family="Work Sans",
    button_style="rounded",
    is_default=True,
)


async def get_user_themes(session: AsyncSession, user_id: UUID) -> list[Theme]:
    result = await session.execute(
        select(Theme).where(Theme.user_id == user_id).order_by(Theme.created_at.desc())
    )
    return list(result.scalars().all())


async def get_theme_by_id(
    session: AsyncSession,
    theme_id: UUID,
    user_id: UUID | None = None,
) -> Theme | None:
    query = select(Theme).where(Theme.id == theme_id)
    if user_id:
        query = query.where(Theme.user_id == user_id)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_default_theme(session: AsyncSession, user_id: UUID) -> Theme | None:
    """The user's theme marked default, if any."""
    result = await session.execute(
        select(Theme)
        .where(Theme.user_id == user_id, Theme.is_default == True)  # noqa: E712
        .order_by(Theme.updated_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def resolve_active_theme(session: AsyncSession, user_id: UUID) -> ThemeResponse:
    """The user's default theme, or ``DEFAULT_THEME`` when none is marked."""
    theme = await get_default_theme(session, user_id)
    if theme is None:
        return DEFAULT_THEME
    return ThemeResponse.model_validate(theme)


async def _clear_default(session: AsyncSession, user_id: UUID, keep: UUID | None = None) -> None:
    stmt = (
        update(Theme)
        .where(Theme.user_id == user_id, Theme.is_default == True)  # noqa: E712
        .values(is_default=False)
        .execution_options(synchronize_session=False)
    )
    if keep is not None:
        stmt = stmt.where(Theme.id != keep)
    await session.execute(stmt)


async def _flush_default(session: AsyncSession) -> None:
    # The partial unique index catches a default set by a concurrent request
    try:
        await session.flush()
    except IntegrityError as e:
        raise Conflict("Another theme was made default at the same time", code="DEFAULT_THEME_CONFLICT") from e


async def create_theme(
    session: AsyncSession,
    user_id: UUID,
    theme_data: ThemeCreate,
) -> Theme:
    """Create a theme. The user's first theme becomes the default."""
    existing = await get_user_themes(session, user_id)
    is_default = theme_data.is_default or not existing
    if is_default:
        await _clear_default(session, user_id)

    theme = Theme(user_id=user_id, **theme_data.model_dump(exclude={"is_default"}), is_default=is_default)
    session.add(theme)
    await _flush_default(session)
    await session.refresh(theme)
    return theme


async def update_theme(
    session: AsyncSession,
    theme: Theme,
    theme_data: ThemeUpdate,
) -> Theme:
    update_data = theme_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(theme, field, value)
    await session.flush()
    await session.refresh(theme)
    return theme


async def set_default_theme(session: AsyncSession, theme: Theme) -> Theme:
    """Make ``theme`` the user's only default theme."""
    await _clear_default(session, theme.user_id, keep=theme.id)
    theme.is_default = True
    await _flush_default(session)
    await session.refresh(theme)
    return theme


async def delete_theme(session: AsyncSession, theme: Theme) -> None:
    await session.delete(theme)
    await session.flush()
