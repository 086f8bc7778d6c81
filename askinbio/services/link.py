"""Link service for database operations and ordering."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.exceptions import Forbidden
from askinbio.models.link import Link
from askinbio.schemas.link import LinkCreate, LinkUpdate


async def get_link_by_id(
    session: AsyncSession,
    link_id: UUID,
    user_id: UUID | None = None,
) -> Link | None:
    """Get a link by its ID, optionally filtering by user."""
    query = select(Link).where(Link.id == link_id)
    if user_id:
        query = query.where(Link.user_id == user_id)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_user_links(
    session: AsyncSession,
    user_id: UUID,
    include_inactive: bool = True,
) -> list[Link]:
    """Get a user's links in display order."""
    query = select(Link).where(Link.user_id == user_id)
    if not include_inactive:
        query = query.where(Link.is_active == True)  # noqa: E712
    query = query.order_by(Link.order.asc(), Link.created_at.asc())

    result = await session.execute(query)
    return list(result.scalars().all())


async def next_order(session: AsyncSession, user_id: UUID) -> int:
    """Position after the user's last link (0 for the first link)."""
    result = await session.execute(
        select(func.max(Link.order)).where(Link.user_id == user_id)
    )
    last = result.scalar()
    return 0 if last is None else last + 1


async def create_link(
    session: AsyncSession,
    user_id: UUID,
    link_data: LinkCreate,
) -> Link:
    """Create a new link, appended after the last one unless an order is given."""
    order = link_data.order
    if order is None:
        order = await next_order(session, user_id)

    link = Link(
        user_id=user_id,
        title=link_data.title,
        url=str(link_data.url),
        description=link_data.description,
        icon=link_data.icon,
        order=order,
    )
    session.add(link)
    await session.flush()
    await session.refresh(link)
    return link


async def update_link(
    session: AsyncSession,
    link: Link,
    link_data: LinkUpdate,
) -> Link:
    """Update an existing link.

    ``clicks`` is not part of ``LinkUpdate``; counters only move through
    the click recorder and reconciliation.
    """
    update_data = link_data.model_dump(exclude_unset=True)
    if "url" in update_data and update_data["url"] is not None:
        update_data["url"] = str(update_data["url"])
    for field, value in update_data.items():
        setattr(link, field, value)
    await session.flush()
    await session.refresh(link)
    return link


async def delete_link(session: AsyncSession, link: Link) -> None:
    """Delete a link and its click events."""
    await session.delete(link)
    await session.flush()


async def toggle_link_status(session: AsyncSession, link: Link) -> Link:
    """Flip a link between active and inactive."""
    link.is_active = not link.is_active
    await session.flush()
    await session.refresh(link)
    return link


async def reorder_links(
    session: AsyncSession,
    user_id: UUID,
    link_ids: list[UUID],
) -> list[Link]:
    """Set each link's order to its index in ``link_ids``.

    Raises:
        Forbidden: if any id is not one of the user's links.
    """
    owned = {link.id: link for link in await get_user_links(session, user_id)}
    if not set(link_ids) <= owned.keys():
        raise Forbidden("Invalid link IDs")

    for index, link_id in enumerate(link_ids):
        owned[link_id].order = index
    await session.flush()
    return await get_user_links(session, user_id)
