"""Read-side click analytics for a user's dashboard."""

from datetime import date, datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.models.click import ClickEvent
from askinbio.models.link import Link
from askinbio.schemas.analytics import ClickAnalytics, DailyClicks, LinkClicks


def _day_key(value: date | datetime | str) -> str:
    # date() comes back as a string on SQLite and a date on PostgreSQL
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


async def get_click_analytics(
    session: AsyncSession,
    user_id: UUID,
    days: int = 30,
    now: datetime | None = None,
) -> ClickAnalytics:
    """Aggregate a user's click events over the last ``days`` days.

    Returns totals, per-link counts with their share of the total, counts by
    country and device, and a zero-filled per-day series in ascending order.
    """
    current = now or datetime.now(timezone.utc)
    today = current.date()
    start_day = today - timedelta(days=days - 1)
    start_time = datetime.combine(start_day, datetime.min.time())

    window = (
        select(ClickEvent)
        .join(Link, Link.id == ClickEvent.link_id)
        .where(Link.user_id == user_id, ClickEvent.clicked_at >= start_time)
        .subquery()
    )

    by_link_result = await session.execute(
        select(Link.id, Link.title, func.count(window.c.id).label("clicks"))
        .join(window, window.c.link_id == Link.id)
        .group_by(Link.id, Link.title)
    )
    by_link_rows = by_link_result.all()
    total_clicks = sum(row.clicks for row in by_link_rows)

    clicks_by_link = [
        LinkClicks(
            link_id=str(row.id),
            title=row.title,
            clicks=row.clicks,
            percentage=int(row.clicks * 100 / total_clicks + 0.5) if total_clicks else 0,
        )
        for row in by_link_rows
    ]
    clicks_by_link.sort(key=lambda item: item.clicks, reverse=True)

    country_result = await session.execute(
        select(window.c.country, func.count().label("clicks"))
        .where(window.c.country.isnot(None))
        .group_by(window.c.country)
    )
    device_result = await session.execute(
        select(window.c.device_type, func.count().label("clicks"))
        .where(window.c.device_type.isnot(None))
        .group_by(window.c.device_type)
    )

    day_column = func.date(window.c.clicked_at)
    day_result = await session.execute(
        select(day_column.label("day"), func.count().label("clicks")).group_by(day_column)
    )

    daily = {(start_day + timedelta(days=i)).isoformat(): 0 for i in range(days)}
    for row in day_result.all():
        key = _day_key(row.day)
        if key in daily:
            daily[key] += row.clicks

    return ClickAnalytics(
        total_clicks=total_clicks,
        clicks_by_link=clicks_by_link,
        clicks_by_country={row.country: row.clicks for row in country_result.all()},
        clicks_by_device={row.device_type: row.clicks for row in device_result.all()},
        clicks_by_day=[DailyClicks(date=day, clicks=clicks) for day, clicks in sorted(daily.items())],
    )
