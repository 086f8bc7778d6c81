"""Click tracking: event recording, counter updates and reconciliation."""

import asyncio
import time
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.config import get_settings
from askinbio.core.exceptions import RecordError
from askinbio.core.observability import record_click, record_click_failed
from askinbio.models.click import ClickEvent
from askinbio.models.link import Link
from askinbio.schemas.analytics import ClickContext, TrackClickResult
from askinbio.services.geoip import GeoIPService, detect_device_type, get_geoip_service

logger = structlog.get_logger()

TRACK_CLICK_ERROR = "Failed to track click"


async def _rollback(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except SQLAlchemyError as e:
        logger.warning("Rollback after failed click failed", error=str(e))


async def increment_click_count(session: AsyncSession, link_id: UUID) -> bool:
    """Add one to a link's click counter.

    The increment is a relative ``clicks = clicks + 1`` evaluated by the
    datastore, so concurrent clicks never overwrite each other.

    Returns:
        True if a link row was updated, False if the link does not exist.
    """
    result = await session.execute(
        update(Link)
        .where(Link.id == link_id)
        .values(clicks=Link.clicks + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


class ClickRecorder:
    """Persists click events and keeps link counters in step.

    One call writes the counter increment and the ClickEvent row in a single
    transaction. Delivery is at-most-once: a failed call is reported as a
    ``RecordError`` and never retried.

    Usage:
        recorder = ClickRecorder(timeout=2.0)
        await recorder.record_click(session, link_id, ClickContext(country="NO"))
    """

    def __init__(
        self,
        timeout: float | None = None,
        geoip: GeoIPService | None = None,
    ):
        self._timeout = timeout if timeout is not None else get_settings().click_record_timeout
        self._geoip = geoip

    def _build_event(self, link_id: UUID, context: ClickContext) -> ClickEvent:
        # Caller values are free-form; clip them to the column widths
        country = context.country[:100] if context.country else None
        device = context.device[:50] if context.device else detect_device_type(context.user_agent)
        city = None
        if country is None:
            geoip = self._geoip or get_geoip_service()
            location = geoip.lookup(context.ip_address)
            country, city = location.country, location.city

        return ClickEvent(
            link_id=link_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            referrer=context.referrer,
            country=country,
            city=city,
            device_type=device,
        )

    async def _persist(self, session: AsyncSession, link_id: UUID, context: ClickContext) -> None:
        if not await increment_click_count(session, link_id):
            raise RecordError(f"Link {link_id} not found", code="LINK_NOT_FOUND")
        session.add(self._build_event(link_id, context))
        await session.commit()

    async def record_click(
        self,
        session: AsyncSession,
        link_id: UUID,
        context: ClickContext | None = None,
    ) -> None:
        """Record one click on a link.

        Raises:
            RecordError: the link does not exist, the datastore failed, or
                the write did not finish within the configured timeout.
        """
        context = context or ClickContext()
        start_time = time.perf_counter()

        try:
            await asyncio.wait_for(self._persist(session, link_id, context), self._timeout)
        except RecordError:
            await _rollback(session)
            record_click_failed("not_found")
            raise
        except asyncio.TimeoutError as e:
            await _rollback(session)
            record_click_failed("timeout")
            raise RecordError("Timed out recording click", code="RECORD_TIMEOUT") from e
        except SQLAlchemyError as e:
            await _rollback(session)
            record_click_failed("datastore")
            raise RecordError(str(e), code="DATASTORE_ERROR") from e

        duration = time.perf_counter() - start_time
        record_click(duration)
        logger.debug(
            "Click recorded",
            link_id=str(link_id),
            duration_ms=round(duration * 1000, 2),
        )


async def track_click(
    session: AsyncSession,
    link_id: str | UUID,
    context: ClickContext | None = None,
    recorder: ClickRecorder | None = None,
) -> TrackClickResult:
    """Record a click on behalf of a caller that must never see an error.

    Returns ``{"success": True}`` or ``{"success": False, "error": ...}``.
    Failures are logged and counted; nothing propagates to the caller.
    """
    try:
        parsed_id = link_id if isinstance(link_id, UUID) else UUID(str(link_id))
    except ValueError:
        logger.warning("Failed to track click", link_id=str(link_id), error="invalid link id")
        record_click_failed("not_found")
        return TrackClickResult(success=False, error=TRACK_CLICK_ERROR)

    recorder = recorder or ClickRecorder()
    try:
        await recorder.record_click(session, parsed_id, context)
    except RecordError as e:
        logger.warning(
            "Failed to track click",
            link_id=str(parsed_id),
            code=e.code,
            error=e.message,
        )
        return TrackClickResult(success=False, error=TRACK_CLICK_ERROR)
    return TrackClickResult(success=True)


async def reconcile_click_counts(session: AsyncSession, user_id: UUID | None = None) -> int:
    """Reset link counters to the number of recorded click events.

    The counter is a cache of the event log; this recomputes it in one
    statement for every link (or one user's links) whose counter drifted.

    Returns:
        Number of links corrected.
    """
    event_count = (
        select(func.count(ClickEvent.id))
        .where(ClickEvent.link_id == Link.id)
        .correlate(Link)
        .scalar_subquery()
    )
    stmt = (
        update(Link)
        .where(Link.clicks != event_count)
        .values(clicks=event_count)
        .execution_options(synchronize_session=False)
    )
    if user_id is not None:
        stmt = stmt.where(Link.user_id == user_id)

    result = await session.execute(stmt)
    await session.commit()

    corrected = result.rowcount or 0
    logger.info(
        "Click counters reconciled",
        user_id=str(user_id) if user_id else None,
        links_corrected=corrected,
    )
    return corrected
