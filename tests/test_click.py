"""Click recording, counter updates, tracking and reconciliation."""

import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.core.exceptions import RecordError
from askinbio.models import ClickEvent, Link, User
from askinbio.schemas.analytics import ClickContext
from askinbio.services.click import (
    TRACK_CLICK_ERROR,
    ClickRecorder,
    increment_click_count,
    reconcile_click_counts,
    track_click,
)
from askinbio.services.geoip import GeoIPService


@pytest.fixture
def recorder() -> ClickRecorder:
    # No GeoIP database: lookups come back empty
    return ClickRecorder(timeout=10.0, geoip=GeoIPService(""))


async def _clicks(session_factory, link_id) -> int:
    async with session_factory() as s:
        return (await s.execute(select(Link.clicks).where(Link.id == link_id))).scalar_one()


async def _event_count(session_factory, link_id) -> int:
    async with session_factory() as s:
        result = await s.execute(select(func.count(ClickEvent.id)).where(ClickEvent.link_id == link_id))
        return result.scalar_one()


class TestIncrementClickCount:
    async def test_increments_by_one(self, session, session_factory, user, make_link):
        link = await make_link(user)

        assert await increment_click_count(session, link.id) is True
        await session.commit()

        assert await _clicks(session_factory, link.id) == 1

    async def test_unknown_link(self, session):
        assert await increment_click_count(session, uuid4()) is False


class TestClickRecorder:
    async def test_single_click_adds_one_event_and_one_count(
        self, session, session_factory, user, make_link, recorder
    ):
        link = await make_link(user)

        await recorder.record_click(
            session,
            link.id,
            ClickContext(country="NO", device="mobile", ip_address="10.0.0.1", referrer="https://t.co"),
        )

        assert await _clicks(session_factory, link.id) == 1
        async with session_factory() as s:
            event = (await s.execute(select(ClickEvent).where(ClickEvent.link_id == link.id))).scalar_one()
        assert event.country == "NO"
        assert event.device_type == "mobile"
        assert event.referrer == "https://t.co"
        assert event.clicked_at is not None

    async def test_device_derived_from_user_agent(self, session, session_factory, user, make_link, recorder):
        link = await make_link(user)
        ua = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"

        await recorder.record_click(session, link.id, ClickContext(user_agent=ua))

        async with session_factory() as s:
            event = (await s.execute(select(ClickEvent).where(ClickEvent.link_id == link.id))).scalar_one()
        assert event.device_type == "mobile"
        assert event.country is None

    async def test_missing_link_raises_record_error(self, session, recorder):
        with pytest.raises(RecordError) as exc_info:
            await recorder.record_click(session, uuid4())
        assert exc_info.value.code == "LINK_NOT_FOUND"

    async def test_datastore_failure_raises_record_error(
        self, session, session_factory, user, make_link, recorder, monkeypatch
    ):
        link = await make_link(user)
        link_id = link.id

        async def failing_commit(self):
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)

        with pytest.raises(RecordError) as exc_info:
            await recorder.record_click(session, link_id)
        assert exc_info.value.code == "DATASTORE_ERROR"
        assert await _clicks(session_factory, link_id) == 0
        assert await _event_count(session_factory, link_id) == 0

    async def test_timeout_raises_record_error(self, session, user, make_link, monkeypatch):
        link = await make_link(user)
        slow_recorder = ClickRecorder(timeout=0.01, geoip=GeoIPService(""))

        async def slow_persist(*args, **kwargs):
            await asyncio.sleep(1)

        monkeypatch.setattr(slow_recorder, "_persist", slow_persist)

        with pytest.raises(RecordError) as exc_info:
            await slow_recorder.record_click(session, link.id)
        assert exc_info.value.code == "RECORD_TIMEOUT"

    async def test_concurrent_clicks_are_not_lost(self, session_factory, user, make_link, recorder):
        link = await make_link(user)
        attempts = 20

        async def click() -> bool:
            async with session_factory() as s:
                try:
                    await recorder.record_click(s, link.id)
                except RecordError:
                    return False
                return True

        results = await asyncio.gather(*(click() for _ in range(attempts)))
        successes = sum(results)

        assert successes > 0
        assert await _clicks(session_factory, link.id) == successes
        assert await _event_count(session_factory, link.id) == successes

    async def test_two_clicks_and_one_on_deleted_link(self, session_factory, user, make_link, recorder):
        first = await make_link(user, title="L1")
        deleted = await make_link(user, title="Gone", order=1)
        async with session_factory() as s:
            await s.delete(await s.get(Link, deleted.id))
            await s.commit()

        errors = []
        for link_id in (first.id, deleted.id, first.id):
            async with session_factory() as s:
                try:
                    await recorder.record_click(s, link_id)
                except RecordError as e:
                    errors.append(e)

        assert await _clicks(session_factory, first.id) == 2
        assert await _event_count(session_factory, first.id) == 2
        assert len(errors) == 1


class TestTrackClick:
    async def test_success(self, session, session_factory, user, make_link, recorder):
        link = await make_link(user)

        result = await track_click(session, str(link.id), recorder=recorder)

        assert result.success is True
        assert result.error is None
        assert await _clicks(session_factory, link.id) == 1

    async def test_unknown_link_reports_failure(self, session, recorder):
        result = await track_click(session, str(uuid4()), recorder=recorder)

        assert result.success is False
        assert result.error == TRACK_CLICK_ERROR

    async def test_malformed_id_reports_failure(self, session, recorder):
        result = await track_click(session, "not-a-uuid", recorder=recorder)

        assert result.model_dump() == {"success": False, "error": TRACK_CLICK_ERROR}


class TestReconcileClickCounts:
    async def test_resets_drifted_counters(self, session, session_factory, user, make_link, recorder):
        drifted = await make_link(user, title="Drifted")
        accurate = await make_link(user, title="Accurate", order=1)
        for link_id in (drifted.id, drifted.id, accurate.id):
            async with session_factory() as s:
                await recorder.record_click(s, link_id)

        await session.execute(update(Link).where(Link.id == drifted.id).values(clicks=7))
        await session.commit()

        corrected = await reconcile_click_counts(session)

        assert corrected == 1
        assert await _clicks(session_factory, drifted.id) == 2
        assert await _clicks(session_factory, accurate.id) == 1

    async def test_scoped_to_user(self, session, session_factory, user, make_link):
        mine = await make_link(user, clicks=3)
        other = User(id=uuid4(), email="grace@example.com", username="grace")
        session.add(other)
        await session.commit()
        theirs = await make_link(other, clicks=5)

        corrected = await reconcile_click_counts(session, user_id=user.id)

        assert corrected == 1
        assert await _clicks(session_factory, mine.id) == 0
        assert await _clicks(session_factory, theirs.id) == 5
