"""Session accessor: refresh-then-fallback and auth event subscriptions."""

from uuid import uuid4

import pytest
from jose import jwt

from askinbio.core.exceptions import UpstreamError
from askinbio.core.security import decode_access_token
from askinbio.services.session import (
    AuthEvent,
    AuthEventChannel,
    SessionAccessor,
    SessionState,
)

from .conftest import make_access_token, session_payload


def _accessor(auth_client, access_token, refresh_token="refresh-token", events=None):
    return SessionAccessor(auth_client, access_token, refresh_token, events=events)


class TestGetSession:
    async def test_no_cookie_is_signed_out(self, auth_client):
        assert await _accessor(auth_client, None).get_session() is None

    async def test_garbage_token_is_signed_out(self, auth_client):
        assert await _accessor(auth_client, "not-a-jwt").get_session() is None

    async def test_far_from_expiry_is_used_as_is(self, auth_client, provider):
        token = make_access_token(uuid4(), expires_in=3600)

        check = await _accessor(auth_client, token).get_session()

        assert check.state is SessionState.VALID
        assert check.session.access_token == token
        assert provider.requests == []

    async def test_near_expiry_refreshes(self, auth_client, provider):
        user_id = uuid4()
        fresh = session_payload(user_id)
        provider.on("POST", "/auth/v1/token", lambda request: (200, fresh), grant_type="refresh_token")
        events = AuthEventChannel()
        received = []
        events.subscribe(lambda event, session: received.append(event))

        check = await _accessor(
            auth_client,
            make_access_token(user_id, expires_in=120),
            refresh_token="old-refresh",
            events=events,
        ).get_session()

        assert check.state is SessionState.REFRESHED
        assert check.refreshed is True
        assert check.session.access_token == fresh["access_token"]
        assert provider.body(provider.requests[0]) == {"refresh_token": "old-refresh"}
        assert received == [AuthEvent.TOKEN_REFRESHED]

    async def test_refresh_failure_keeps_still_valid_session(self, auth_client, provider):
        provider.on(
            "POST",
            "/auth/v1/token",
            lambda request: (400, {"error_description": "Invalid Refresh Token"}),
            grant_type="refresh_token",
        )
        token = make_access_token(uuid4(), expires_in=120)

        check = await _accessor(auth_client, token).get_session()

        assert check.state is SessionState.STILL_VALID
        assert check.refreshed is False
        assert check.session.access_token == token
        assert 0 < check.session.expires_in < 300

    async def test_refresh_outage_keeps_still_valid_session(self, auth_client, provider):
        provider.on("POST", "/auth/v1/token", lambda request: (503, {}), grant_type="refresh_token")
        token = make_access_token(uuid4(), expires_in=60)

        check = await _accessor(auth_client, token).get_session()

        assert check.state is SessionState.STILL_VALID

    async def test_expired_and_not_refreshable(self, auth_client, provider):
        provider.on("POST", "/auth/v1/token", lambda request: (400, {"msg": "expired"}), grant_type="refresh_token")
        token = make_access_token(uuid4(), expires_in=-10)

        assert await _accessor(auth_client, token).get_session() is None

    async def test_expired_without_refresh_token(self, auth_client, provider):
        token = make_access_token(uuid4(), expires_in=-10)

        assert await _accessor(auth_client, token, refresh_token=None).get_session() is None
        assert provider.requests == []

    async def test_result_is_memoized(self, auth_client, provider):
        provider.on(
            "POST",
            "/auth/v1/token",
            lambda request: (200, session_payload(uuid4())),
            grant_type="refresh_token",
        )
        accessor = _accessor(auth_client, make_access_token(uuid4(), expires_in=10))

        first = await accessor.get_session()
        second = await accessor.get_session()

        assert first is second
        assert len(provider.requests) == 1


class TestGetCurrentUser:
    async def test_returns_provider_user(self, auth_client, provider):
        user_id = uuid4()
        token = provider.add_user(user_id, "ada@example.com")

        user = await _accessor(auth_client, token).get_current_user()

        assert user.id == str(user_id)
        assert user.email == "ada@example.com"

    async def test_rejected_token_is_signed_out(self, auth_client):
        token = make_access_token(uuid4())

        assert await _accessor(auth_client, token).get_current_user() is None

    async def test_provider_outage_propagates(self, auth_client, provider):
        provider.on("GET", "/auth/v1/user", lambda request: (500, {}))

        with pytest.raises(UpstreamError):
            await _accessor(auth_client, make_access_token(uuid4())).get_current_user()


class TestAuthEventChannel:
    async def test_unsubscribe_stops_delivery(self):
        channel = AuthEventChannel()
        received = []
        subscription = channel.subscribe(lambda event, session: received.append(event))

        await channel.publish(AuthEvent.SIGNED_IN)
        subscription.unsubscribe()
        await channel.publish(AuthEvent.SIGNED_OUT)

        assert received == [AuthEvent.SIGNED_IN]
        assert channel.subscriber_count == 0

    async def test_unsubscribe_twice_is_harmless(self):
        channel = AuthEventChannel()
        subscription = channel.subscribe(lambda event, session: None)

        subscription.unsubscribe()
        subscription.unsubscribe()

        assert channel.subscriber_count == 0

    async def test_async_subscribers_are_awaited(self):
        channel = AuthEventChannel()
        received = []

        async def on_change(event, session):
            received.append((event, session))

        channel.subscribe(on_change)
        await channel.publish(AuthEvent.USER_UPDATED, None)

        assert received == [(AuthEvent.USER_UPDATED, None)]

    async def test_failing_subscriber_does_not_block_others(self):
        channel = AuthEventChannel()
        received = []

        def broken(event, session):
            raise RuntimeError("boom")

        channel.subscribe(broken)
        channel.subscribe(lambda event, session: received.append(event))

        await channel.publish(AuthEvent.SIGNED_OUT)

        assert received == [AuthEvent.SIGNED_OUT]

    async def test_subscribers_keep_their_own_state(self, auth_client):
        accessor = _accessor(auth_client, None)
        first, second = [], []
        accessor.subscribe(lambda event, session: first.append(event))
        sub = accessor.subscribe(lambda event, session: second.append(event))

        await accessor.events.publish(AuthEvent.SIGNED_IN)
        sub.unsubscribe()
        await accessor.events.publish(AuthEvent.SIGNED_OUT)

        assert first == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]
        assert second == [AuthEvent.SIGNED_IN]


class TestDecodeAccessToken:
    def test_reads_claims(self):
        user_id = uuid4()
        claims = decode_access_token(make_access_token(user_id, email="ada@example.com"))

        assert claims.sub == str(user_id)
        assert claims.email == "ada@example.com"
        assert 3590 < claims.expires_in() <= 3600

    def test_wrong_secret_is_rejected(self):
        token = jwt.encode({"sub": "x", "exp": 9999999999, "aud": "authenticated"}, "other-secret", algorithm="HS256")

        assert decode_access_token(token) is None
