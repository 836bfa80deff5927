"""
Unit tests for the realtime hub -- the connect / disconnect lifecycle and
the full two-user scenario, driven through the hub exactly as the
Socket.IO handlers drive it.
"""

import asyncio

import pytest

from devconnect.realtime.authGate import MissingCredential, UnknownOrInactiveUser
from devconnect.realtime.connectionRegistry import SessionState
from devconnect.realtime.eventDispatcher import (
    EVENT_ERROR,
    EVENT_MESSAGE_SENT,
    EVENT_RECEIVE_MESSAGE,
)
from devconnect.realtime.presenceBroadcaster import (
    EVENT_ONLINE_USERS,
    EVENT_USER_OFFLINE,
    EVENT_USER_ONLINE,
)
from devconnect.services.auth_service import create_access_token
from tests.conftest import auth_for


class TestConnect:

    @pytest.mark.asyncio
    async def test_connect_registers_and_activates(self, hub, alice):
        session = await hub.connect("a1", auth_for(alice))

        assert session.state == SessionState.ACTIVE
        assert session.identity == alice
        assert hub.registry.is_online(alice.user_id)
        assert hub.router.resolve_user(alice.user_id) == frozenset({"a1"})

    @pytest.mark.asyncio
    async def test_rejected_connect_leaves_no_trace(self, hub, emitter):
        with pytest.raises(MissingCredential):
            await hub.connect("x1", {})
        assert len(hub.registry) == 0
        assert hub.router.rooms_of("x1") == frozenset()
        assert emitter.sent == []

    @pytest.mark.asyncio
    async def test_deactivated_user_is_refused(self, hub, users, alice):
        token = auth_for(alice)
        del users.users[alice.user_id]
        with pytest.raises(UnknownOrInactiveUser):
            await hub.connect("a1", token)
        assert not hub.registry.is_online(alice.user_id)

    @pytest.mark.asyncio
    async def test_repeated_connect_for_same_sid_is_idempotent(self, hub, emitter, alice):
        first = await hub.connect("a1", auth_for(alice))
        emitter.clear()
        second = await hub.connect("a1", auth_for(alice))

        assert second is first
        assert len(hub.registry) == 1
        assert emitter.sent == []

    @pytest.mark.asyncio
    async def test_second_tab_does_not_announce_online_again(self, hub, emitter, alice, bob):
        await hub.connect("b1", auth_for(bob))
        await hub.connect("a1", auth_for(alice))
        await hub.connect("a2", auth_for(alice))

        online_for_alice = [
            data for _, data in emitter.of(EVENT_USER_ONLINE) if data["userId"] == alice.user_id
        ]
        assert len(online_for_alice) == 1


class TestDisconnect:

    @pytest.mark.asyncio
    async def test_unknown_sid_is_a_noop(self, hub, emitter):
        await hub.disconnect("never-seen")
        assert emitter.sent == []

    @pytest.mark.asyncio
    async def test_duplicate_disconnect_broadcasts_once(self, hub, emitter, alice, bob):
        await hub.connect("a1", auth_for(alice))
        await hub.connect("b1", auth_for(bob))
        emitter.clear()

        await hub.disconnect("b1")
        await hub.disconnect("b1")

        assert len(emitter.of(EVENT_USER_OFFLINE)) == 1

    @pytest.mark.asyncio
    async def test_disconnect_drops_topic_memberships(self, hub, alice):
        await hub.connect("a1", auth_for(alice))
        await hub.handle("a1", "join_topic", {"topic": "call-1"})

        await hub.disconnect("a1")

        assert hub.router.resolve_topic("call-1") == frozenset()
        assert hub.router.resolve_user(alice.user_id) == frozenset()

    @pytest.mark.asyncio
    async def test_other_tab_survives(self, hub, emitter, alice, bob):
        await hub.connect("a1", auth_for(alice))
        await hub.connect("a2", auth_for(alice))
        await hub.connect("b1", auth_for(bob))
        emitter.clear()

        await hub.disconnect("a1")

        assert hub.registry.is_online(alice.user_id)
        assert emitter.sent == []

    @pytest.mark.asyncio
    async def test_events_from_a_disconnected_sid_are_refused(self, hub, emitter, alice, bob):
        await hub.connect("a1", auth_for(alice))
        await hub.disconnect("a1")
        emitter.clear()

        ack = await hub.handle("a1", "send_message", {"receiverId": bob.user_id, "content": "late"})

        assert ack["ok"] is False
        assert emitter.events_for("a1") == [EVENT_ERROR]


class TestDisconnectDuringAuthentication:
    """The transport closes while the user lookup is still in flight."""

    @staticmethod
    def _hold_lookup(users, monkeypatch) -> asyncio.Event:
        release = asyncio.Event()
        lookup = users.find_active_user

        async def _held(user_id):
            await release.wait()
            return await lookup(user_id)

        monkeypatch.setattr(users, "find_active_user", _held)
        return release

    @pytest.mark.asyncio
    async def test_connect_is_abandoned(self, hub, users, emitter, monkeypatch, alice, bob):
        await hub.connect("b1", auth_for(bob))
        emitter.clear()
        release = self._hold_lookup(users, monkeypatch)

        pending = asyncio.create_task(hub.connect("a1", auth_for(alice)))
        await asyncio.sleep(0)
        await hub.disconnect("a1")
        release.set()

        assert await pending is None
        assert not hub.registry.is_online(alice.user_id)
        assert hub.registry.get_session("a1") is None
        assert hub.router.resolve_user(alice.user_id) == frozenset()
        assert emitter.sent == []

    @pytest.mark.asyncio
    async def test_sid_can_connect_again_afterwards(self, hub, users, monkeypatch, alice):
        release = self._hold_lookup(users, monkeypatch)
        pending = asyncio.create_task(hub.connect("a1", auth_for(alice)))
        await asyncio.sleep(0)
        await hub.disconnect("a1")
        release.set()
        await pending

        session = await hub.connect("a1", auth_for(alice))

        assert session.state == SessionState.ACTIVE
        assert hub.registry.is_online(alice.user_id)

    @pytest.mark.asyncio
    async def test_disconnect_after_failed_authentication_is_forgotten(self, hub, alice):
        with pytest.raises(MissingCredential):
            await hub.connect("a1", {})
        await hub.disconnect("a1")

        session = await hub.connect("a1", auth_for(alice))

        assert session is not None
        assert hub.registry.is_online(alice.user_id)


class TestTwoUserScenario:
    """A connects, B connects, A messages B, B leaves."""

    @pytest.mark.asyncio
    async def test_full_flow(self, hub, emitter, alice, bob):
        await hub.connect("a1", auth_for(alice))
        await hub.connect("b1", auth_for(bob))

        # A learns B came online, followed by a full set containing B
        assert emitter.events_for("a1")[-2:] == [EVENT_USER_ONLINE, EVENT_ONLINE_USERS]
        assert emitter.to("a1")[-2][1]["userId"] == bob.user_id
        assert bob.user_id in emitter.to("a1")[-1][1]["userIds"]

        # B's own connect-time full set includes A
        b_sets = [data for event, data in emitter.to("b1") if event == EVENT_ONLINE_USERS]
        assert alice.user_id in b_sets[-1]["userIds"]
        emitter.clear()

        ack = await hub.handle("a1", "send_message", {"receiverId": bob.user_id, "content": "hi"})

        received = [data for event, data in emitter.to("b1") if event == EVENT_RECEIVE_MESSAGE]
        assert len(received) == 1
        assert received[0]["content"] == "hi"
        assert received[0]["senderId"] == alice.user_id
        sent = [data for event, data in emitter.to("a1") if event == EVENT_MESSAGE_SENT]
        assert sent[0]["messageId"] == received[0]["messageId"] == ack["messageId"]
        emitter.clear()

        await hub.disconnect("b1")

        assert emitter.events_for("a1") == [EVENT_USER_OFFLINE, EVENT_ONLINE_USERS]
        assert emitter.to("a1")[0][1]["userId"] == bob.user_id
        assert emitter.to("a1")[1][1] == {"userIds": [alice.user_id]}

    @pytest.mark.asyncio
    async def test_malformed_message_reaches_only_sender(self, hub, emitter, alice, bob):
        await hub.connect("a1", auth_for(alice))
        await hub.connect("b1", auth_for(bob))
        emitter.clear()

        await hub.handle("a1", "send_message", {"receiverId": bob.user_id})

        assert emitter.events_for("b1") == []
        assert emitter.events_for("a1") == [EVENT_ERROR]

    @pytest.mark.asyncio
    async def test_offline_user_has_no_destinations(self, hub, alice):
        token, _ = create_access_token(alice.user_id)
        assert not hub.registry.is_online(alice.user_id)
        assert hub.router.resolve_user(alice.user_id) == frozenset()
        await hub.connect("a1", {"token": token})
        await hub.disconnect("a1")
        assert not hub.registry.is_online(alice.user_id)
        assert hub.router.resolve_user(alice.user_id) == frozenset()
        assert hub.registry.last_seen(alice.user_id) is not None
