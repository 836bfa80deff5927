"""
Unit tests for the Room Router.

Tests personal-room attachment, topic membership, resolution and cleanup
on detach.
"""

from devconnect.realtime.connectionRegistry import IdentitySnapshot, Session
from devconnect.realtime.roomRouter import RoomRouter, topic_room, user_room


def _session(sid: str, user_id: str = "u1") -> Session:
    return Session(
        sid=sid,
        user_id=user_id,
        identity=IdentitySnapshot(user_id=user_id, name=user_id),
    )


class TestRoomNames:

    def test_personal_and_topic_prefixes_differ(self):
        assert user_room("42") == "user_42"
        assert topic_room("42") == "topic_42"
        assert user_room("42") != topic_room("42")


class TestAttachDetach:

    def test_attach_joins_personal_room(self):
        router = RoomRouter()
        room = router.attach(_session("s1"))
        assert room == "user_u1"
        assert router.resolve_user("u1") == frozenset({"s1"})
        assert router.rooms_of("s1") == frozenset({"user_u1"})

    def test_all_sessions_of_a_user_share_the_personal_room(self):
        router = RoomRouter()
        router.attach(_session("s1"))
        router.attach(_session("s2"))
        assert router.resolve_user("u1") == frozenset({"s1", "s2"})
        assert router.room_size("user_u1") == 2

    def test_detach_drops_every_membership(self):
        router = RoomRouter()
        router.attach(_session("s1"))
        router.join_topic("s1", "thread-9")

        left = router.detach("s1")

        assert left == {"user_u1", "topic_thread-9"}
        assert router.resolve_user("u1") == frozenset()
        assert router.resolve_topic("thread-9") == frozenset()
        assert router.rooms_of("s1") == frozenset()

    def test_detach_unknown_sid_is_a_noop(self):
        router = RoomRouter()
        assert router.detach("ghost") == set()

    def test_resolve_empty_room(self):
        router = RoomRouter()
        assert router.resolve("user_nobody") == frozenset()


class TestTopics:

    def test_join_and_leave(self):
        router = RoomRouter()
        router.attach(_session("s1"))
        router.attach(_session("s2", "u2"))

        assert router.join_topic("s1", "call-1") is True
        assert router.join_topic("s2", "call-1") is True
        assert router.resolve_topic("call-1") == frozenset({"s1", "s2"})

        assert router.leave_topic("s1", "call-1") is True
        assert router.resolve_topic("call-1") == frozenset({"s2"})

    def test_double_join_reports_no_change(self):
        router = RoomRouter()
        router.attach(_session("s1"))
        router.join_topic("s1", "call-1")
        assert router.join_topic("s1", "call-1") is False
        assert router.room_size("topic_call-1") == 1

    def test_leave_without_membership_reports_no_change(self):
        router = RoomRouter()
        router.attach(_session("s1"))
        assert router.leave_topic("s1", "call-1") is False

    def test_unknown_sid_cannot_join(self):
        router = RoomRouter()
        assert router.join_topic("ghost", "call-1") is False
        assert router.resolve_topic("call-1") == frozenset()

    def test_topic_cannot_reach_a_personal_room(self):
        router = RoomRouter()
        router.attach(_session("victim", "u2"))
        router.attach(_session("s1"))
        router.join_topic("s1", "u2")
        assert router.resolve_user("u2") == frozenset({"victim"})

    def test_leaving_a_topic_keeps_personal_room(self):
        router = RoomRouter()
        router.attach(_session("s1"))
        router.join_topic("s1", "call-1")
        router.leave_topic("s1", "call-1")
        assert router.resolve_user("u1") == frozenset({"s1"})
