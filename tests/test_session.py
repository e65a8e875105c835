"""
Tests for the Room Session Manager

Covers joining, presence broadcasts, voting, vote reveal/reset, leaving,
and disconnect cleanup including empty-room garbage collection.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from src.planning_room import (
    Connection,
    DuplicateRoom,
    FileRoomStore,
    ForbiddenRoom,
    MemoryRoomStore,
    NoUserFound,
    RoomSessionManager,
    StoreError,
)


class MockWebSocket:
    """Mock WebSocket for testing."""

    def __init__(self):
        self.sent_messages = []

    async def send(self, message):
        self.sent_messages.append(message)

    def events(self):
        return [json.loads(m) for m in self.sent_messages]

    def last(self, event_type):
        matching = [e for e in self.events() if e["type"] == event_type]
        return matching[-1]["data"] if matching else None


def make_connection():
    ws = MockWebSocket()
    return Connection(ws), ws


async def join(manager, room_id, user_id, **attributes):
    """Register a user on a fresh connection and enter the room."""
    connection, ws = make_connection()
    manager.register_user(connection, room_id, {"id": user_id, **attributes})
    await manager.enter_room(connection, room_id)
    return connection, ws


@pytest.fixture
def store():
    return MemoryRoomStore()


@pytest.fixture
def manager(store):
    return RoomSessionManager(store)


# ----------------------------------------------------------------------------
# createRoom
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_room_stores_config(manager):
    room = await manager.create_room({"id": "R1", "scale": [1, 2, 3]})

    assert room.room_id == "R1"
    assert await manager.get_room("R1") == {"id": "R1", "scale": [1, 2, 3]}


@pytest.mark.asyncio
async def test_create_room_overwrites_by_default(manager):
    await manager.create_room({"id": "R1", "title": "first"})
    await manager.create_room({"id": "R1", "title": "second"})

    assert (await manager.get_room("R1"))["title"] == "second"


@pytest.mark.asyncio
async def test_create_room_duplicate_when_overwrite_disabled(store):
    manager = RoomSessionManager(store, allow_room_overwrite=False)
    await manager.create_room({"id": "R1", "title": "first"})

    with pytest.raises(DuplicateRoom):
        await manager.create_room({"id": "R1", "title": "second"})

    assert (await manager.get_room("R1"))["title"] == "first"


# ----------------------------------------------------------------------------
# enterRoom
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_enter_unknown_room_is_forbidden(manager):
    """Test that entering a missing room raises and sends nothing."""
    _, bystander_ws = await _room_with_member(manager, "R2", "bob")
    connection, ws = make_connection()
    manager.register_user(connection, "R1", {"id": "alice"})

    with pytest.raises(ForbiddenRoom):
        await manager.enter_room(connection, "R1")

    assert ws.sent_messages == []
    assert len(bystander_ws.sent_messages) == 2
    assert manager.dispatcher.connections("R1") == []


@pytest.mark.asyncio
async def test_enter_without_registered_user(manager):
    await manager.create_room({"id": "R1"})
    connection, ws = make_connection()

    with pytest.raises(NoUserFound):
        await manager.enter_room(connection, "R1")

    assert ws.sent_messages == []
    assert manager.dispatcher.connections("R1") == []


@pytest.mark.asyncio
async def test_user_registered_for_other_room_cannot_enter(manager):
    await manager.create_room({"id": "R1"})
    connection, _ = make_connection()
    manager.register_user(connection, "R2", {"id": "alice"})

    with pytest.raises(NoUserFound):
        await manager.enter_room(connection, "R1")


@pytest.mark.asyncio
async def test_enter_room_replies_get_room(manager):
    await manager.create_room({"id": "R1", "scale": [1, 2, 3]})

    _, ws = await join(manager, "R1", "alice", name="Alice")

    events = ws.events()
    assert [e["type"] for e in events] == ["updateUsers", "getRoom"]

    alice = {"id": "alice", "name": "Alice", "isReady": False}
    assert events[0]["data"] == [alice]
    assert events[1]["data"] == {
        "room": {"id": "R1", "scale": [1, 2, 3]},
        "users": [alice],
        "user": {"user": alice},
    }


@pytest.mark.asyncio
async def test_second_join_updates_everyone(manager):
    await manager.create_room({"id": "R1"})
    _, ws1 = await join(manager, "R1", "alice")
    _, ws2 = await join(manager, "R1", "bob")

    expected = [
        {"id": "alice", "isReady": False},
        {"id": "bob", "isReady": False},
    ]
    assert ws1.last("updateUsers") == expected
    assert ws2.last("updateUsers") == expected
    assert ws2.last("getRoom")["users"] == expected
    # getRoom is only sent to the joiner
    assert len([e for e in ws1.events() if e["type"] == "getRoom"]) == 1


@pytest.mark.asyncio
async def test_concurrent_joins_converge(manager):
    """Test that the last presence update everyone sees includes all joiners."""
    await manager.create_room({"id": "R1"})
    connections = [make_connection() for _ in range(5)]
    for i, (connection, _) in enumerate(connections):
        manager.register_user(connection, "R1", {"id": f"user{i}"})

    await asyncio.gather(
        *(manager.enter_room(connection, "R1") for connection, _ in connections)
    )

    for _, ws in connections:
        assert [u["id"] for u in ws.last("updateUsers")] == [
            f"user{i}" for i in range(5)
        ]


# ----------------------------------------------------------------------------
# Voting
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_send_vote_marks_user_ready(manager):
    await manager.create_room({"id": "R1"})
    conn1, ws1 = await join(manager, "R1", "alice")
    _, ws2 = await join(manager, "R1", "bob")

    await manager.send_vote(conn1, "R1", 5)

    assert conn1.registry.get("R1").vote == 5
    expected = [{"id": "alice", "isReady": True}, {"id": "bob", "isReady": False}]
    assert ws1.last("updateUsers") == expected
    assert ws2.last("updateUsers") == expected


@pytest.mark.asyncio
async def test_send_vote_without_membership(manager):
    connection, ws = make_connection()

    with pytest.raises(NoUserFound):
        await manager.send_vote(connection, "R1", 3)

    assert ws.sent_messages == []


@pytest.mark.asyncio
async def test_clear_vote_is_idempotent(manager):
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")
    _, ws2 = await join(manager, "R1", "bob")
    await manager.send_vote(conn1, "R1", 8)

    first = await manager.clear_vote(conn1, "R1")
    second = await manager.clear_vote(conn1, "R1")

    assert first == second
    assert ws2.last("updateUsers") == [
        {"id": "alice", "isReady": False},
        {"id": "bob", "isReady": False},
    ]
    assert conn1.registry.get("R1").vote is None


@pytest.mark.asyncio
async def test_get_votes_groups_numeric_votes(manager):
    await manager.create_room({"id": "R1"})
    conn1, ws1 = await join(manager, "R1", "user1")
    _, ws2 = await join(manager, "R1", "user2")

    await manager.send_vote(conn1, "R1", 5)
    votes = await manager.get_votes("R1")

    assert votes == {5: [{"id": "user1", "isReady": True}]}
    assert ws2.last("showVotes") == {"5": [{"id": "user1", "isReady": True}]}
    assert ws1.last("showVotes") == ws2.last("showVotes")


@pytest.mark.asyncio
async def test_get_votes_groups_same_value_in_join_order(manager):
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")
    conn2, _ = await join(manager, "R1", "bob")
    conn3, _ = await join(manager, "R1", "carol")

    await manager.send_vote(conn3, "R1", 3)
    await manager.send_vote(conn1, "R1", 3)
    await manager.send_vote(conn2, "R1", 0.5)

    votes = await manager.get_votes("R1")

    assert [u["id"] for u in votes[3]] == ["alice", "carol"]
    assert [u["id"] for u in votes[0.5]] == ["bob"]


@pytest.mark.asyncio
async def test_get_votes_skips_non_numeric_votes(manager):
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")
    conn2, _ = await join(manager, "R1", "bob")

    await manager.send_vote(conn1, "R1", "?")
    await manager.send_vote(conn2, "R1", 13)

    assert await manager.get_votes("R1") == {13: [{"id": "bob", "isReady": True}]}


@pytest.mark.asyncio
async def test_reset_votes(manager):
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")
    conn2, ws2 = await join(manager, "R1", "bob")
    await manager.send_vote(conn1, "R1", 5)
    await manager.send_vote(conn2, "R1", 8)

    users = await manager.reset_votes("R1")

    assert users == [
        {"id": "alice", "isReady": False},
        {"id": "bob", "isReady": False},
    ]
    assert ws2.last("clearVotes") == users
    assert conn1.registry.get("R1").vote is None
    assert conn2.registry.get("R1").vote is None
    assert await manager.get_votes("R1") == {}


# ----------------------------------------------------------------------------
# leaveRoom
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_leave_room_updates_remaining_members(manager):
    await manager.create_room({"id": "R1"})
    conn1, ws1 = await join(manager, "R1", "alice")
    _, ws2 = await join(manager, "R1", "bob")
    sent_before = len(ws1.sent_messages)

    assert await manager.leave_room(conn1, "R1") is True

    assert ws2.last("updateUsers") == [{"id": "bob", "isReady": False}]
    assert len(ws1.sent_messages) == sent_before
    assert conn1.registry.get("R1") is None


@pytest.mark.asyncio
async def test_leave_unknown_room_broadcasts_nothing(manager):
    connection, ws = make_connection()

    assert await manager.leave_room(connection, "nope") is False
    assert ws.sent_messages == []


# ----------------------------------------------------------------------------
# Disconnect
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_disconnect_updates_remaining_members(manager):
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")
    _, ws2 = await join(manager, "R1", "bob")

    deleted = await manager.on_disconnect(conn1)

    assert deleted == []
    assert ws2.last("updateUsers") == [{"id": "bob", "isReady": False}]
    assert manager.dispatcher.rooms_of(conn1) == []
    assert len(conn1.registry) == 0


@pytest.mark.asyncio
async def test_last_disconnect_deletes_room(manager):
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")

    assert await manager.on_disconnect(conn1) == ["R1"]

    newcomer, _ = make_connection()
    manager.register_user(newcomer, "R1", {"id": "bob"})
    with pytest.raises(ForbiddenRoom):
        await manager.enter_room(newcomer, "R1")


@pytest.mark.asyncio
async def test_last_disconnect_keeps_room_without_gc(store):
    manager = RoomSessionManager(store, garbage_collect_empty_rooms=False)
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")

    assert await manager.on_disconnect(conn1) == []

    _, ws = await join(manager, "R1", "bob")
    assert ws.last("getRoom")["users"] == [{"id": "bob", "isReady": False}]


@pytest.mark.asyncio
async def test_disconnect_excludes_duplicate_identity(manager):
    """Test that every member sharing the departing user id is left out."""
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")
    _, ws_tab = await join(manager, "R1", "alice")
    _, ws_bob = await join(manager, "R1", "bob")

    deleted = await manager.on_disconnect(conn1)

    assert ws_bob.last("updateUsers") == [{"id": "bob", "isReady": False}]
    assert ws_tab.last("updateUsers") == [{"id": "bob", "isReady": False}]
    assert deleted == []


@pytest.mark.asyncio
async def test_disconnect_covers_every_joined_room(manager):
    await manager.create_room({"id": "R1"})
    await manager.create_room({"id": "R2"})
    connection, _ = make_connection()
    for room_id in ("R1", "R2"):
        manager.register_user(connection, room_id, {"id": "alice"})
        await manager.enter_room(connection, room_id)
    _, ws_r2 = await join(manager, "R2", "bob")

    deleted = await manager.on_disconnect(connection)

    assert deleted == ["R1"]
    assert ws_r2.last("updateUsers") == [{"id": "bob", "isReady": False}]
    assert await manager.get_room("R2") is not None


@pytest.mark.asyncio
async def test_disconnect_survives_store_failure(manager, store):
    """Test that a failing store still leaves no stale subscription."""
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")

    def broken_get(room_id):
        raise RuntimeError("store down")

    store._get = broken_get

    assert await manager.on_disconnect(conn1) == []
    assert manager.dispatcher.connections("R1") == []


@pytest.mark.asyncio
async def test_enter_room_store_failure(manager, store):
    connection, ws = make_connection()
    manager.register_user(connection, "R1", {"id": "alice"})

    def broken_get(room_id):
        raise RuntimeError("store down")

    store._get = broken_get

    with pytest.raises(StoreError):
        await manager.enter_room(connection, "R1")
    assert ws.sent_messages == []


async def _room_with_member(manager, room_id, user_id):
    await manager.create_room({"id": room_id})
    return await join(manager, room_id, user_id)


# ----------------------------------------------------------------------------
# Races and empty-room collection on leave
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_join_racing_last_disconnect_is_forbidden(tmp_path):
    """Test that a join waiting on the lock sees the room the GC deleted."""
    store = FileRoomStore(tmp_path / "rooms")
    manager = RoomSessionManager(store)
    await manager.create_room({"id": "R1"})
    alice, _ = await join(manager, "R1", "alice")
    bob, bob_ws = make_connection()
    manager.register_user(bob, "R1", {"id": "bob"})

    deleted, entered = await asyncio.gather(
        manager.on_disconnect(alice),
        manager.enter_room(bob, "R1"),
        return_exceptions=True,
    )

    assert deleted == ["R1"]
    assert isinstance(entered, ForbiddenRoom)
    assert await manager.get_room("R1") is None
    assert manager.dispatcher.connections("R1") == []
    assert bob_ws.sent_messages == []
    await store.close()


@pytest.mark.asyncio
async def test_last_leave_deletes_room(manager):
    await manager.create_room({"id": "R1"})
    conn1, ws1 = await join(manager, "R1", "alice")
    sent_before = len(ws1.sent_messages)

    assert await manager.leave_room(conn1, "R1") is True

    assert await manager.get_room("R1") is None
    assert len(ws1.sent_messages) == sent_before
    assert await manager.on_disconnect(conn1) == []


@pytest.mark.asyncio
async def test_leave_keeps_room_while_others_remain(manager):
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")
    await join(manager, "R1", "bob")

    await manager.leave_room(conn1, "R1")

    assert await manager.get_room("R1") == {"id": "R1"}


@pytest.mark.asyncio
async def test_last_leave_keeps_room_without_gc(store):
    manager = RoomSessionManager(store, garbage_collect_empty_rooms=False)
    await manager.create_room({"id": "R1"})
    conn1, _ = await join(manager, "R1", "alice")

    await manager.leave_room(conn1, "R1")

    assert await manager.get_room("R1") == {"id": "R1"}


@pytest.mark.asyncio
async def test_leave_before_entering_keeps_fresh_room(manager):
    """Test that a room nobody joined yet survives a stray leave."""
    await manager.create_room({"id": "R1"})
    connection, _ = make_connection()
    manager.register_user(connection, "R1", {"id": "alice"})

    await manager.leave_room(connection, "R1")

    assert await manager.get_room("R1") == {"id": "R1"}


@pytest.mark.asyncio
async def test_get_room_reply_goes_through_dispatcher(manager):
    await manager.create_room({"id": "R1"})
    connection, _ = make_connection()
    manager.register_user(connection, "R1", {"id": "alice"})
    manager.dispatcher.unicast = AsyncMock(return_value=True)

    data = await manager.enter_room(connection, "R1")

    manager.dispatcher.unicast.assert_awaited_once_with(
        connection, {"type": "getRoom", "data": data}
    )
