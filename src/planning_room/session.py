"""
Room Session Manager

Orchestrates the room protocol: user registration, joining and leaving,
voting, and disconnect cleanup. Keeps each connection's memberships
consistent with what the room's broadcast group sees and with the room
configurations held in the store.
"""

import asyncio
import logging
import weakref
from typing import Any, Dict, List, Optional

from .errors import DuplicateRoom, ForbiddenRoom, NoUserFound, StoreError
from .models import Membership, Room, User
from .registry import Connection
from .schemas.events import (
    create_clear_votes_event,
    create_get_room_event,
    create_show_votes_event,
    create_update_users_event,
)
from .stores.base import RoomStore, deserialize_config, serialize_config
from .utils.broadcast import BroadcastDispatcher

logger = logging.getLogger(__name__)


class RoomSessionManager:
    """
    Core room session logic.

    Every operation that snapshots a room's membership and broadcasts it
    holds that room's lock, so subscribe/unsubscribe and the following
    broadcast are atomic with respect to other joins and leaves on the same
    room. Different rooms never contend.
    """

    def __init__(
        self,
        store: RoomStore,
        dispatcher: Optional[BroadcastDispatcher] = None,
        garbage_collect_empty_rooms: bool = True,
        allow_room_overwrite: bool = True,
    ):
        """
        Initialize the room session manager.

        Args:
            store: Persistence backend for room configurations
            dispatcher: Broadcast groups; a fresh one is created if omitted
            garbage_collect_empty_rooms: Delete a room from the store when
                its last member leaves or disconnects
            allow_room_overwrite: Let createRoom replace an existing room
        """
        self.store = store
        self.dispatcher = dispatcher if dispatcher is not None else BroadcastDispatcher()
        self.garbage_collect_empty_rooms = garbage_collect_empty_rooms
        self.allow_room_overwrite = allow_room_overwrite
        # Locks disappear once no task holds or awaits them.
        self._room_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )
        logger.info(
            f"RoomSessionManager initialized with {store.name} store "
            f"(gc_empty_rooms={garbage_collect_empty_rooms})"
        )

    def _lock(self, room_id: str) -> asyncio.Lock:
        lock = self._room_locks.get(room_id)
        if lock is None:
            lock = asyncio.Lock()
            self._room_locks[room_id] = lock
        return lock

    # ===== Store access =====

    async def get_room(self, room_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a room's configuration.

        Returns:
            The configuration dict, or None if the room doesn't exist
        """
        payload = await self.store.get(room_id)
        if payload is None:
            return None
        return deserialize_config(payload)

    async def create_room(self, room: Dict[str, Any]) -> Room:
        """
        Store a new room configuration.

        Args:
            room: The createRoom payload, ``id`` plus arbitrary config

        Returns:
            The created Room

        Raises:
            DuplicateRoom: If the id is taken and overwrites are disabled
            StoreError: If the backend fails
        """
        created = Room.from_dict(room)
        payload = serialize_config(created.to_dict())

        if self.allow_room_overwrite:
            await self.store.put(created.room_id, payload)
        elif not await self.store.create(created.room_id, payload):
            raise DuplicateRoom(
                f"Room '{created.room_id}' already exists", room_id=created.room_id
            )

        logger.info(f"Created room {created.room_id}")
        return created

    # ===== Membership snapshots =====

    def _snapshot_users(
        self, room_id: str, exclude_user_id: Optional[str] = None
    ) -> List[User]:
        """
        Collect the users of every connection subscribed to a room.

        Connections without a membership for the room contribute nothing.
        Users whose id equals ``exclude_user_id`` are left out.
        """
        users = []
        for connection in self.dispatcher.connections(room_id):
            membership = connection.registry.get(room_id)
            if membership is None:
                continue
            if exclude_user_id is not None and membership.user.id == exclude_user_id:
                continue
            users.append(membership.user)
        return users

    async def _broadcast_users(
        self, room_id: str, exclude_user_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        users = [
            user.to_dict()
            for user in self._snapshot_users(room_id, exclude_user_id)
        ]
        await self.dispatcher.broadcast(room_id, create_update_users_event(users))
        return users

    def _require_membership(self, connection: Connection, room_id: str) -> Membership:
        membership = connection.registry.get(room_id)
        if membership is None:
            raise NoUserFound(
                f"No user registered for room {room_id}", room_id=room_id
            )
        return membership

    # ===== Operations =====

    def register_user(
        self, connection: Connection, room_id: str, user: Dict[str, Any]
    ) -> Membership:
        """
        Attach a user to a connection for a room, replacing any prior one.
        """
        membership = Membership(user=User.from_dict(user))
        connection.registry.set(room_id, membership)
        logger.info(
            f"Registered user {membership.user.id} on {connection} for room {room_id}"
        )
        return membership

    async def enter_room(self, connection: Connection, room_id: str) -> Dict[str, Any]:
        """
        Join a connection to a room.

        Broadcasts updateUsers to the room, then replies getRoom to the
        joiner.

        Returns:
            The getRoom payload sent to the joiner

        Raises:
            ForbiddenRoom: If the room doesn't exist
            NoUserFound: If the connection registered no user for the room
        """
        async with self._lock(room_id):
            # Checked under the lock: a concurrent disconnect may GC the room.
            room = await self.get_room(room_id)
            if room is None:
                logger.warning(f"{connection} tried to enter unknown room {room_id}")
                raise ForbiddenRoom(f"Room {room_id} not found", room_id=room_id)

            membership = self._require_membership(connection, room_id)

            self.dispatcher.join(connection, room_id)
            users = await self._broadcast_users(room_id)

        reply = create_get_room_event(room, users, membership.to_dict())
        await self.dispatcher.unicast(connection, reply)
        logger.info(
            f"User {membership.user.id} entered room {room_id} "
            f"({len(users)} present)"
        )
        return reply["data"]

    async def leave_room(self, connection: Connection, room_id: str) -> bool:
        """
        Remove a connection from a room and tell the remaining members.

        When the leaver was the last subscriber and garbage collection is on,
        the room is deleted from the store.

        Returns:
            True if an updateUsers broadcast was sent
        """
        async with self._lock(room_id):
            was_subscribed = self.dispatcher.leave(connection, room_id)
            membership = connection.registry.get(room_id)
            connection.registry.delete(room_id)

            exists = await self.get_room(room_id) is not None
            if exists:
                await self._broadcast_users(room_id)
                if was_subscribed:
                    await self._collect_if_empty(room_id)

        if membership is not None:
            logger.info(f"User {membership.user.id} left room {room_id}")
        return exists

    async def send_vote(
        self, connection: Connection, room_id: str, vote: Any
    ) -> List[Dict[str, Any]]:
        """
        Record a vote for the connection's user and broadcast presence.

        Raises:
            NoUserFound: If the connection registered no user for the room
        """
        membership = self._require_membership(connection, room_id)
        async with self._lock(room_id):
            membership.record_vote(vote)
            return await self._broadcast_users(room_id)

    async def clear_vote(
        self, connection: Connection, room_id: str
    ) -> List[Dict[str, Any]]:
        """
        Withdraw the connection's vote and broadcast presence.

        Raises:
            NoUserFound: If the connection registered no user for the room
        """
        membership = self._require_membership(connection, room_id)
        async with self._lock(room_id):
            membership.clear_vote()
            return await self._broadcast_users(room_id)

    async def get_votes(self, room_id: str) -> Dict[Any, List[Dict[str, Any]]]:
        """
        Group the room's numeric votes and broadcast them as showVotes.

        Returns:
            Mapping of vote value to the users who cast it, in join order
        """
        async with self._lock(room_id):
            votes: Dict[Any, List[Dict[str, Any]]] = {}
            for connection in self.dispatcher.connections(room_id):
                membership = connection.registry.get(room_id)
                if membership is None or not membership.has_numeric_vote:
                    continue
                votes.setdefault(membership.vote, []).append(membership.user.to_dict())

            await self.dispatcher.broadcast(room_id, create_show_votes_event(votes))
        return votes

    async def reset_votes(self, room_id: str) -> List[Dict[str, Any]]:
        """
        Clear every member's vote and broadcast clearVotes.

        Returns:
            The users after the reset
        """
        async with self._lock(room_id):
            users = []
            for connection in self.dispatcher.connections(room_id):
                membership = connection.registry.get(room_id)
                if membership is None:
                    continue
                membership.clear_vote()
                users.append(membership.user.to_dict())

            await self.dispatcher.broadcast(room_id, create_clear_votes_event(users))
        logger.info(f"Reset votes in room {room_id}")
        return users

    async def _leave_on_disconnect(self, connection: Connection, room_id: str) -> bool:
        """
        Drop a closed connection from one room.

        Returns:
            True if the room was garbage collected
        """
        async with self._lock(room_id):
            self.dispatcher.leave(connection, room_id)
            membership = connection.registry.get(room_id)
            exclude_user_id = membership.user.id if membership else None

            if await self.get_room(room_id) is None:
                return False
            await self._broadcast_users(room_id, exclude_user_id)
            return await self._collect_if_empty(room_id)

    async def _collect_if_empty(self, room_id: str) -> bool:
        """Delete a room nobody is subscribed to. Caller holds the room lock."""
        if not self.garbage_collect_empty_rooms or self.dispatcher.connections(room_id):
            return False
        await self.store.delete(room_id)
        logger.info(f"Deleted empty room {room_id}")
        return True

    async def on_disconnect(self, connection: Connection) -> List[str]:
        """
        Clean up after a closed connection.

        For each room it had joined, the remaining members get updateUsers
        without the departing user. Rooms nobody is subscribed to any more
        are deleted from the store when garbage collection is on.

        Returns:
            Room ids deleted from the store
        """
        connection.closed = True
        deleted = []

        for room_id in self.dispatcher.rooms_of(connection):
            try:
                if await self._leave_on_disconnect(connection, room_id):
                    deleted.append(room_id)
            except StoreError as e:
                logger.error(
                    f"Disconnect cleanup of room {room_id} for {connection} failed: {e}"
                )

        self.dispatcher.leave_all(connection)
        connection.registry.clear()
        logger.info(f"{connection} disconnected")
        return deleted
