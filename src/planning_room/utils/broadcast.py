"""
Broadcast Utilities

Tracks which connections are subscribed to each room and fans event
payloads out to them.
"""

import logging
from typing import Any, Dict, List

from ..registry import Connection

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """
    Room broadcast groups.

    Maps room_id -> connections subscribed to it (in join order) and
    connection -> room_ids it is subscribed to. Delivery is fire-and-forget:
    closed connections are skipped and nothing is retried.
    """

    def __init__(self):
        self._room_connections: Dict[str, Dict[Connection, None]] = {}
        self._connection_rooms: Dict[Connection, Dict[str, None]] = {}

    def join(self, connection: Connection, room_id: str):
        """Subscribe a connection to a room's broadcast group."""
        self._room_connections.setdefault(room_id, {})[connection] = None
        self._connection_rooms.setdefault(connection, {})[room_id] = None

    def leave(self, connection: Connection, room_id: str) -> bool:
        """
        Unsubscribe a connection from one room.

        Returns:
            True if the connection was subscribed
        """
        members = self._room_connections.get(room_id)
        if members is None or connection not in members:
            return False

        del members[connection]
        if not members:
            del self._room_connections[room_id]

        rooms = self._connection_rooms.get(connection)
        if rooms is not None:
            rooms.pop(room_id, None)
            if not rooms:
                del self._connection_rooms[connection]
        return True

    def leave_all(self, connection: Connection) -> List[str]:
        """
        Unsubscribe a connection from every room.

        Returns:
            The room ids it was subscribed to
        """
        room_ids = self.rooms_of(connection)
        for room_id in room_ids:
            self.leave(connection, room_id)
        return room_ids

    def connections(self, room_id: str) -> List[Connection]:
        """Snapshot of the connections subscribed to a room."""
        return list(self._room_connections.get(room_id, ()))

    def rooms_of(self, connection: Connection) -> List[str]:
        """Snapshot of the rooms a connection is subscribed to."""
        return list(self._connection_rooms.get(connection, ()))

    async def broadcast(self, room_id: str, message: Dict[str, Any]) -> int:
        """
        Send an event to every connection subscribed to a room.

        Args:
            room_id: The room ID
            message: Event envelope built by ``schemas.events``

        Returns:
            Number of connections the event was delivered to
        """
        delivered = 0
        for connection in self.connections(room_id):
            if await connection.send(message):
                delivered += 1
        logger.debug(
            f"Broadcasted {message['type']} to {delivered} connections in room {room_id}"
        )
        return delivered

    async def unicast(self, connection: Connection, message: Dict[str, Any]) -> bool:
        """Send an event to a single connection."""
        return await connection.send(message)
