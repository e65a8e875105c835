"""
Connection Registry

Per-connection state: which rooms the connection registered a user for,
and the user and vote attached to each of them.
"""

import json
import logging
import uuid
from typing import Any, Dict, Iterator, List, Optional

from websockets.exceptions import ConnectionClosed

from .models import Membership

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Mapping of room id to the connection's Membership for that room.

    Lives exactly as long as its Connection.
    """

    def __init__(self):
        self._memberships: Dict[str, Membership] = {}

    def set(self, room_id: str, membership: Membership):
        self._memberships[room_id] = membership

    def get(self, room_id: str) -> Optional[Membership]:
        return self._memberships.get(room_id)

    def delete(self, room_id: str) -> bool:
        return self._memberships.pop(room_id, None) is not None

    def room_ids(self) -> List[str]:
        return list(self._memberships)

    def clear(self):
        self._memberships.clear()

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._memberships

    def __len__(self) -> int:
        return len(self._memberships)

    def __iter__(self) -> Iterator[str]:
        return iter(self.room_ids())


class Connection:
    """
    A client connection and the state it owns.

    Attributes:
        websocket: The underlying WebSocket (anything with ``async send``)
        connection_id: Generated identifier used in logs
        registry: The connection's per-room memberships
    """

    def __init__(self, websocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or uuid.uuid4().hex[:12]
        self.registry = ConnectionRegistry()
        self.closed = False

    def __repr__(self) -> str:
        return f"Connection({self.connection_id})"

    async def send(self, message: Dict[str, Any]) -> bool:
        """
        Send a message, ignoring connections that have already closed.

        Returns:
            True if the frame was handed to the transport
        """
        if self.closed:
            return False
        try:
            await self.websocket.send(json.dumps(message))
            return True
        except ConnectionClosed:
            logger.debug(f"Dropped message to closed connection {self.connection_id}")
            self.closed = True
            return False
