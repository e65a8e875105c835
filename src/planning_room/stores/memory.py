"""
In-memory room store.

Rooms live in a dict owned by the store instance and vanish with the
process. Calls run inline on the event loop.
"""

import logging
from typing import Dict, Optional

from .base import RoomStore

logger = logging.getLogger(__name__)


class MemoryRoomStore(RoomStore):
    """Room store backed by a plain dict."""

    name = "memory"
    run_inline = True

    def __init__(self):
        super().__init__()
        self._rooms: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def _get(self, room_id: str) -> Optional[str]:
        return self._rooms.get(room_id)

    def _put(self, room_id: str, payload: str):
        self._rooms[room_id] = payload
        logger.debug(f"Stored room {room_id} in memory")

    def _create(self, room_id: str, payload: str) -> bool:
        if room_id in self._rooms:
            return False
        self._rooms[room_id] = payload
        return True

    def _delete(self, room_id: str) -> bool:
        return self._rooms.pop(room_id, None) is not None
