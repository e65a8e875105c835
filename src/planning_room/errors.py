"""
Errors raised by the room session layer.

Each error carries the outbound event name the WebSocket server replies with
when it reaches the edge of a request.
"""

from typing import Optional


class RoomSessionError(Exception):
    """Base class for errors reported back to the triggering connection."""

    event = "error"
    code: Optional[str] = None

    def __init__(self, message: str = "", room_id: Optional[str] = None):
        super().__init__(message)
        self.room_id = room_id


class ForbiddenRoom(RoomSessionError):
    """The room does not exist in the store."""

    event = "forbiddenRoom"


class NoUserFound(RoomSessionError):
    """The connection has no registered user for the room."""

    event = "noUserFound"


class DuplicateRoom(RoomSessionError):
    """A room with the same id already exists and overwrites are disabled."""

    code = "duplicateRoom"


class InvalidPayload(RoomSessionError):
    """The inbound event payload has the wrong shape."""

    code = "invalidPayload"


class StoreError(RoomSessionError):
    """The persistence backend failed or the config could not be serialized."""

    code = "storeUnavailable"
