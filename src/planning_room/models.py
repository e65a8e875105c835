"""
Room Session Data Model

Users, per-connection memberships, and rooms as they travel over the wire.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class User:
    """
    A participant inside one room.

    Attributes:
        id: Caller-supplied identifier, unique within a room
        is_ready: True once a vote has been recorded
        attributes: Display attributes sent by the client (name, avatar, ...)
    """

    id: str
    is_ready: bool = False
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Create from the client's JSON user object."""
        attributes = {
            key: value
            for key, value in data.items()
            if key not in ("id", "isReady")
        }
        return cls(
            id=str(data["id"]),
            is_ready=bool(data.get("isReady", False)),
            attributes=attributes,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {**self.attributes, "id": self.id, "isReady": self.is_ready}


@dataclass
class Membership:
    """
    A connection's state for one room: the user it registered and its vote.

    ``vote`` is None until the user votes; a vote of 0 is a real vote.
    """

    user: User
    vote: Optional[Any] = None

    @property
    def has_vote(self) -> bool:
        return self.vote is not None

    @property
    def has_numeric_vote(self) -> bool:
        return isinstance(self.vote, (int, float)) and not isinstance(
            self.vote, bool
        )

    def record_vote(self, vote: Any):
        """Store a vote and mark the user as ready."""
        self.vote = vote
        self.user.is_ready = True

    def clear_vote(self):
        """Forget the vote and mark the user as not ready."""
        self.vote = None
        self.user.is_ready = False

    def to_dict(self) -> Dict[str, Any]:
        data = {"user": self.user.to_dict()}
        if self.has_vote:
            data["vote"] = self.vote
        return data


@dataclass
class Room:
    """
    A voting room.

    Attributes:
        room_id: Unique identifier for the room
        config: The creator's configuration blob, ``id`` included
    """

    room_id: str
    config: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Room":
        """Create from the ``createRoom`` payload."""
        return cls(room_id=str(data["id"]), config=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.config)
