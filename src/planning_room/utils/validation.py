"""
Validation Utilities

Contains functions that pull required fields out of inbound event payloads.
"""

import json
from typing import Any, Dict, Tuple

from ..errors import InvalidPayload

# Room id validation constants
MAX_ROOM_ID_LENGTH = 255


def validate_room_id(room_id: Any) -> str:
    """
    Validate a room id.

    Raises:
        InvalidPayload: If the id is not a non-empty string of sane length
    """
    if isinstance(room_id, int) and not isinstance(room_id, bool):
        room_id = str(room_id)
    if not isinstance(room_id, str) or not room_id:
        raise InvalidPayload("roomId must be a non-empty string")
    if len(room_id) > MAX_ROOM_ID_LENGTH:
        raise InvalidPayload(
            f"roomId too long (max {MAX_ROOM_ID_LENGTH} characters)"
        )
    return room_id


def require_strict_json(value: Any, field: str) -> Any:
    """
    Reject values that only parse as JSON extensions (NaN, Infinity).

    Raises:
        InvalidPayload: If the value can't be written back as strict JSON
    """
    try:
        json.dumps(value, allow_nan=False)
    except ValueError:
        raise InvalidPayload(f"{field} must not contain NaN or Infinity")
    return value


def extract_room_id(data: Any) -> str:
    """
    Accept either a bare room id or an object with a ``roomId`` key.
    """
    if isinstance(data, dict):
        data = data.get("roomId")
    return validate_room_id(data)


def extract_user_payload(data: Any) -> Tuple[str, Dict[str, Any]]:
    """
    Validate a createUser payload.

    Returns:
        tuple: (room_id, user dict)
    """
    if not isinstance(data, dict):
        raise InvalidPayload("createUser expects {roomId, user}")
    room_id = validate_room_id(data.get("roomId"))
    user = data.get("user")
    if not isinstance(user, dict) or user.get("id") in (None, ""):
        raise InvalidPayload("user must be an object with an id")
    return room_id, require_strict_json(user, "user")


def extract_room_payload(data: Any) -> Dict[str, Any]:
    """Validate a createRoom payload."""
    if not isinstance(data, dict):
        raise InvalidPayload("createRoom expects a room object")
    validate_room_id(data.get("id"))
    return require_strict_json(data, "room")


def extract_vote_payload(data: Any) -> Tuple[str, Any]:
    """
    Validate a sendVote payload.

    Returns:
        tuple: (room_id, vote)
    """
    if not isinstance(data, dict) or "vote" not in data:
        raise InvalidPayload("sendVote expects {roomId, vote}")
    if data["vote"] is None:
        raise InvalidPayload("vote cannot be null")
    room_id = validate_room_id(data.get("roomId"))
    return room_id, require_strict_json(data["vote"], "vote")
