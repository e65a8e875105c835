"""
Event Schema Definitions

Contains functions for creating the outbound room events: presence
updates, the joiner's room snapshot, and vote results.
"""

from typing import Any, Dict, List


def create_event(event: str, data: Any = None) -> Dict[str, Any]:
    """
    Wrap a payload in the wire envelope.

    Args:
        event: Outbound event name
        data: JSON-compatible payload

    Returns:
        dict: ``{"type": event, "data": data}``
    """
    return {"type": event, "data": data}


def create_update_users_event(users: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Create an updateUsers event.

    Args:
        users: Serialized users currently present in the room

    Returns:
        dict: Event broadcast
    """
    return create_event("updateUsers", users)


def create_get_room_event(
    room: Dict[str, Any],
    users: List[Dict[str, Any]],
    membership: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Create the getRoom reply sent to a connection that just joined.

    Args:
        room: The room's stored configuration
        users: Serialized users currently present in the room
        membership: The joiner's own membership (``{user, vote?}``)

    Returns:
        dict: Event reply
    """
    return create_event(
        "getRoom", {"room": room, "users": users, "user": membership}
    )


def create_show_votes_event(
    votes: Dict[Any, List[Dict[str, Any]]]
) -> Dict[str, Any]:
    """Create a showVotes event from a vote -> users mapping."""
    return create_event("showVotes", votes)


def create_clear_votes_event(users: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Create a clearVotes event carrying the users after the reset."""
    return create_event("clearVotes", users)
