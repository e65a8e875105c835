"""
Response Schema Definitions

Contains functions for creating the replies sent only to the connection
that triggered an operation.
"""

from typing import Dict, Any, Optional

from ..errors import RoomSessionError


def create_notice_response(event: str) -> Dict[str, Any]:
    """
    Create a payload-less notice such as forbiddenRoom or noUserFound.

    Args:
        event: Notice event name

    Returns:
        dict: Notice response
    """
    return {"type": event, "data": None}


def create_error_response(
    error_message: str,
    error_code: str = "error",
    room_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a generic error response.

    Args:
        error_message: Error message text
        error_code: Machine-readable error code
        room_id: Optional room the failed operation targeted

    Returns:
        dict: Error response
    """
    data = {
        "success": False,
        "code": error_code,
        "message": error_message,
    }
    if room_id:
        data["roomId"] = room_id
    return {"type": "error", "data": data}


def create_session_error_response(error: RoomSessionError) -> Dict[str, Any]:
    """Create the reply for an error raised by the session layer."""
    if error.event != "error":
        return create_notice_response(error.event)
    return create_error_response(
        str(error), error.code or "error", room_id=error.room_id
    )
