"""
Schemas for the Planning Room Server

This module contains the wire structures for outbound events and the
replies sent to a single connection.
"""

from .events import (
    create_event,
    create_update_users_event,
    create_get_room_event,
    create_show_votes_event,
    create_clear_votes_event,
)
from .responses import (
    create_notice_response,
    create_error_response,
    create_session_error_response,
)

__all__ = [
    "create_event",
    "create_update_users_event",
    "create_get_room_event",
    "create_show_votes_event",
    "create_clear_votes_event",
    "create_notice_response",
    "create_error_response",
    "create_session_error_response",
]
