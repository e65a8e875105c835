"""
Utilities for the Planning Room Server

This module contains the broadcast dispatcher and inbound payload
validation helpers.
"""

from .broadcast import BroadcastDispatcher
from .validation import (
    validate_room_id,
    require_strict_json,
    extract_room_id,
    extract_user_payload,
    extract_room_payload,
    extract_vote_payload,
)

__all__ = [
    "BroadcastDispatcher",
    "validate_room_id",
    "require_strict_json",
    "extract_room_id",
    "extract_user_payload",
    "extract_room_payload",
    "extract_vote_payload",
]
