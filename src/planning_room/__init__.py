"""
Planning Room Server Package

This package provides real-time voting rooms: room session management,
presence broadcasting, pluggable room stores, and the WebSocket server.
"""

from .config import ServerConfig
from .errors import (
    RoomSessionError,
    ForbiddenRoom,
    NoUserFound,
    DuplicateRoom,
    InvalidPayload,
    StoreError,
)
from .models import User, Membership, Room
from .registry import Connection, ConnectionRegistry
from .session import RoomSessionManager
from .stores import (
    RoomStore,
    MemoryRoomStore,
    FileRoomStore,
    build_store,
    serialize_config,
    deserialize_config,
)
from .utils.broadcast import BroadcastDispatcher
from .websocket_server import WebSocketServer

__all__ = [
    "ServerConfig",
    "RoomSessionError",
    "ForbiddenRoom",
    "NoUserFound",
    "DuplicateRoom",
    "InvalidPayload",
    "StoreError",
    "User",
    "Membership",
    "Room",
    "Connection",
    "ConnectionRegistry",
    "RoomSessionManager",
    "RoomStore",
    "MemoryRoomStore",
    "FileRoomStore",
    "build_store",
    "serialize_config",
    "deserialize_config",
    "BroadcastDispatcher",
    "WebSocketServer",
]
