"""
Room Stores

Pluggable persistence backends for room configurations.
"""

from .base import RoomStore, serialize_config, deserialize_config
from .memory import MemoryRoomStore
from .file import FileRoomStore

STORE_BACKENDS = ("memory", "file", "redis", "sql")


def build_store(config) -> RoomStore:
    """
    Create the room store selected by a ServerConfig.

    The redis and sql backends are imported lazily so their client
    libraries are only loaded when selected.

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = config.store_backend
    if backend == "memory":
        return MemoryRoomStore()
    if backend == "file":
        return FileRoomStore(config.store_path)
    if backend == "redis":
        from .redis_store import RedisRoomStore

        return RedisRoomStore(
            host=config.redis_host,
            port=config.redis_port,
            password=config.redis_password,
            ttl=config.room_ttl,
        )
    if backend == "sql":
        from .sql import SqlRoomStore

        return SqlRoomStore(url=config.database_url)
    raise ValueError(
        f"Unknown store backend '{backend}', expected one of {STORE_BACKENDS}"
    )


__all__ = [
    "RoomStore",
    "MemoryRoomStore",
    "FileRoomStore",
    "STORE_BACKENDS",
    "build_store",
    "serialize_config",
    "deserialize_config",
]
