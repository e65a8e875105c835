"""
Server configuration read from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in TRUE_VALUES


@dataclass
class ServerConfig:
    """
    Settings for one planning room server process.

    Attributes:
        host: Address the WebSocket server binds to
        port: Port the WebSocket server listens on
        app_url: Allowed Origin for WebSocket handshakes (None allows any)
        log_level: Logging level name
        store_backend: One of memory, file, redis, sql
        store_path: Directory used by the file backend
        redis_host: Redis host for the redis backend
        redis_port: Redis port for the redis backend
        redis_password: Optional Redis password
        room_ttl: Optional expiry in seconds for redis room keys
        database_url: SQLAlchemy URL for the sql backend
        gc_empty_rooms: Delete a room when its last member leaves or disconnects
        allow_room_overwrite: Let createRoom replace an existing room id
    """

    host: str = "0.0.0.0"
    port: int = 3000
    app_url: Optional[str] = None
    log_level: str = "INFO"
    store_backend: str = "memory"
    store_path: Path = Path("rooms")
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    room_ttl: Optional[int] = None
    database_url: str = "sqlite:///rooms.db"
    gc_empty_rooms: bool = True
    allow_room_overwrite: bool = True

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """Build a config from ``env`` (defaults to ``os.environ``)."""
        if env is None:
            env = os.environ

        room_ttl = env.get("ROOM_TTL")
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "3000")),
            app_url=env.get("APP_URL") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            store_backend=env.get("STORE_BACKEND", "memory").lower(),
            store_path=Path(env.get("STORE_PATH", "rooms")),
            redis_host=env.get("REDIS_HOST", "localhost"),
            redis_port=int(env.get("REDIS_PORT", "6379")),
            redis_password=env.get("REDIS_PASSWORD") or None,
            room_ttl=int(room_ttl) if room_ttl else None,
            database_url=env.get("DATABASE_URL", "sqlite:///rooms.db"),
            gc_empty_rooms=_env_bool(env, "GC_EMPTY_ROOMS", True),
            allow_room_overwrite=_env_bool(env, "ALLOW_ROOM_OVERWRITE", True),
        )
