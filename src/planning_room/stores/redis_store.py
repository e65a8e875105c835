"""
Redis room store.

Each room config is a string key ``room:config:{room_id}``. The client is
created once per store and reused across calls.
"""

import logging
from typing import Optional

import redis

from .base import RoomStore

logger = logging.getLogger(__name__)

REDIS_ROOM_KEY = "room:config:{room_id}"


class RedisRoomStore(RoomStore):
    """Room store backed by a Redis server."""

    name = "redis"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: Optional[str] = None,
        ttl: Optional[int] = None,
        client: Optional[redis.Redis] = None,
        max_workers: int = 4,
    ):
        """
        Initialize the Redis store.

        Args:
            host: Redis host
            port: Redis port
            password: Optional Redis password
            ttl: Optional expiry in seconds applied to every room key
            client: Pre-built client, used instead of connecting
            max_workers: Thread pool size for blocking Redis calls
        """
        super().__init__(max_workers=max_workers)
        self.ttl = ttl
        if client is None:
            client = redis.Redis(
                host=host, port=port, password=password, decode_responses=True
            )
            logger.info(f"Initializing RedisRoomStore for {host}:{port}")
        self.client = client

    @staticmethod
    def key(room_id: str) -> str:
        return REDIS_ROOM_KEY.format(room_id=room_id)

    def _get(self, room_id: str) -> Optional[str]:
        return self.client.get(self.key(room_id))

    def _put(self, room_id: str, payload: str):
        self.client.set(self.key(room_id), payload, ex=self.ttl)
        logger.debug(f"Room {room_id} stored under {self.key(room_id)}")

    def _create(self, room_id: str, payload: str) -> bool:
        return bool(self.client.set(self.key(room_id), payload, ex=self.ttl, nx=True))

    def _delete(self, room_id: str) -> bool:
        return self.client.delete(self.key(room_id)) > 0

    def _close(self):
        self.client.close()
