"""
Room Store Contract

Every persistence backend maps a room id to the room's serialized
configuration and exposes the same async operations. Backends built on
blocking clients implement the ``_get``/``_put``/``_create``/``_delete``
hooks synchronously; the base class runs them in a thread pool.
"""

import asyncio
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

from ..errors import StoreError

logger = logging.getLogger(__name__)


def serialize_config(config: Dict[str, Any]) -> str:
    """
    Serialize a room configuration to JSON text.

    Raises:
        StoreError: If the configuration is not JSON-compatible
    """
    try:
        return json.dumps(config, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise StoreError(f"Room config is not serializable: {e}") from e


def deserialize_config(payload: str) -> Dict[str, Any]:
    """
    Parse JSON text produced by :func:`serialize_config`.

    Raises:
        StoreError: If the stored text is not valid JSON
    """
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as e:
        raise StoreError(f"Stored room config is corrupt: {e}") from e


class RoomStore:
    """
    Base class for room configuration stores.

    Subclasses implement the synchronous hooks. Any exception escaping a hook
    other than :class:`StoreError` is wrapped in one so the session layer
    only ever sees a single failure type.
    """

    name = "base"
    run_inline = False

    def __init__(self, max_workers: int = 4):
        self._executor = (
            None
            if self.run_inline
            else ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix=f"{self.name}-store"
            )
        )

    async def _run(self, func, *args):
        try:
            if self._executor is None:
                return func(*args)
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, func, *args)
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"{self.name} store call failed: {e}")
            raise StoreError(str(e)) from e

    async def get(self, room_id: str) -> Optional[str]:
        """Return the serialized config for a room, or None if absent."""
        return await self._run(self._get, room_id)

    async def put(self, room_id: str, payload: str):
        """Write a room config, replacing any existing one."""
        await self._run(self._put, room_id, payload)

    async def create(self, room_id: str, payload: str) -> bool:
        """
        Write a room config only if the id is free.

        Returns:
            True if the room was written, False if it already existed
        """
        return await self._run(self._create, room_id, payload)

    async def delete(self, room_id: str) -> bool:
        """
        Delete a room config.

        Returns:
            True if a room was deleted, False if it didn't exist
        """
        return await self._run(self._delete, room_id)

    async def close(self):
        """Release backend resources."""
        await self._run(self._close)
        if self._executor is not None:
            self._executor.shutdown(wait=False)

    def _get(self, room_id: str) -> Optional[str]:
        raise NotImplementedError

    def _put(self, room_id: str, payload: str):
        raise NotImplementedError

    def _create(self, room_id: str, payload: str) -> bool:
        raise NotImplementedError

    def _delete(self, room_id: str) -> bool:
        raise NotImplementedError

    def _close(self):
        pass
