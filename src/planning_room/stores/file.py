"""
File-system room store.

One JSON file per room under a directory. Writes go to a temp file that is
atomically moved into place, so readers never see a partial config.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from .base import RoomStore

logger = logging.getLogger(__name__)


class FileRoomStore(RoomStore):
    """
    Room store keeping each config in ``<directory>/room-<digest>.json``.

    File names use the SHA-256 of the id so any valid id fits the
    filesystem's name length limit.
    """

    name = "file"

    def __init__(self, directory: Path, max_workers: int = 4):
        super().__init__(max_workers=max_workers)
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, room_id: str) -> Path:
        digest = hashlib.sha256(room_id.encode("utf-8", "surrogatepass")).hexdigest()
        return self.directory / f"room-{digest}.json"

    def _get(self, room_id: str) -> Optional[str]:
        try:
            return self._path(room_id).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _put(self, room_id: str, payload: str):
        path = self._path(room_id)
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=self.directory, prefix=".room-", suffix=".tmp"
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as fp:
                fp.write(payload)
            os.replace(tmp_path, path)
            logger.debug(f"Room {room_id} written to {path}")
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _create(self, room_id: str, payload: str) -> bool:
        path = self._path(room_id)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(payload)
        return True

    def _delete(self, room_id: str) -> bool:
        try:
            self._path(room_id).unlink()
            return True
        except FileNotFoundError:
            return False
