"""
Relational room store built on SQLAlchemy Core.

The ``rooms`` table holds one row per room with the config as JSON text.
"""

import logging
from typing import Optional

from sqlalchemy import (
    Column,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from .base import RoomStore

logger = logging.getLogger(__name__)

metadata = MetaData()

rooms_table = Table(
    "rooms",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("config", Text, nullable=False),
)


class SqlRoomStore(RoomStore):
    """Room store backed by any database SQLAlchemy can talk to."""

    name = "sql"

    def __init__(
        self,
        url: str = "sqlite:///rooms.db",
        engine: Optional[Engine] = None,
        max_workers: int = 4,
    ):
        super().__init__(max_workers=max_workers)
        if engine is None:
            connect_args = {}
            if url.startswith("sqlite"):
                # Calls arrive from the store's worker threads.
                connect_args["check_same_thread"] = False
            engine = create_engine(url, connect_args=connect_args)
        self.engine = engine
        metadata.create_all(self.engine)
        logger.info(f"Initializing SqlRoomStore on {self.engine.url!r}")

    def _get(self, room_id: str) -> Optional[str]:
        with self.engine.connect() as conn:
            return conn.execute(
                select(rooms_table.c.config).where(rooms_table.c.id == room_id)
            ).scalar_one_or_none()

    def _put(self, room_id: str, payload: str):
        # A delete can land between the failed insert and the update; go
        # round again until one of them writes the row.
        while not self._create(room_id, payload):
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(rooms_table)
                    .where(rooms_table.c.id == room_id)
                    .values(config=payload)
                )
                if result.rowcount > 0:
                    return
            logger.debug(f"Room {room_id} vanished during put, retrying insert")

    def _create(self, room_id: str, payload: str) -> bool:
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(rooms_table).values(id=room_id, config=payload))
        except IntegrityError:
            return False
        return True

    def _delete(self, room_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(rooms_table).where(rooms_table.c.id == room_id)
            )
            return result.rowcount > 0

    def _close(self):
        self.engine.dispose()
