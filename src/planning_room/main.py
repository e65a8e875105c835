#!/usr/bin/env python3
"""
Planning Room Server

Real-time voting rooms over WebSocket.
"""

import asyncio
import logging
import sys

from .config import ServerConfig
from .session import RoomSessionManager
from .stores import build_store
from .websocket_server import WebSocketServer

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    """Configure root logging for the server process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def run_server(config: ServerConfig):
    """
    Run the planning room server until cancelled.

    Args:
        config: Server settings
    """
    store = build_store(config)
    session_manager = RoomSessionManager(
        store,
        garbage_collect_empty_rooms=config.gc_empty_rooms,
        allow_room_overwrite=config.allow_room_overwrite,
    )
    ws_server = WebSocketServer(
        session_manager, config.host, config.port, allowed_origin=config.app_url
    )

    await ws_server.start()
    logger.info(
        f"Planning room server listening on ws://{config.host}:{config.port} "
        f"with {config.store_backend} store"
    )

    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await ws_server.stop()
        await store.close()
        logger.info("Planning room server stopped")


def main():
    """Main entry point for the planning room server."""
    config = ServerConfig.from_env()
    configure_logging(config.log_level)
    logger.info("Starting planning room server...")

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Shutting down planning room server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
