"""
WebSocket Server for the Planning Room

Handles WebSocket connections from clients and routes their events to the
room session manager.
"""

import json
import logging
from typing import Any, Dict, Optional

from websockets.exceptions import ConnectionClosed
from websockets.asyncio.server import serve

from .errors import RoomSessionError
from .registry import Connection
from .schemas.responses import create_error_response, create_session_error_response
from .session import RoomSessionManager
from .utils.validation import (
    extract_room_id,
    extract_room_payload,
    extract_user_payload,
    extract_vote_payload,
)

logger = logging.getLogger(__name__)


class WebSocketServer:
    """
    WebSocket server for handling client connections.

    Every connection gets its own Connection object. Messages from one
    connection are processed one at a time, in arrival order; when the
    connection closes the session manager cleans up its rooms.
    """

    def __init__(
        self,
        session_manager: RoomSessionManager,
        host: str,
        port: int,
        allowed_origin: Optional[str] = None,
    ):
        """
        Initialize the WebSocket server.

        Args:
            session_manager: The room session manager instance
            host: Host address to bind to
            port: Port to listen on
            allowed_origin: If set, reject handshakes from other origins
        """
        self.session_manager = session_manager
        self.host = host
        self.port = port
        self.allowed_origin = allowed_origin
        self.connections: Dict[Any, Connection] = {}
        self.server = None

        self._handlers = {
            "createUser": self.handle_create_user,
            "enterRoom": self.handle_enter_room,
            "createRoom": self.handle_create_room,
            "leaveRoom": self.handle_leave_room,
            "sendVote": self.handle_send_vote,
            "clearVote": self.handle_clear_vote,
            "getVotes": self.handle_get_votes,
            "resetVotes": self.handle_reset_votes,
        }

    async def start(self):
        """Start the WebSocket server."""
        origins = [self.allowed_origin] if self.allowed_origin else None
        self.server = await serve(
            self.handle_client, self.host, self.port, origins=origins
        )
        logger.info(f"WebSocket server started on ws://{self.host}:{self.port}")

    async def stop(self):
        """Stop the WebSocket server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            logger.info("WebSocket server stopped")

    async def handle_client(self, websocket):
        """
        Handle a client connection.

        Args:
            websocket: The WebSocket connection
        """
        connection = Connection(websocket)
        self.connections[websocket] = connection
        logger.info(f"Client {connection.connection_id} connected")

        try:
            async for message in websocket:
                await self.process_message(connection, message)
        except ConnectionClosed:
            logger.info(f"Client {connection.connection_id} disconnected")
        finally:
            self.connections.pop(websocket, None)
            await self.handle_disconnect(connection)

    async def handle_disconnect(self, connection: Connection):
        """Run room cleanup for a closed connection."""
        try:
            await self.session_manager.on_disconnect(connection)
        except Exception as e:
            logger.error(
                f"Error cleaning up client {connection.connection_id}: {e}"
            )

    async def reply(self, connection: Connection, message: Dict[str, Any]) -> bool:
        """Send an error or notice back to the connection that caused it."""
        return await self.session_manager.dispatcher.unicast(connection, message)

    async def process_message(self, connection: Connection, message: str):
        """
        Process an incoming message from a client.

        Args:
            connection: The client's connection
            message: The message string (JSON)
        """
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON received: {e}")
            await self.reply(
                connection,
                create_error_response("Invalid JSON format", "invalidJson")
            )
            return

        if not isinstance(data, dict):
            await self.reply(
                connection,
                create_error_response("Message must be a JSON object", "invalidJson")
            )
            return

        message_type = data.get("type")
        handler = self._handlers.get(message_type)
        if handler is None:
            logger.warning(f"Unknown message type: {message_type}")
            await self.reply(
                connection,
                create_error_response(
                    f"Unknown message type: {message_type}", "unknownType"
                )
            )
            return

        try:
            await handler(connection, data.get("data"))
        except RoomSessionError as e:
            logger.warning(
                f"{message_type} from {connection.connection_id} rejected: "
                f"{e.event} {e}"
            )
            await self.reply(connection, create_session_error_response(e))
        except Exception as e:
            logger.error(f"Error processing {message_type}: {e}")
            await self.reply(
                connection,
                create_error_response("Internal server error", "internalError")
            )

    async def handle_create_user(self, connection: Connection, data: Any):
        room_id, user = extract_user_payload(data)
        self.session_manager.register_user(connection, room_id, user)

    async def handle_enter_room(self, connection: Connection, data: Any):
        await self.session_manager.enter_room(connection, extract_room_id(data))

    async def handle_create_room(self, connection: Connection, data: Any):
        await self.session_manager.create_room(extract_room_payload(data))

    async def handle_leave_room(self, connection: Connection, data: Any):
        await self.session_manager.leave_room(connection, extract_room_id(data))

    async def handle_send_vote(self, connection: Connection, data: Any):
        room_id, vote = extract_vote_payload(data)
        await self.session_manager.send_vote(connection, room_id, vote)

    async def handle_clear_vote(self, connection: Connection, data: Any):
        await self.session_manager.clear_vote(connection, extract_room_id(data))

    async def handle_get_votes(self, connection: Connection, data: Any):
        await self.session_manager.get_votes(extract_room_id(data))

    async def handle_reset_votes(self, connection: Connection, data: Any):
        await self.session_manager.reset_votes(extract_room_id(data))
