"""
WebSocket message handlers for client events.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .connections import Connection
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

JOINED_MESSAGE = "Successfully joined notification room"


def _user_id(data: Dict[str, Any]) -> Optional[str]:
    user_id = data.get("userId") or data.get("user_id")
    return str(user_id) if user_id else None


def error_frame(message: str) -> Dict[str, Any]:
    return {"type": "error", "data": {"message": message}}


class WebSocketHandler:
    """Handle the events a client may send on a notification connection."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

        self.handlers = {
            "join": self.handle_join,
            "leave": self.handle_leave,
            "ping": self.handle_ping,
        }

    async def handle_message(
        self,
        connection: Connection,
        message: Any,
    ) -> Optional[Dict[str, Any]]:
        """Route message to appropriate handler."""
        if not isinstance(message, dict):
            return error_frame("Message must be a JSON object")

        msg_type = message.get("type")
        if not msg_type:
            return error_frame("Message type required")

        handler = self.handlers.get(msg_type)
        if not handler:
            return error_frame(f"Unknown message type: {msg_type}")

        data = message.get("data") or {}
        if not isinstance(data, dict):
            return error_frame("Message data must be a JSON object")

        return await handler(connection, data)

    async def handle_join(self, connection: Connection, data: Dict[str, Any]) -> Dict[str, Any]:
        """Re-associate this connection with a user id."""
        user_id = _user_id(data)
        if not user_id:
            return error_frame("userId required")

        self.registry.register(user_id, connection.connection_id)
        return {"type": "joined", "data": {"message": JOINED_MESSAGE}}

    async def handle_leave(self, connection: Connection, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Drop the association for a user id; nothing is sent back."""
        user_id = _user_id(data)
        if not user_id:
            return error_frame("userId required")

        if self.registry.leave(user_id):
            logger.info(f"User {user_id} left via connection {connection.connection_id}")
        return None

    async def handle_ping(self, connection: Connection, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "type": "pong",
            "data": {"timestamp": datetime.now(timezone.utc).isoformat()},
        }
