"""
Tests for client WebSocket events.
"""

import pytest

from lifeos.notifications.handlers import JOINED_MESSAGE, WebSocketHandler


@pytest.fixture
def handler(registry):
    return WebSocketHandler(registry)


class TestJoinLeave:
    """Test cases for join and leave events."""

    @pytest.mark.asyncio
    async def test_join_registers_and_acknowledges(self, handler, registry, attach_connection):
        connection = attach_connection()

        response = await handler.handle_message(connection, {"type": "join", "data": {"userId": "u1"}})

        assert response == {"type": "joined", "data": {"message": JOINED_MESSAGE}}
        assert registry.connection_for("u1") is connection

    @pytest.mark.asyncio
    async def test_join_moves_user_to_this_connection(self, handler, registry, attach_connection):
        previous = attach_connection("u1")
        other = attach_connection()

        await handler.handle_message(other, {"type": "join", "data": {"userId": "u1"}})

        assert registry.connection_for("u1") is other
        assert registry.connection_for("u1") is not previous

    @pytest.mark.asyncio
    async def test_join_without_user_id(self, handler, attach_connection):
        response = await handler.handle_message(attach_connection(), {"type": "join", "data": {}})

        assert response["type"] == "error"
        assert "userId" in response["data"]["message"]

    @pytest.mark.asyncio
    async def test_leave_sends_nothing(self, handler, registry, attach_connection):
        connection = attach_connection("u1")

        response = await handler.handle_message(connection, {"type": "leave", "data": {"userId": "u1"}})

        assert response is None
        assert registry.connection_for("u1") is None

    @pytest.mark.asyncio
    async def test_leave_unknown_user(self, handler, attach_connection):
        response = await handler.handle_message(attach_connection(), {"type": "leave", "data": {"userId": "ghost"}})
        assert response is None

    @pytest.mark.asyncio
    async def test_snake_case_user_id(self, handler, registry, attach_connection):
        connection = attach_connection()
        await handler.handle_message(connection, {"type": "join", "data": {"user_id": 7}})
        assert registry.connection_for("7") is connection


class TestOtherMessages:
    """Test cases for ping and malformed input."""

    @pytest.mark.asyncio
    async def test_ping(self, handler, attach_connection):
        response = await handler.handle_message(attach_connection(), {"type": "ping"})

        assert response["type"] == "pong"
        assert "timestamp" in response["data"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message,error",
        [
            (["join"], "JSON object"),
            ({"data": {}}, "type required"),
            ({"type": "subscribe"}, "Unknown message type"),
            ({"type": "join", "data": "u1"}, "data must be"),
        ],
    )
    async def test_malformed(self, handler, attach_connection, message, error):
        response = await handler.handle_message(attach_connection(), message)

        assert response["type"] == "error"
        assert error in response["data"]["message"]
