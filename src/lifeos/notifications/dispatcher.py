"""
Best-effort fan-out of notifications to live connections.

Delivery is at-most-once. Nothing is queued, retried or persisted for users
who are offline, and a failing push is never reported to the producer: the
stored notification record stays the authoritative copy.
"""

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from lifeos.infrastructure.monitoring.metrics import MetricsCollector, metrics as default_metrics

from .connections import DEFAULT_QUEUE_SIZE, Connection, QueueConnection
from .models import NotificationPayload, encode_payload
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"

Payload = Union[NotificationPayload, Mapping[str, Any]]


class Subscription(QueueConnection):
    """Pushes for one user, consumed with ``async for`` or ``await get()``."""

    def __init__(self, dispatcher: "NotificationDispatcher", user_id: str, maxsize: int = DEFAULT_QUEUE_SIZE):
        super().__init__(maxsize=maxsize)
        self.user_id = user_id
        self._dispatcher = dispatcher

    async def close(self, code: int = 1000) -> None:
        if not self.closed:
            self._dispatcher.registry.detach(self.connection_id)
        await super().close(code)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class NotificationDispatcher:
    """Pushes notification payloads through the connection registry."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.registry = registry
        self.metrics = metrics or default_metrics

    async def _push(self, connection: Connection, data: dict, scope: str) -> bool:
        try:
            await connection.send(NOTIFICATION_EVENT, data)
        except asyncio.QueueFull:
            logger.warning(f"Subscriber {connection.connection_id} is full, notification dropped")
            self.metrics.record_drop("queue_full")
            return False
        except Exception as e:
            logger.warning(f"Push to connection {connection.connection_id} failed: {e}")
            self.metrics.record_drop("send_failed")
            return False

        self.metrics.record_push(scope)
        return True

    async def dispatch_to_user(self, user_id: str, payload: Payload) -> bool:
        """Push ``payload`` to the user's live connection.

        Returns whether a push happened; an offline user is not an error.
        """
        connection = self.registry.connection_for(user_id)
        if connection is None:
            logger.debug(f"User {user_id} offline, notification not pushed")
            self.metrics.record_drop("offline")
            return False

        return await self._push(connection, encode_payload(payload), "user")

    async def dispatch_to_users(self, user_ids: Iterable[str], payload: Payload) -> None:
        """Push to each user in turn; partial delivery is normal."""
        for user_id in user_ids:
            await self.dispatch_to_user(user_id, payload)

    async def broadcast(self, payload: Payload) -> int:
        """Push once to every registered connection. Returns the push count."""
        data = encode_payload(payload)
        delivered = 0
        for connection in self.registry.registered_connections():
            if await self._push(connection, data, "broadcast"):
                delivered += 1
        return delivered

    def subscribe(self, user_id: str, maxsize: int = DEFAULT_QUEUE_SIZE) -> Subscription:
        """Register an in-process subscriber for ``user_id``.

        Like any other connection it replaces the user's previous entry.
        Pushes beyond ``maxsize`` unread items are dropped.
        """
        subscription = Subscription(self, user_id, maxsize=maxsize)
        self.registry.attach(subscription)
        self.registry.register(user_id, subscription.connection_id)
        return subscription
