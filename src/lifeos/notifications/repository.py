"""
Notification record storage.

The relational store used in production lives outside this package; the
in-memory repository here backs development, tests and single-node setups.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional

from .models import Notification

logger = logging.getLogger(__name__)


class NotificationRepository(ABC):
    """Storage interface for notification records."""

    @abstractmethod
    async def save(self, notification: Notification) -> Notification:
        """Insert or replace a record and return it."""

    @abstractmethod
    async def get(self, notification_id: str, user_id: str) -> Optional[Notification]:
        """Record ``notification_id`` if it belongs to ``user_id``."""

    @abstractmethod
    async def list_for_user(self, user_id: str, limit: int, offset: int) -> List[Notification]:
        """Page of the user's records, newest first."""

    @abstractmethod
    async def count_unread(self, user_id: str) -> int:
        """Number of unread records for the user."""

    @abstractmethod
    async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
        """Mark every unread record read; returns how many changed."""

    @abstractmethod
    async def delete(self, notification_id: str, user_id: str) -> bool:
        """Delete a record owned by ``user_id``; False when absent."""


class InMemoryNotificationRepository(NotificationRepository):
    """In-memory notification repository for development/testing."""

    def __init__(self, max_notifications: int = 10000):
        """Initialize repository.

        Args:
            max_notifications: Maximum number of records kept; the oldest
                record is evicted first
        """
        self._notifications: "OrderedDict[str, Notification]" = OrderedDict()
        self._max_notifications = max_notifications
        self._lock = asyncio.Lock()

    async def save(self, notification: Notification) -> Notification:
        async with self._lock:
            if (
                notification.id not in self._notifications
                and len(self._notifications) >= self._max_notifications
            ):
                evicted, _ = self._notifications.popitem(last=False)
                logger.debug(f"Notification evicted: {evicted}")

            self._notifications[notification.id] = notification.model_copy()
            return notification

    async def get(self, notification_id: str, user_id: str) -> Optional[Notification]:
        async with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is None or notification.user_id != user_id:
                return None
            return notification.model_copy()

    async def list_for_user(self, user_id: str, limit: int, offset: int) -> List[Notification]:
        async with self._lock:
            owned = [n for n in self._notifications.values() if n.user_id == user_id]

        owned.sort(key=lambda n: n.created_at, reverse=True)
        return [n.model_copy() for n in owned[offset : offset + limit]]

    async def count_unread(self, user_id: str) -> int:
        async with self._lock:
            return sum(
                1 for n in self._notifications.values() if n.user_id == user_id and not n.is_read
            )

    async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
        async with self._lock:
            updated = 0
            for notification in self._notifications.values():
                if notification.user_id == user_id and not notification.is_read:
                    notification.is_read = True
                    notification.read_at = read_at
                    updated += 1
            return updated

    async def delete(self, notification_id: str, user_id: str) -> bool:
        async with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is None or notification.user_id != user_id:
                return False
            del self._notifications[notification_id]
            return True

    def __len__(self) -> int:
        return len(self._notifications)


def create_repository(backend: str = "memory", **kwargs) -> NotificationRepository:
    if backend == "memory":
        return InMemoryNotificationRepository(**kwargs)
    raise ValueError(f"Unknown notification repository backend: {backend}")
