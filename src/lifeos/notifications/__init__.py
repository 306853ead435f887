"""
Real-time notification fan-out for LifeOS.
"""

from .dispatcher import NotificationDispatcher, Subscription
from .models import NotificationMessage, NotificationType, OpaquePayload
from .registry import ConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "NotificationDispatcher",
    "NotificationMessage",
    "NotificationType",
    "OpaquePayload",
    "Subscription",
]
