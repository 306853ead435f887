"""
Notification resource: stored records plus a live push on creation.
"""

import logging
from typing import List

from lifeos.utils.exceptions import NotificationNotFoundError, ValidationError

from .dispatcher import NotificationDispatcher
from .models import BulkNotificationCreate, Notification, NotificationCreate, utcnow
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """CRUD over notification records.

    Creating a record pushes it to the owner when they are connected. The
    push is best-effort and never fails the create.
    """

    def __init__(self, repository: NotificationRepository, dispatcher: NotificationDispatcher):
        self.repository = repository
        self.dispatcher = dispatcher

    async def create_notification(self, request: NotificationCreate) -> Notification:
        notification = Notification(
            user_id=request.user_id,
            title=request.title,
            message=request.message,
            type=request.type,
            channel=request.channel,
            action_url=request.action_url,
            metadata=request.metadata,
        )
        saved = await self.repository.save(notification)
        logger.info(f"Notification created: {saved.id} (user: {saved.user_id}, type: {saved.type.value})")

        await self.dispatcher.dispatch_to_user(saved.user_id, saved.to_message())
        return saved

    async def send_bulk_notification(self, request: BulkNotificationCreate) -> List[Notification]:
        if not request.user_ids:
            raise ValidationError("userIds must not be empty", details={"field": "userIds"})

        created = []
        for user_id in request.user_ids:
            created.append(
                await self.create_notification(
                    NotificationCreate(
                        user_id=user_id,
                        title=request.title,
                        message=request.message,
                        type=request.type,
                        channel=request.channel,
                    )
                )
            )
        return created

    async def get_user_notifications(self, user_id: str, limit: int = 50, offset: int = 0) -> List[Notification]:
        return await self.repository.list_for_user(user_id, limit=limit, offset=offset)

    async def get_unread_count(self, user_id: str) -> int:
        return await self.repository.count_unread(user_id)

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        notification = await self.repository.get(notification_id, user_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id, user_id)

        notification.is_read = True
        notification.read_at = utcnow()
        saved = await self.repository.save(notification)
        logger.info(f"Notification marked as read: {notification_id} (user: {user_id})")
        return saved

    async def mark_all_as_read(self, user_id: str) -> int:
        updated = await self.repository.mark_all_read(user_id, utcnow())
        logger.info(f"Marked {updated} notifications as read (user: {user_id})")
        return updated

    async def delete_notification(self, notification_id: str, user_id: str) -> None:
        if not await self.repository.delete(notification_id, user_id):
            raise NotificationNotFoundError(notification_id, user_id)
        logger.info(f"Notification deleted: {notification_id} (user: {user_id})")
