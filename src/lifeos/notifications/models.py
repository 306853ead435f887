"""
Notification payloads and records.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic import ValidationError as PydanticValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationType(str, Enum):
    """Display kind of a notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationChannel(str, Enum):
    """Delivery channel requested for a notification."""

    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"


class NotificationMessage(BaseModel):
    """Known notification shape pushed to clients.

    Field names are camelCase on the wire to match the web and mobile
    clients; extra fields are kept so nothing a producer sends is lost.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    type: NotificationType = NotificationType.INFO
    title: str
    message: str
    channel: NotificationChannel = NotificationChannel.IN_APP
    action_url: Optional[str] = Field(default=None, alias="actionUrl")
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class OpaquePayload(BaseModel):
    """Anything that is not a NotificationMessage; relayed untouched."""

    data: Dict[str, Any]


NotificationPayload = Union[NotificationMessage, OpaquePayload]


def parse_payload(data: Mapping[str, Any]) -> NotificationPayload:
    """Classify a raw payload as a known notification or an opaque one."""
    try:
        return NotificationMessage.model_validate(data)
    except PydanticValidationError:
        return OpaquePayload(data=dict(data))


def encode_payload(payload: Union[NotificationPayload, Mapping[str, Any]]) -> Dict[str, Any]:
    """Render a payload as the JSON object sent in a ``notification`` frame."""
    if isinstance(payload, OpaquePayload):
        return dict(payload.data)
    if isinstance(payload, NotificationMessage):
        return payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True)
    return dict(payload)


class Notification(BaseModel):
    """Stored notification record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    channel: NotificationChannel = NotificationChannel.IN_APP
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    read_at: Optional[datetime] = None

    def to_message(self) -> NotificationMessage:
        """The subset of the record that is pushed live."""
        return NotificationMessage(
            id=self.id,
            type=self.type,
            title=self.title,
            message=self.message,
            channel=self.channel,
            action_url=self.action_url,
            created_at=self.created_at,
        )


# REST request bodies


class NotificationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    title: str = Field(..., min_length=1)
    message: str
    type: NotificationType = NotificationType.INFO
    channel: NotificationChannel = NotificationChannel.IN_APP
    action_url: Optional[str] = Field(default=None, alias="actionUrl")
    metadata: Optional[Dict[str, Any]] = None


class BulkNotificationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_ids: List[str] = Field(..., alias="userIds")
    title: str = Field(..., min_length=1)
    message: str
    type: NotificationType = NotificationType.INFO
    channel: NotificationChannel = NotificationChannel.IN_APP


class UserRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
