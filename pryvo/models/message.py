"""Message model for the Pryvo backend."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pryvo.utils.helpers import utcnow


class MessageStatus(str, Enum):
    """Delivery status. Only ever moves forward: sent -> delivered -> seen."""

    SENT = "sent"
    DELIVERED = "delivered"
    SEEN = "seen"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def can_advance_to(self, other: "MessageStatus") -> bool:
        return other.rank > self.rank


_STATUS_RANK = {MessageStatus.SENT: 0, MessageStatus.DELIVERED: 1, MessageStatus.SEEN: 2}


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class Message(BaseModel):
    """Message model."""

    id: str
    match_id: str
    sender_id: str
    receiver_id: str
    text: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[MediaKind] = None
    status: MessageStatus = MessageStatus.SENT
    created_at: datetime = Field(default_factory=utcnow)
    seen_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ConversationSummary(BaseModel):
    """Last message and unread count for one match."""

    match_id: str
    last_message: Optional[Message] = None
    unread_count: int = 0
