"""Profile comment (icebreaker) model for the Pryvo backend."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pryvo.models.match import Match
from pryvo.models.swipe import LikedContentType
from pryvo.utils.helpers import utcnow


class CommentStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class CommentResponse(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class CommentTarget(BaseModel):
    type: LikedContentType = LikedContentType.PROFILE
    photo_index: Optional[int] = None
    photo_url: Optional[str] = None
    prompt_id: Optional[str] = None
    prompt_question: Optional[str] = None
    prompt_answer: Optional[str] = None


class ProfileComment(BaseModel):
    """A comment left on someone's profile; accepting it creates a match."""

    id: str
    sender_id: str
    receiver_id: str
    comment: str
    target_content: CommentTarget = Field(default_factory=CommentTarget)
    status: CommentStatus = CommentStatus.PENDING
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    responded_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CommentResult(BaseModel):
    comment: ProfileComment
    match: Optional[Match] = None
    remaining_comments: Optional[int] = None
