"""Models for swipe actions: likes, passes and their outcomes."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pryvo.models.match import Match
from pryvo.utils.helpers import utcnow


class SwipeAction(str, Enum):
    LIKE = "like"
    PASS = "pass"


class LikedContentType(str, Enum):
    PROFILE = "profile"
    PHOTO = "photo"
    PROMPT = "prompt"


class LikedContent(BaseModel):
    """The part of a profile a like was aimed at."""

    type: LikedContentType = LikedContentType.PROFILE
    photo_index: Optional[int] = None
    photo_url: Optional[str] = None
    prompt_id: Optional[str] = None
    prompt_question: Optional[str] = None
    prompt_answer: Optional[str] = None
    comment: Optional[str] = Field(default=None, max_length=200)


class Like(BaseModel):
    """Represents a 'Like' action from one user to another."""

    id: str
    sender_id: str = Field(..., description="ID of the user performing the like action.")
    receiver_id: str = Field(..., description="ID of the user being liked.")
    liked_content: Optional[LikedContent] = None
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="before")
    @classmethod
    def check_self_like(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        if isinstance(values, dict) and values.get("sender_id") and values.get("sender_id") == values.get("receiver_id"):
            raise ValueError("Sender and receiver cannot be the same user.")
        return values

    model_config = ConfigDict(frozen=True, from_attributes=True)


class Pass(BaseModel):
    """Represents a 'Pass' action from one user to another."""

    id: str
    user_id: str = Field(..., description="ID of the user passing.")
    passed_user_id: str = Field(..., description="ID of the user being passed on.")
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(frozen=True, from_attributes=True)


class LikeResult(BaseModel):
    """Outcome of `like()`."""

    is_match: bool = False
    already_liked: bool = False
    match: Optional[Match] = None
    likes_remaining: Optional[int] = None


class UndoResult(BaseModel):
    """Which swipe `undo()` removed."""

    action: SwipeAction
    target_id: str
    swiped_at: datetime
