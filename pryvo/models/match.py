"""Match model for the Pryvo backend."""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from pryvo.utils.helpers import utcnow


class MatchStatus(str, Enum):
    """
    Match status enumeration.

    Optional lifecycle marker; most matches never leave ACTIVE.
    """

    ACTIVE = "active"
    EXPIRED = "expired"
    SECURED = "secured"
    UNMATCHED = "unmatched"


class MatchOrigin(str, Enum):
    """How the match came to be."""

    LIKE = "like"
    COMMENT = "comment"


class Match(BaseModel):
    """
    Match model.

    An unordered pair of users. The pair is stored in canonical order
    (`user_low` <= `user_high`) so the store can enforce one row per pair.
    """

    id: str
    user_low: str
    user_high: str
    created_at: datetime = Field(default_factory=utcnow)
    chat_enabled: bool = True
    call_enabled: bool = True
    status: Optional[MatchStatus] = MatchStatus.ACTIVE
    expires_at: Optional[datetime] = None
    initiated_by: MatchOrigin = MatchOrigin.LIKE
    comment_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def users(self) -> Tuple[str, str]:
        return (self.user_low, self.user_high)

    def has_member(self, user_id: str) -> bool:
        return user_id in self.users

    def other_member(self, user_id: str) -> str:
        """
        Return the member that is not `user_id`.

        Raises:
            ValueError: If `user_id` is not part of the match.
        """
        if user_id == self.user_low:
            return self.user_high
        if user_id == self.user_high:
            return self.user_low
        raise ValueError(f"{user_id} is not a member of match {self.id}")


class MatchView(BaseModel):
    """A match as presented to one of its members."""

    match_id: str
    users: List[str]
    their_id: str
    their_name: Optional[str] = None
    their_photo: Optional[str] = None
    created_at: datetime
    chat_enabled: bool
    call_enabled: bool
