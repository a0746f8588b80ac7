"""Block model for the Pryvo backend."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pryvo.utils.helpers import utcnow


class Block(BaseModel):
    id: str
    blocker_id: str
    blocked_id: str
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)
