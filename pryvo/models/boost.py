"""Boost model for the Pryvo backend."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pryvo.utils.helpers import utcnow


class Boost(BaseModel):
    """A time-boxed discovery priority for one user."""

    id: str
    user_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)

    def is_current(self, now: datetime) -> bool:
        """Active flag set and `now` within [start_time, end_time]."""
        return self.is_active and self.start_time <= now <= self.end_time
