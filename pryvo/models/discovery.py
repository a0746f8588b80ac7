"""Discovery request and result models."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from pryvo.models.compatibility import CompatibilityResult
from pryvo.models.profile import Profile


class SortBy(str, Enum):
    SCORE = "score"
    DISTANCE = "distance"
    RECENCY = "recency"

    @classmethod
    def _missing_(cls, value: object) -> Optional["SortBy"]:
        # older clients send "recent"
        if value == "recent":
            return cls.RECENCY
        return None


class DiscoveryFilters(BaseModel):
    """Premium-only exact-match filters."""

    education_level: Optional[str] = None
    drink: Optional[str] = None
    smoke_tobacco: Optional[str] = None
    smoke_weed: Optional[str] = None
    religious_beliefs: Optional[str] = None
    political_beliefs: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())

    def matches(self, profile: Profile) -> bool:
        wanted: Dict[str, Any] = self.model_dump(exclude_none=True)
        for field, value in wanted.items():
            if field == "education_level":
                actual = profile.personal_details.education_level
            else:
                actual = getattr(profile.lifestyle, field)
            if actual != value:
                return False
        return True


class DiscoveryOptions(BaseModel):
    min_score_percent: int = Field(default=0, ge=0, le=100)
    max_distance_km: Optional[float] = Field(default=None, gt=0)
    sort_by: SortBy = SortBy.SCORE
    limit: Optional[int] = Field(default=None, gt=0)
    filters: Optional[DiscoveryFilters] = None


class DiscoveryCandidate(BaseModel):
    """One ranked entry in a viewer's discovery feed."""

    profile: Profile
    age: Optional[int] = None
    compatibility: CompatibilityResult
    distance_km: Optional[float] = None
    is_boosted: bool = False

    @property
    def user_id(self) -> str:
        return self.profile.user_id

    @property
    def percentage(self) -> int:
        return self.compatibility.percentage
