"""Compatibility score models."""

from typing import Optional

from pydantic import BaseModel


class CompatibilityBreakdown(BaseModel):
    """Itemised sub-scores behind a compatibility score."""

    gender_match: bool = False
    intention_score: float = 0
    relationship_type_score: float = 0
    lifestyle_score: float = 0
    lifestyle_ratio: Optional[float] = None
    family_plans_score: float = 0
    distance_km: Optional[float] = None
    distance_score: float = 0


class CompatibilityResult(BaseModel):
    score: float
    max_score: float
    percentage: int
    passed: bool
    breakdown: CompatibilityBreakdown
