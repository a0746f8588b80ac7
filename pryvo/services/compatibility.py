"""Compatibility scoring between two profiles.

Pure functions: no I/O, no clock, no state. The weights are fixed; see
`MAX_SCORE` for the denominator every percentage is taken against.
"""

import math
from typing import Optional

from pryvo.models.compatibility import CompatibilityBreakdown, CompatibilityResult
from pryvo.models.profile import PREFER_NOT_TO_SAY, Profile
from pryvo.utils.geo import distance_km

GENDER_WEIGHT = 30
INTENTION_WEIGHT = 20
INTENTION_BUCKET_SCORE = 15
INTENTION_OPEN_SCORE = 10
RELATIONSHIP_WEIGHT = 15
LIFESTYLE_WEIGHT = 20
FAMILY_PLANS_WEIGHT = 15
FAMILY_PLANS_UNSURE_SCORE = 8
DISTANCE_WEIGHT = 10

MAX_SCORE = GENDER_WEIGHT + INTENTION_WEIGHT + RELATIONSHIP_WEIGHT + LIFESTYLE_WEIGHT + FAMILY_PLANS_WEIGHT + DISTANCE_WEIGHT

LIFESTYLE_FIELDS = ("drink", "smoke_tobacco", "smoke_weed", "drugs", "political_beliefs", "religious_beliefs")

# (exclusive upper bound in km, points)
DISTANCE_BANDS = ((5.0, 10), (10.0, 8), (20.0, 5), (50.0, 2))

UNDECIDED_INTENTION = "Figuring out my dating goals"
FAMILY_UNSURE = "Not sure yet"
FAMILY_WANT = "Want children"
FAMILY_DONT_WANT = "Don't want children"


def gender_gate(viewer: Profile, candidate: Profile) -> bool:
    """Both sides want to date someone of the other's gender."""
    return viewer.dating_preferences.accepts(candidate.basic_info.gender) and candidate.dating_preferences.accepts(
        viewer.basic_info.gender
    )


def intention_score(mine: Optional[str], theirs: Optional[str]) -> float:
    if not mine or not theirs:
        return 0
    if mine == theirs:
        return INTENTION_WEIGHT
    for bucket in ("Long-term", "Short-term"):
        if bucket in mine and bucket in theirs:
            return INTENTION_BUCKET_SCORE
    if _is_open_ended(mine) or _is_open_ended(theirs):
        return INTENTION_OPEN_SCORE
    return 0


def _is_open_ended(intention: str) -> bool:
    return "open to" in intention or intention == UNDECIDED_INTENTION


def relationship_type_score(mine: Optional[str], theirs: Optional[str]) -> float:
    if mine and theirs and mine == theirs:
        return RELATIONSHIP_WEIGHT
    return 0


def lifestyle_ratio(viewer: Profile, candidate: Profile) -> Optional[float]:
    """
    Share of comparable lifestyle answers that agree.

    A field is comparable when both sides answered it with something other
    than "Prefer not to say". Returns None when no field is comparable.
    """
    comparable = 0
    agreeing = 0
    for field in LIFESTYLE_FIELDS:
        mine = getattr(viewer.lifestyle, field)
        theirs = getattr(candidate.lifestyle, field)
        if not mine or not theirs or mine == PREFER_NOT_TO_SAY or theirs == PREFER_NOT_TO_SAY:
            continue
        comparable += 1
        if mine == theirs:
            agreeing += 1
    if comparable == 0:
        return None
    return agreeing / comparable


def family_plans_score(mine: Optional[str], theirs: Optional[str]) -> float:
    if not mine or not theirs:
        return 0
    if mine == theirs or (mine, theirs) in ((FAMILY_WANT, FAMILY_WANT), (FAMILY_DONT_WANT, FAMILY_DONT_WANT)):
        return FAMILY_PLANS_WEIGHT
    if FAMILY_UNSURE in (mine, theirs):
        return FAMILY_PLANS_UNSURE_SCORE
    return 0


def distance_score(distance: Optional[float]) -> float:
    if distance is None:
        return 0
    for upper, points in DISTANCE_BANDS:
        if distance < upper:
            return points
    return 0


def to_percentage(score: float, max_score: float = MAX_SCORE) -> int:
    """Round half up, so 0.5 always goes to 1 regardless of parity."""
    if max_score <= 0:
        return 0
    return int(math.floor(100 * score / max_score + 0.5))


def score_compatibility(viewer: Profile, candidate: Profile) -> CompatibilityResult:
    """
    Score how well `candidate` suits `viewer`.

    The gender gate is checked first; if it fails nothing else is computed and
    the result is zero with `passed=False`. Everything after the gate is
    additive and tolerant of missing data. Proximity always counts towards
    `max_score`, so users without coordinates are never normalised upwards.

    Args:
        viewer (Profile): The profile doing the looking.
        candidate (Profile): The profile being scored.

    Returns:
        CompatibilityResult: Total, percentage and an itemised breakdown.
    """
    if not gender_gate(viewer, candidate):
        return CompatibilityResult(
            score=0, max_score=MAX_SCORE, percentage=0, passed=False, breakdown=CompatibilityBreakdown()
        )

    breakdown = CompatibilityBreakdown(gender_match=True)
    mine, theirs = viewer.dating_preferences, candidate.dating_preferences

    breakdown.intention_score = intention_score(mine.dating_intention, theirs.dating_intention)
    breakdown.relationship_type_score = relationship_type_score(mine.relationship_type, theirs.relationship_type)

    ratio = lifestyle_ratio(viewer, candidate)
    breakdown.lifestyle_ratio = ratio
    breakdown.lifestyle_score = LIFESTYLE_WEIGHT * ratio if ratio is not None else 0

    breakdown.family_plans_score = family_plans_score(
        viewer.personal_details.family_plans, candidate.personal_details.family_plans
    )

    breakdown.distance_km = distance_km(viewer.coordinates, candidate.coordinates)
    breakdown.distance_score = distance_score(breakdown.distance_km)

    score = (
        GENDER_WEIGHT
        + breakdown.intention_score
        + breakdown.relationship_type_score
        + breakdown.lifestyle_score
        + breakdown.family_plans_score
        + breakdown.distance_score
    )
    return CompatibilityResult(
        score=score, max_score=MAX_SCORE, percentage=to_percentage(score), passed=True, breakdown=breakdown
    )
