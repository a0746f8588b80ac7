"""Profile persistence, including one-time migration of legacy document shapes."""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pryvo.database.schema import ProfileDB
from pryvo.database.statements import insert_ignore
from pryvo.models.profile import Profile
from pryvo.utils.errors import ConflictError
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

# Columns kept outside of the JSON document.
_ROW_FIELDS = {"id", "user_id", "is_paused", "is_hidden", "created_at", "updated_at"}


def normalize_profile_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rewrite legacy profile documents into the current shape.

    Handles, in order:
    - top-level `photos` (list of URLs) and nested `media.media` lists -> `media`
    - GeoJSON `location.coordinates` ([lon, lat]) -> `location.latitude/longitude`
    - `personalDetails.children` -> `personalDetails.familyPlans`
    - `lifestyle.useDrugs` -> `lifestyle.drugs`
    - `datingIntention` / `relationshipType` stored outside `datingPreferences`

    The input is not modified.
    """
    doc = {key: (dict(value) if isinstance(value, dict) else value) for key, value in doc.items()}

    media = doc.get("media")
    if isinstance(media, dict):
        media = media.get("media") or []
    if not media and doc.get("photos"):
        media = [{"type": "image", "url": url} for url in doc["photos"] if isinstance(url, str)]
    doc.pop("photos", None)
    doc["media"] = [item for item in (media or []) if isinstance(item, dict) and item.get("url")]

    location = doc.get("location")
    if isinstance(location, dict) and "coordinates" in location:
        coords = location.get("coordinates") or []
        # [0, 0] is the legacy store's default for "never set"
        if len(coords) == 2 and None not in coords and list(coords) != [0, 0]:
            doc["location"] = {"latitude": float(coords[1]), "longitude": float(coords[0])}
        else:
            doc["location"] = None

    details = doc.get("personalDetails")
    if isinstance(details, dict) and "children" in details:
        children = details.pop("children")
        details.setdefault("familyPlans", children)

    lifestyle = doc.get("lifestyle")
    if isinstance(lifestyle, dict) and "useDrugs" in lifestyle:
        use_drugs = lifestyle.pop("useDrugs")
        lifestyle.setdefault("drugs", use_drugs)

    prefs = doc.get("datingPreferences")
    if not isinstance(prefs, dict):
        prefs = {}
    for key in ("datingIntention", "relationshipType"):
        if prefs.get(key):
            continue
        for section in ("basicInfo", "personalDetails", "lifestyle"):
            value = doc.get(section, {}).get(key) if isinstance(doc.get(section), dict) else None
            if value:
                prefs[key] = value
                break
        else:
            if doc.get(key):
                prefs[key] = doc[key]
        doc.pop(key, None)
    doc["datingPreferences"] = prefs

    return doc


def profile_to_document(profile: Profile) -> Dict[str, Any]:
    return profile.model_dump(mode="json", by_alias=True, exclude=_ROW_FIELDS)


def profile_from_row(row: ProfileDB) -> Profile:
    doc = normalize_profile_document(row.data or {})
    doc.update(
        {
            "id": row.id,
            "userId": row.user_id,
            "isPaused": row.is_paused,
            "isHidden": row.is_hidden,
            "createdAt": row.created_at,
            "updatedAt": row.updated_at,
        }
    )
    return Profile.model_validate(doc)


async def get_profile(session: AsyncSession, user_id: str) -> Optional[Profile]:
    result = await session.execute(select(ProfileDB).where(ProfileDB.user_id == user_id))
    row = result.scalar_one_or_none()
    return profile_from_row(row) if row else None


async def list_profiles(session: AsyncSession, exclude_user_id: Optional[str] = None) -> List[Profile]:
    """
    Load every profile except `exclude_user_id`.

    Rows that no longer validate are logged and skipped so one corrupt
    document never empties a caller's result.
    """
    query = select(ProfileDB)
    if exclude_user_id is not None:
        query = query.where(ProfileDB.user_id != exclude_user_id)
    result = await session.execute(query)

    profiles: List[Profile] = []
    for row in result.scalars():
        try:
            profiles.append(profile_from_row(row))
        except ValueError as e:
            logger.warning("Skipping unreadable profile", user_id=row.user_id, error=str(e))
    return profiles


async def insert_profile(session: AsyncSession, profile: Profile) -> Profile:
    """
    Insert a new profile.

    Raises:
        ConflictError: If the user already has a profile.
    """
    inserted = await insert_ignore(
        session,
        ProfileDB,
        {
            "id": profile.id,
            "user_id": profile.user_id,
            "data": profile_to_document(profile),
            "is_paused": profile.is_paused,
            "is_hidden": profile.is_hidden,
            "created_at": profile.created_at,
            "updated_at": profile.updated_at,
        },
        ("user_id",),
    )
    if not inserted:
        raise ConflictError(f"Profile already exists for user: {profile.user_id}", details={"user_id": profile.user_id})
    return profile


async def replace_profile(session: AsyncSession, profile: Profile) -> Optional[Profile]:
    """Overwrite the stored document for `profile.user_id`. Returns None if there is no row."""
    result = await session.execute(select(ProfileDB).where(ProfileDB.user_id == profile.user_id))
    row = result.scalar_one_or_none()
    if row is None:
        return None
    row.data = profile_to_document(profile)
    row.is_paused = profile.is_paused
    row.is_hidden = profile.is_hidden
    row.updated_at = profile.updated_at
    await session.flush()
    return profile_from_row(row)
