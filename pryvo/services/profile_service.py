"""Profile service: cached reads and validated writes."""

from typing import Any, Dict, List, Optional

import sentry_sdk

from pryvo.config import Settings, settings
from pryvo.database import profiles as profile_store
from pryvo.database.connection import Database
from pryvo.models.profile import Profile
from pryvo.utils.cache import RedisCache
from pryvo.utils.errors import ProfileNotFoundError, ValidationError
from pryvo.utils.helpers import Clock, new_id, utcnow
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)

# Cache keys
PROFILE_CACHE_KEY = "profile:{user_id}"

_SECTIONS = ("basicInfo", "datingPreferences", "lifestyle", "personalDetails")


class ProfileService:
    """Reads go through the cache; every write invalidates it."""

    def __init__(
        self, db: Database, cache: RedisCache, clock: Clock = utcnow, config: Settings = settings
    ) -> None:
        self.db = db
        self.cache = cache
        self.clock = clock
        self.config = config

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        with sentry_sdk.start_span(op="profile.get", name=user_id) as span:
            cache_key = PROFILE_CACHE_KEY.format(user_id=user_id)
            cached = await self.cache.get_model(cache_key, Profile)
            if cached is not None:
                span.set_data("source", "cache")
                return cached

            async with self.db.session("profile.get") as session:
                profile = await profile_store.get_profile(session, user_id)

            if profile is not None:
                await self.cache.set(cache_key, profile, expiration=self.config.PROFILE_CACHE_TTL_SECONDS)
            span.set_data("source", "database")
            return profile

    async def require_profile(self, user_id: str) -> Profile:
        """
        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        profile = await self.get_profile(user_id)
        if profile is None:
            logger.warning("Profile not found", user_id=user_id)
            raise ProfileNotFoundError(f"Profile not found: {user_id}", details={"user_id": user_id})
        return profile

    async def list_profiles(self, exclude_user_id: Optional[str] = None) -> List[Profile]:
        with sentry_sdk.start_span(op="profile.list") as span:
            async with self.db.session("profile.list") as session:
                profiles = await profile_store.list_profiles(session, exclude_user_id)
            span.set_data("count", len(profiles))
            return profiles

    async def save_profile(self, user_id: str, data: Dict[str, Any]) -> Profile:
        """
        Create the user's single profile.

        Raises:
            ValidationError: If `data` does not describe a valid profile.
            ConflictError: If the user already has one.
        """
        now = self.clock()
        try:
            profile = Profile.model_validate(
                {**data, "id": new_id(), "userId": user_id, "createdAt": now, "updatedAt": now}
            )
        except ValueError as e:
            raise ValidationError("Invalid profile data", details={"error": str(e)}) from e

        async with self.db.session("profile.create") as session:
            await profile_store.insert_profile(session, profile)
        logger.info("Profile created", user_id=user_id)
        return profile

    async def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Profile:
        """
        Merge `changes` into the stored profile.

        Section objects (basicInfo, lifestyle, ...) are merged key by key; any
        other key replaces the stored value.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            ValidationError: If the merged document is invalid.
        """
        current = await self.require_profile(user_id)
        document = current.model_dump(mode="json", by_alias=True)
        for key, value in changes.items():
            if key in _SECTIONS and isinstance(value, dict):
                document[key] = {**(document.get(key) or {}), **value}
            elif key not in ("id", "userId", "user_id", "createdAt", "created_at"):
                document[key] = value
        document["updatedAt"] = self.clock().isoformat()

        try:
            updated = Profile.model_validate(document)
        except ValueError as e:
            raise ValidationError("Invalid profile data", details={"error": str(e)}) from e

        async with self.db.session("profile.update") as session:
            stored = await profile_store.replace_profile(session, updated)
        if stored is None:
            raise ProfileNotFoundError(f"Profile not found: {user_id}", details={"user_id": user_id})

        await self.cache.delete(PROFILE_CACHE_KEY.format(user_id=user_id))
        logger.info("Profile updated", user_id=user_id, fields=sorted(changes))
        return stored

    async def set_paused(self, user_id: str, paused: bool) -> Profile:
        return await self.update_profile(user_id, {"isPaused": paused})

    async def set_hidden(self, user_id: str, hidden: bool) -> Profile:
        return await self.update_profile(user_id, {"isHidden": hidden})
