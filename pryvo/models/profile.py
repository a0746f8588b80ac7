"""Profile model for the Pryvo backend."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pryvo.utils.helpers import utcnow

PREFER_NOT_TO_SAY = "Prefer not to say"
EVERYONE = "Everyone"


class Gender(str, Enum):
    """
    Gender enumeration.

    The values a profile states about itself. Dating preferences use a
    different, plural vocabulary; see `GENDER_TO_PREFERENCE`.
    """

    MAN = "Man"
    WOMAN = "Woman"
    NON_BINARY = "Non Binary"


GENDER_TO_PREFERENCE = {
    Gender.MAN.value: "Men",
    Gender.WOMAN.value: "Women",
    Gender.NON_BINARY.value: "Nonbinary People",
}


class MediaType(str, Enum):
    IMAGE = "image"
    PHOTO = "photo"
    VIDEO = "video"


class _Section(BaseModel):
    """Profile documents are stored camelCased; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class BasicInfo(_Section):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[str] = None
    bio: Optional[str] = None
    hometown: Optional[str] = None
    work: Optional[str] = None
    education: Optional[str] = None


class AgeRange(_Section):
    min: Optional[int] = None
    max: Optional[int] = None


class DatingPreferences(_Section):
    """What the user is looking for."""

    who_to_date: List[str] = Field(default_factory=list)
    age_range: Optional[AgeRange] = None
    distance: Optional[float] = None  # in kilometers
    is_global: bool = Field(default=False, alias="global")
    dating_intention: Optional[str] = None
    relationship_type: Optional[str] = None

    def accepts(self, gender: Optional[str]) -> bool:
        """
        Check whether someone of `gender` falls within `who_to_date`.

        An empty list is read as "Everyone", matching what older clients
        stored when the question was skipped.
        """
        if not self.who_to_date or EVERYONE in self.who_to_date:
            return True
        if gender is None:
            return False
        wanted = GENDER_TO_PREFERENCE.get(gender)
        return wanted is not None and wanted in self.who_to_date


class Lifestyle(_Section):
    drink: Optional[str] = None
    smoke_tobacco: Optional[str] = None
    smoke_weed: Optional[str] = None
    drugs: Optional[str] = None
    political_beliefs: Optional[str] = None
    religious_beliefs: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    pets: List[str] = Field(default_factory=list)


class PersonalDetails(_Section):
    height: Optional[str] = None
    education_level: Optional[str] = None
    family_plans: Optional[str] = None
    star_sign: Optional[str] = None
    languages: List[str] = Field(default_factory=list)


class MediaItem(_Section):
    id: Optional[str] = None
    type: MediaType = MediaType.IMAGE
    url: str
    thumbnail: Optional[str] = None


class GeoPoint(_Section):
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


class Profile(_Section):
    """
    Profile model.

    One per user. Sections mirror the onboarding flow; every field is optional
    so half-finished profiles still load, and the scorer treats gaps as
    "no information" rather than as a mismatch.
    """

    id: str
    user_id: str
    basic_info: BasicInfo = Field(default_factory=BasicInfo)
    dating_preferences: DatingPreferences = Field(default_factory=DatingPreferences)
    lifestyle: Lifestyle = Field(default_factory=Lifestyle)
    personal_details: PersonalDetails = Field(default_factory=PersonalDetails)
    media: List[MediaItem] = Field(default_factory=list)
    location: Optional[GeoPoint] = None
    is_paused: bool = False
    is_hidden: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("media")
    @classmethod
    def drop_blank_media(cls, v: List[MediaItem]) -> List[MediaItem]:
        """Discard media entries without a URL."""
        return [item for item in v if item.url]

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        return self.location.as_tuple() if self.location else None

    @property
    def photos(self) -> List[str]:
        return [item.url for item in self.media]

    def is_discoverable(self) -> bool:
        """
        Check if the profile may be shown to other users.

        Paused and hidden profiles are never shown, and neither is a profile
        without at least one media item.

        Returns:
            bool: True if the profile can appear in discovery.
        """
        return not self.is_paused and not self.is_hidden and len(self.media) > 0

    def age(self, today: Optional[date] = None) -> Optional[int]:
        """
        Age in whole years from `basic_info.dob`.

        Accepts ISO dates as well as DD-MM-YYYY / DD/MM/YYYY, which older
        clients sent. Returns None when the date is missing or unparseable.
        """
        born = parse_dob(self.basic_info.dob)
        if born is None:
            return None
        today = today or utcnow().date()
        years = today.year - born.year
        if (today.month, today.day) < (born.month, born.day):
            years -= 1
        return years


def parse_dob(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    parts = value.replace("/", "-").split("-")
    if len(parts) == 3 and len(parts[2]) == 4:
        try:
            return date(int(parts[2]), int(parts[1]), int(parts[0]))
        except ValueError:
            return None
    return None
