from datetime import date

import pytest
from pydantic import ValidationError

from pryvo.models.profile import DatingPreferences, Profile
from tests.mocks import profile_document


def build(**kwargs) -> Profile:
    return Profile.model_validate({**profile_document(**kwargs), "id": "p1", "userId": "u1"})


def test_profile_reads_camel_case_documents():
    profile = build(gender="Man")
    assert profile.user_id == "u1"
    assert profile.basic_info.gender == "Man"
    assert profile.dating_preferences.who_to_date == ["Women"]
    assert profile.lifestyle.smoke_tobacco == "No"
    assert profile.coordinates == (0.0, 0.0)
    assert profile.photos == ["https://cdn.example.com/man/0.jpg"]


def test_profile_dumps_camel_case():
    dumped = build().model_dump(by_alias=True)
    assert "basicInfo" in dumped
    assert "whoToDate" in dumped["datingPreferences"]


def test_blank_media_entries_are_dropped():
    profile = build(media=[{"type": "image", "url": ""}, {"type": "image", "url": "https://x/1.jpg"}])
    assert profile.photos == ["https://x/1.jpg"]


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({}, True),
        ({"isPaused": True}, False),
        ({"isHidden": True}, False),
        ({"photos": 0}, False),
    ],
)
def test_is_discoverable(overrides, expected):
    photos = overrides.pop("photos", 1)
    assert build(photos=photos, **overrides).is_discoverable() is expected


def test_who_to_date_everyone_and_empty():
    assert DatingPreferences(who_to_date=["Everyone"]).accepts("Man")
    assert DatingPreferences(who_to_date=[]).accepts("Woman")
    assert DatingPreferences(who_to_date=["Women"]).accepts("Woman")
    assert not DatingPreferences(who_to_date=["Women"]).accepts("Man")
    assert not DatingPreferences(who_to_date=["Women"]).accepts(None)


def test_age_from_iso_and_legacy_dob():
    iso = build(basicInfo={"gender": "Woman", "dob": "1995-04-12"})
    legacy = build(basicInfo={"gender": "Woman", "dob": "12/04/1995"})
    assert iso.age(date(2025, 4, 11)) == 29
    assert iso.age(date(2025, 4, 12)) == 30
    assert legacy.age(date(2025, 4, 12)) == 30


def test_missing_user_id_is_rejected():
    with pytest.raises(ValidationError):
        Profile.model_validate({"id": "p1"})
