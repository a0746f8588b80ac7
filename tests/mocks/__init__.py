"""Test doubles shared across the test suite."""

from tests.mocks.fakes import FakeClock, FakeConnection, RecordingPushSender
from tests.mocks.profiles import profile_document

__all__ = ["FakeClock", "FakeConnection", "RecordingPushSender", "profile_document"]
