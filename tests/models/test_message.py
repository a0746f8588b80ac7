from pryvo.models.discovery import SortBy
from pryvo.models.message import MessageStatus


def test_status_only_moves_forward():
    assert MessageStatus.SENT.can_advance_to(MessageStatus.DELIVERED)
    assert MessageStatus.DELIVERED.can_advance_to(MessageStatus.SEEN)
    assert MessageStatus.SENT.can_advance_to(MessageStatus.SEEN)
    assert not MessageStatus.SEEN.can_advance_to(MessageStatus.DELIVERED)
    assert not MessageStatus.DELIVERED.can_advance_to(MessageStatus.DELIVERED)


def test_sort_by_accepts_recent_alias():
    assert SortBy("recent") is SortBy.RECENCY
    assert SortBy("distance") is SortBy.DISTANCE
