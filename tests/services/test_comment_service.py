import pytest

from pryvo.models.comment import CommentResponse, CommentStatus, CommentTarget
from pryvo.models.match import MatchOrigin
from pryvo.models.swipe import LikedContentType
from pryvo.services.notifications import NEW_COMMENT, NEW_MATCH
from pryvo.utils.errors import (
    AccessDeniedError,
    BlockedError,
    CommentNotFoundError,
    ConflictError,
    DailyLimitReachedError,
    ExpiredError,
    ProfileNotFoundError,
    ValidationError,
)
from tests.mocks import FakeConnection


@pytest.fixture
async def users(make_profile):
    for name, gender in (("alice", "Woman"), ("bob", "Man"), ("carl", "Man"), ("dave", "Man")):
        await make_profile(name, gender=gender)


@pytest.mark.asyncio
async def test_send_comment_notifies_receiver(core, users):
    alice = FakeConnection()
    core.presence.authenticate(alice, "alice")

    result = await core.comments.send_comment(
        "bob", "alice", "  Great photo!  ", CommentTarget(type=LikedContentType.PHOTO, photo_index=1)
    )

    assert result.comment.comment == "Great photo!"
    assert result.comment.status == CommentStatus.PENDING
    assert result.remaining_comments == 1
    [event] = alice.named(NEW_COMMENT)
    assert event["commentId"] == result.comment.id
    assert event["fromUserId"] == "bob"
    assert [c.id for c in await core.comments.list_received("alice")] == [result.comment.id]


@pytest.mark.asyncio
async def test_comment_validation(core, users):
    with pytest.raises(ValidationError):
        await core.comments.send_comment("bob", "bob", "hi")
    with pytest.raises(ValidationError):
        await core.comments.send_comment("bob", "alice", "   ")
    with pytest.raises(ValidationError):
        await core.comments.send_comment("bob", "alice", "x" * 501)
    with pytest.raises(ProfileNotFoundError):
        await core.comments.send_comment("bob", "nobody", "hi")


@pytest.mark.asyncio
async def test_one_pending_comment_per_pair(core, users):
    await core.comments.send_comment("bob", "alice", "hi")
    with pytest.raises(ConflictError):
        await core.comments.send_comment("bob", "alice", "hello again")
    # the failed attempt used no quota
    result = await core.comments.send_comment("bob", "carl", "hey")
    assert result.remaining_comments == 0


@pytest.mark.asyncio
async def test_daily_comment_quota(core, users):
    await core.comments.send_comment("alice", "bob", "hi")
    await core.comments.send_comment("alice", "carl", "hi")
    with pytest.raises(DailyLimitReachedError):
        await core.comments.send_comment("alice", "dave", "hi")


@pytest.mark.asyncio
async def test_comment_and_like_quotas_are_separate(core, users):
    await core.comments.send_comment("alice", "bob", "hi")
    assert await core.swipes.likes_remaining("alice") == 3


@pytest.mark.asyncio
async def test_blocked_comment(core, users):
    await core.blocks.block("alice", "bob")
    with pytest.raises(BlockedError):
        await core.comments.send_comment("bob", "alice", "hi")


@pytest.mark.asyncio
async def test_accepting_a_comment_creates_a_match(core, users):
    bob = FakeConnection()
    core.presence.authenticate(bob, "bob")
    sent = await core.comments.send_comment("bob", "alice", "hi")

    result = await core.comments.respond_to_comment(sent.comment.id, "alice", CommentResponse.ACCEPT)

    assert result.comment.status == CommentStatus.ACCEPTED
    assert result.match is not None
    assert result.match.initiated_by == MatchOrigin.COMMENT
    assert result.match.comment_id == sent.comment.id
    [event] = bob.named(NEW_MATCH)
    assert event["matchId"] == result.match.id
    assert event["initiatedBy"] == "comment"
    assert await core.comments.list_received("alice") == []


@pytest.mark.asyncio
async def test_rejecting_a_comment(core, users):
    sent = await core.comments.send_comment("bob", "alice", "hi")
    result = await core.comments.respond_to_comment(sent.comment.id, "alice", CommentResponse.REJECT)
    assert result.comment.status == CommentStatus.REJECTED
    assert result.match is None

    with pytest.raises(ConflictError):
        await core.comments.respond_to_comment(sent.comment.id, "alice", CommentResponse.ACCEPT)


@pytest.mark.asyncio
async def test_respond_errors(core, users):
    sent = await core.comments.send_comment("bob", "alice", "hi")
    with pytest.raises(CommentNotFoundError):
        await core.comments.respond_to_comment("missing", "alice", CommentResponse.ACCEPT)
    with pytest.raises(AccessDeniedError):
        await core.comments.respond_to_comment(sent.comment.id, "bob", CommentResponse.ACCEPT)

    await core.blocks.block("alice", "bob")
    with pytest.raises(BlockedError):
        await core.comments.respond_to_comment(sent.comment.id, "alice", CommentResponse.ACCEPT)


@pytest.mark.asyncio
async def test_expired_comment(core, clock, users):
    sent = await core.comments.send_comment("bob", "alice", "hi")
    clock.advance(days=8)

    assert await core.comments.list_received("alice") == []
    with pytest.raises(ExpiredError):
        await core.comments.respond_to_comment(sent.comment.id, "alice", CommentResponse.ACCEPT)

    # a lapsed comment does not hold the pair
    again = await core.comments.send_comment("bob", "alice", "second try")
    assert again.comment.status == CommentStatus.PENDING
