"""Models package for the Pryvo backend."""

from pryvo.models.block import Block
from pryvo.models.boost import Boost
from pryvo.models.comment import CommentResponse, CommentResult, CommentStatus, CommentTarget, ProfileComment
from pryvo.models.compatibility import CompatibilityBreakdown, CompatibilityResult
from pryvo.models.discovery import DiscoveryCandidate, DiscoveryFilters, DiscoveryOptions, SortBy
from pryvo.models.match import Match, MatchOrigin, MatchStatus, MatchView
from pryvo.models.message import ConversationSummary, MediaKind, Message, MessageStatus
from pryvo.models.profile import (
    BasicInfo,
    DatingPreferences,
    Gender,
    GeoPoint,
    Lifestyle,
    MediaItem,
    PersonalDetails,
    Profile,
)
from pryvo.models.swipe import Like, LikedContent, LikeResult, Pass, SwipeAction, UndoResult

__all__ = [
    "BasicInfo",
    "Block",
    "Boost",
    "CommentResponse",
    "CommentResult",
    "CommentStatus",
    "CommentTarget",
    "CompatibilityBreakdown",
    "CompatibilityResult",
    "ConversationSummary",
    "DatingPreferences",
    "DiscoveryCandidate",
    "DiscoveryFilters",
    "DiscoveryOptions",
    "Gender",
    "GeoPoint",
    "Lifestyle",
    "Like",
    "LikeResult",
    "LikedContent",
    "Match",
    "MatchOrigin",
    "MatchStatus",
    "MatchView",
    "MediaItem",
    "MediaKind",
    "Message",
    "MessageStatus",
    "Pass",
    "PersonalDetails",
    "Profile",
    "ProfileComment",
    "SortBy",
    "SwipeAction",
    "UndoResult",
]
