"""Core services of the Pryvo backend."""

from pryvo.services.block_service import BlockService
from pryvo.services.boost_service import BoostService
from pryvo.services.chat_service import ChatService
from pryvo.services.comment_service import CommentService
from pryvo.services.compatibility import score_compatibility
from pryvo.services.discovery_service import DiscoveryService
from pryvo.services.match_service import MatchService
from pryvo.services.notifications import Notifier, Notify
from pryvo.services.presence import PresenceRegistry
from pryvo.services.profile_service import ProfileService
from pryvo.services.push_service import HttpPushSender, NullPushSender, PushNotification
from pryvo.services.subscription_service import SubscriptionService
from pryvo.services.swipe_service import SwipeService

__all__ = [
    "BlockService",
    "BoostService",
    "ChatService",
    "CommentService",
    "DiscoveryService",
    "HttpPushSender",
    "MatchService",
    "Notifier",
    "Notify",
    "NullPushSender",
    "PresenceRegistry",
    "ProfileService",
    "PushNotification",
    "SubscriptionService",
    "SwipeService",
    "score_compatibility",
]
