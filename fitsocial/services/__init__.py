"""Convenience exports for service layer."""
from .core import SocialCore, create_core
from .feed_service import FeedService
from .follow_service import FollowService, FollowStats
from .identity_service import IdentityResolver
from .privacy_service import (
    FollowDecision,
    PrivacyPolicy,
    discoverable,
    follow_decision,
    should_publish,
    visible_in_search,
)
from .profile_service import IncrementalSearch, ProfileDirectory, normalize_username

__all__ = [
    "SocialCore",
    "create_core",
    "FeedService",
    "FollowService",
    "FollowStats",
    "IdentityResolver",
    "FollowDecision",
    "PrivacyPolicy",
    "discoverable",
    "follow_decision",
    "should_publish",
    "visible_in_search",
    "IncrementalSearch",
    "ProfileDirectory",
    "normalize_username",
]
