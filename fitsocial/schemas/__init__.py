"""Convenience exports for schema layer."""
from .feed import ActivitySummary, FeedResponse, PublishRequest, PublishResponse, SharedActivity
from .follow import (
    FollowActionResponse,
    FollowingListResponse,
    FollowStatsResponse,
    Relationship,
    RelationshipStatus,
)
from .privacy import PRIVACY_PRESETS, FollowPermission, PrivacySettings, Visibility
from .profiles import (
    Profile,
    ProfileResponse,
    ProfileSearchResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UsernameAvailabilityResponse,
)

__all__ = [
    "ActivitySummary",
    "FeedResponse",
    "PublishRequest",
    "PublishResponse",
    "SharedActivity",
    "FollowActionResponse",
    "FollowingListResponse",
    "FollowStatsResponse",
    "Relationship",
    "RelationshipStatus",
    "PRIVACY_PRESETS",
    "FollowPermission",
    "PrivacySettings",
    "Visibility",
    "Profile",
    "ProfileResponse",
    "ProfileSearchResponse",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "UsernameAvailabilityResponse",
]
