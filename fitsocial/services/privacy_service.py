"""Privacy policy checks and persistence of the user's privacy settings."""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..cache import LocalCache
from ..errors import NetworkError
from ..schemas import FollowPermission, PrivacySettings, Profile, Visibility

if TYPE_CHECKING:
    from .profile_service import ProfileDirectory

logger = logging.getLogger(__name__)


class FollowDecision(str, Enum):
    DENIED = "denied"
    PENDING = "pending"
    ACCEPTED = "accepted"


def follow_decision(settings: PrivacySettings) -> FollowDecision:
    if settings.who_can_follow is FollowPermission.NOBODY:
        return FollowDecision.DENIED
    if settings.who_can_follow is FollowPermission.APPROVAL_REQUIRED:
        return FollowDecision.PENDING
    return FollowDecision.ACCEPTED


def visible_in_search(profile: Profile) -> bool:
    return profile.privacy.visibility is not Visibility.PRIVATE


def discoverable(profile: Profile) -> bool:
    """Suggestions only surface public profiles that opted into discovery."""

    return profile.is_discoverable and profile.privacy.visibility is Visibility.PUBLIC


def should_publish(settings: PrivacySettings, *, auto_triggered: bool) -> bool:
    return settings.auto_share_activities or not auto_triggered


class PrivacyPolicy:
    """Loads and saves the own profile's settings, mirroring them for offline reads."""

    def __init__(self, profiles: "ProfileDirectory", cache: LocalCache) -> None:
        self._profiles = profiles
        self._cache = cache

    async def load_settings(self) -> PrivacySettings:
        try:
            profile = await self._profiles.fetch_own()
        except NetworkError:
            logger.warning("Store unreachable; serving mirrored privacy settings")
            return self.load_cached_settings()
        self.save_cached_settings(profile.privacy)
        return profile.privacy

    async def save_settings(self, settings: PrivacySettings) -> PrivacySettings:
        profile = await self._profiles.update(privacy=settings)
        self.save_cached_settings(profile.privacy)
        return profile.privacy

    def load_cached_settings(self) -> PrivacySettings:
        return self._cache.get_privacy_settings() or PrivacySettings()

    def save_cached_settings(self, settings: PrivacySettings) -> None:
        self._cache.set_privacy_settings(settings)


__all__ = [
    "FollowDecision",
    "follow_decision",
    "visible_in_search",
    "discoverable",
    "should_publish",
    "PrivacyPolicy",
]
