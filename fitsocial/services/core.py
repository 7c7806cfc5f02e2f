"""Wiring of the social components around one store, cache and identity provider."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..cache import LocalCache
from ..clients import IdentityProvider, build_identity_provider
from ..config import Settings, get_settings
from ..store import RecordStore, SqlRecordStore
from .feed_service import FeedService
from .follow_service import FollowService
from .identity_service import IdentityResolver
from .privacy_service import PrivacyPolicy
from .profile_service import IncrementalSearch, ProfileDirectory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SocialCore:
    store: RecordStore
    cache: LocalCache
    identity: IdentityResolver
    profiles: ProfileDirectory
    follows: FollowService
    feed: FeedService
    privacy: PrivacyPolicy
    search: IncrementalSearch

    @classmethod
    def build(
        cls,
        store: RecordStore,
        cache: LocalCache,
        provider: IdentityProvider,
        settings: Settings | None = None,
    ) -> "SocialCore":
        settings = settings or get_settings()
        identity = IdentityResolver(provider, cache)
        profiles = ProfileDirectory(
            store,
            identity,
            cache,
            search_limit=settings.search_result_limit,
            suggestion_limit=settings.suggestion_limit,
        )
        return cls(
            store=store,
            cache=cache,
            identity=identity,
            profiles=profiles,
            follows=FollowService(store, profiles, cache),
            feed=FeedService(
                store,
                profiles,
                cache,
                feed_limit=settings.feed_result_limit,
                max_attempts=settings.publish_max_attempts,
            ),
            privacy=PrivacyPolicy(profiles, cache),
            search=IncrementalSearch(profiles),
        )

    def reset(self) -> None:
        """Forget the identity and all cached social state on this device."""

        logger.info("Resetting local social state")
        self.identity.clear_identity()

    def close(self) -> None:
        self.cache.close()


def create_core(settings: Settings | None = None) -> SocialCore:
    """Build the core against the configured SQL store and on-disk cache."""

    from ..database import SessionLocal

    settings = settings or get_settings()
    return SocialCore.build(
        SqlRecordStore(SessionLocal),
        LocalCache.from_settings(settings),
        build_identity_provider(settings),
        settings,
    )


__all__ = ["SocialCore", "create_core"]
