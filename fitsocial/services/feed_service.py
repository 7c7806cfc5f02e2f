"""Publishing completed workouts and assembling the follower feed."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..cache import LocalCache
from ..errors import ConcurrentModification, RecordNotFound, StoreError, VersionMismatch, classify_store_error
from ..schemas import ActivitySummary, SharedActivity
from ..store import PROFILE, SHARED_ACTIVITY, AnyOf, RecordStore, Sort
from ..store.records import activity_from_record, activity_to_record, profile_from_record, profile_to_record
from .privacy_service import should_publish
from .profile_service import ProfileDirectory

logger = logging.getLogger(__name__)


class FeedService:
    def __init__(
        self,
        store: RecordStore,
        profiles: ProfileDirectory,
        cache: LocalCache,
        *,
        feed_limit: int = 50,
        max_attempts: int = 3,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._cache = cache
        self._feed_limit = feed_limit
        self._max_attempts = max(1, max_attempts)
        self._lock = asyncio.Lock()
        self.activities: list[SharedActivity] = []
        cache.add_invalidation_listener(self._forget)

    def _forget(self) -> None:
        self.activities = []

    async def publish(self, summary: ActivitySummary, *, auto_triggered: bool = False) -> SharedActivity | None:
        """Share ``summary`` and bump the owner's stats in one atomic write.

        Returns ``None`` without touching the store when an automatic share is
        disabled by the owner's settings.
        """

        profile = await self._profiles.fetch_own()
        if not should_publish(profile.privacy, auto_triggered=auto_triggered):
            logger.debug("Auto-share disabled for %s; skipping publish", profile.id)
            return None

        activity = SharedActivity(
            owner_id=profile.id,
            label=summary.label,
            occurred_at=summary.occurred_at,
            total_volume=summary.total_volume,
            item_count=summary.item_count,
            is_completed=summary.is_completed,
        )

        for attempt in range(1, self._max_attempts + 1):
            updated = profile.model_copy(
                update={
                    "total_activities": profile.total_activities + 1,
                    "total_volume": profile.total_volume + summary.total_volume,
                    "updated_at": datetime.now(timezone.utc),
                    "version": profile.version + 1,
                }
            )
            try:
                saved = await self._store.save_all(
                    [activity_to_record(activity), profile_to_record(updated)],
                    expected_versions={profile.id: profile.version},
                )
            except VersionMismatch:
                logger.warning(
                    "Profile %s changed during publish (attempt %d/%d); re-reading",
                    profile.id,
                    attempt,
                    self._max_attempts,
                )
                profile = await self._profiles.refresh_own()
                continue
            except RecordNotFound as exc:
                raise self._profiles.invalidate("publish") from exc
            except StoreError as exc:
                raise classify_store_error(exc) from exc

            written = {record.record_type: record for record in saved}
            await self._profiles.remember(profile_from_record(written[PROFILE]))
            logger.info("Published activity %s for %s", activity.id, profile.id)
            return activity_from_record(written[SHARED_ACTIVITY])

        raise ConcurrentModification()

    async def fetch_feed(self, limit: int | None = None) -> list[SharedActivity]:
        following = self._cache.get_following_ids()
        if not following:
            async with self._lock:
                self.activities = []
            return []

        try:
            records = await self._store.query(
                SHARED_ACTIVITY,
                AnyOf.of("owner_id", following),
                sort=Sort("occurred_at", descending=True),
                limit=limit or self._feed_limit,
            )
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        activities = [activity_from_record(record) for record in records]
        async with self._lock:
            self.activities = activities
        return list(activities)


__all__ = ["FeedService"]
