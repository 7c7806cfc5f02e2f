"""Business logic for the directed follow graph."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..cache import LocalCache
from ..errors import (
    AlreadyFollowing,
    ApprovalRequired,
    FollowingNotAllowed,
    InvalidRequest,
    RecordConflict,
    SocialError,
    StoreError,
    classify_store_error,
)
from ..schemas import Profile, Relationship, RelationshipStatus
from ..store import PROFILE, RELATIONSHIP, All, AnyOf, Equals, RecordStore
from ..store.records import profile_from_record, relationship_from_record, relationship_to_record
from .privacy_service import FollowDecision, follow_decision
from .profile_service import ProfileDirectory

logger = logging.getLogger(__name__)

# TODO: approving a pending request (pending -> accepted) needs a reviewer-side
# operation for the followed user; nothing writes ACCEPTED over PENDING yet.
# TODO: RelationshipStatus.BLOCKED is stored but no operation produces or honours it.


@dataclass(slots=True)
class FollowStats:
    profile_id: str
    followers_count: int
    following_count: int
    is_following: bool


class FollowService:
    def __init__(self, store: RecordStore, profiles: ProfileDirectory, cache: LocalCache) -> None:
        self._store = store
        self._profiles = profiles
        self._cache = cache
        self._lock = asyncio.Lock()
        self._following: list[Profile] = []
        self._refresh_issued = 0
        self._refresh_applied = 0
        cache.add_invalidation_listener(self._forget)

    @property
    def following(self) -> list[Profile]:
        return list(self._following)

    def _forget(self) -> None:
        self._following = []

    async def _find_edge(self, follower_id: str, following_id: str) -> Relationship | None:
        try:
            records = await self._store.query(
                RELATIONSHIP,
                All.of(Equals("follower_id", follower_id), Equals("following_id", following_id)),
                limit=1,
            )
        except StoreError as exc:
            raise classify_store_error(exc) from exc
        return relationship_from_record(records[0]) if records else None

    async def _refresh_after_change(self, target_id: str, *, following: bool) -> None:
        try:
            await self.fetch_following()
        except SocialError as exc:
            # Keep the cached id set in step with the write that did succeed.
            logger.warning("Following list refresh failed after a follow change: %s", exc.message)
            async with self._lock:
                ids = [item for item in self._cache.get_following_ids() if item != target_id]
                if following:
                    ids.append(target_id)
                else:
                    self._following = [profile for profile in self._following if profile.id != target_id]
                self._cache.set_following_ids(ids)

    async def follow(self, target_id: str) -> Relationship:
        me = await self._profiles.fetch_own()
        if target_id == me.id:
            raise InvalidRequest("You cannot follow yourself")

        target = await self._profiles.fetch_profile(target_id)
        decision = follow_decision(target.privacy)
        if decision is FollowDecision.DENIED:
            raise FollowingNotAllowed()

        existing = await self._find_edge(me.id, target_id)
        if existing is not None:
            if existing.status is RelationshipStatus.PENDING:
                raise ApprovalRequired(existing)
            raise AlreadyFollowing()

        status = RelationshipStatus.PENDING if decision is FollowDecision.PENDING else RelationshipStatus.ACCEPTED
        relationship = Relationship(follower_id=me.id, following_id=target_id, status=status)
        try:
            record = await self._store.create(relationship_to_record(relationship))
        except RecordConflict as exc:
            raise AlreadyFollowing() from exc
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        created = relationship_from_record(record)
        if created.status is RelationshipStatus.PENDING:
            logger.info("Follow request %s -> %s is pending approval", me.id, target_id)
            raise ApprovalRequired(created)

        logger.info("%s now follows %s", me.id, target_id)
        await self._refresh_after_change(target_id, following=True)
        return created

    async def unfollow(self, target_id: str) -> bool:
        """Remove the edge to ``target_id``; returns ``False`` when there was none."""

        me = await self._profiles.fetch_own()
        existing = await self._find_edge(me.id, target_id)
        if existing is None:
            return False
        try:
            await self._store.delete(RELATIONSHIP, existing.id)
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        logger.info("%s unfollowed %s", me.id, target_id)
        await self._refresh_after_change(target_id, following=False)
        return True

    def is_following(self, target_id: str) -> bool:
        """Answer from the cached following list; may be stale until the next refresh."""

        return target_id in self._cache.get_following_ids()

    async def fetch_following(self) -> list[Profile]:
        me = await self._profiles.fetch_own()
        self._refresh_issued += 1
        ticket = self._refresh_issued

        try:
            edges = await self._store.query(
                RELATIONSHIP,
                All.of(Equals("follower_id", me.id), Equals("status", RelationshipStatus.ACCEPTED.value)),
            )
            ids = [relationship_from_record(edge).following_id for edge in edges]
            records = await self._store.query(PROFILE, AnyOf.of("id", ids)) if ids else []
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        by_id = {profile.id: profile for profile in map(profile_from_record, records)}
        profiles = [by_id[profile_id] for profile_id in ids if profile_id in by_id]

        async with self._lock:
            if ticket < self._refresh_applied:
                return list(self._following)
            self._refresh_applied = ticket
            self._following = profiles
            self._cache.set_following_ids([profile.id for profile in profiles])
        return list(profiles)

    async def follow_stats(self, profile_id: str) -> FollowStats:
        await self._profiles.fetch_profile(profile_id)
        accepted = Equals("status", RelationshipStatus.ACCEPTED.value)
        try:
            followers = await self._store.query(RELATIONSHIP, All.of(Equals("following_id", profile_id), accepted))
            following = await self._store.query(RELATIONSHIP, All.of(Equals("follower_id", profile_id), accepted))
        except StoreError as exc:
            raise classify_store_error(exc) from exc
        return FollowStats(
            profile_id=profile_id,
            followers_count=len(followers),
            following_count=len(following),
            is_following=self.is_following(profile_id),
        )


__all__ = ["FollowStats", "FollowService"]
