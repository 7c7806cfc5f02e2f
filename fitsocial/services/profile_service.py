"""Business logic for profile records in the remote store."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from ..cache import LocalCache
from ..errors import (
    AlreadyRegistered,
    ConcurrentModification,
    InvalidRequest,
    ProfileNotFound,
    RecordConflict,
    RecordNotFound,
    StoreError,
    UserNotFound,
    UsernameTaken,
    VersionMismatch,
    classify_store_error,
)
from ..schemas import Profile
from ..store import PROFILE, RELATIONSHIP, SHARED_ACTIVITY, All, Contains, Equals, RecordStore, Sort
from ..store.records import profile_from_record, profile_to_record
from .identity_service import IdentityResolver
from .privacy_service import discoverable, visible_in_search

logger = logging.getLogger(__name__)

_MIN_USERNAME_LENGTH = 3
_UPDATABLE_FIELDS = frozenset(
    {"display_name", "bio", "is_discoverable", "privacy", "total_activities", "total_volume"}
)


def normalize_username(username: str) -> str:
    return username.strip().lower()


def _validate_username(username: str) -> None:
    if len(username) < _MIN_USERNAME_LENGTH:
        raise InvalidRequest("Username must be at least 3 characters")
    if not all(ch.isalnum() or ch == "_" for ch in username):
        raise InvalidRequest("Username may only contain letters, numbers and underscores")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProfileDirectory:
    def __init__(
        self,
        store: RecordStore,
        identity: IdentityResolver,
        cache: LocalCache,
        *,
        search_limit: int = 20,
        suggestion_limit: int = 10,
    ) -> None:
        self._store = store
        self._identity = identity
        self._cache = cache
        self._search_limit = search_limit
        self._suggestion_limit = suggestion_limit
        self._lock = asyncio.Lock()

    # -- cache ownership ------------------------------------------------------

    async def remember(self, profile: Profile) -> None:
        """Replace the cached own profile unless a newer version is already cached."""

        async with self._lock:
            cached = self._cache.get_profile()
            if cached is not None and cached.id == profile.id and cached.version > profile.version:
                return
            self._cache.set_profile(profile)
            self._cache.set_privacy_settings(profile.privacy)

    def invalidate(self, reason: str) -> ProfileNotFound:
        logger.warning("Own profile missing remotely (%s); invalidating local cache", reason)
        self._identity.clear_identity()
        return ProfileNotFound()

    async def _query_by_identity(self, identity: str) -> Profile | None:
        try:
            records = await self._store.query(PROFILE, Equals("identity", identity), limit=1)
        except StoreError as exc:
            raise classify_store_error(exc) from exc
        return profile_from_record(records[0]) if records else None

    # -- operations -----------------------------------------------------------

    async def is_username_available(self, username: str) -> bool:
        """Availability check for the username field; ``register`` still has the final say."""

        normalized = normalize_username(username)
        _validate_username(normalized)
        try:
            taken = await self._store.query(PROFILE, Equals("username", normalized), limit=1)
        except StoreError as exc:
            raise classify_store_error(exc) from exc
        return not taken

    async def register(self, username: str, display_name: str, bio: str = "") -> Profile:
        normalized = normalize_username(username)
        _validate_username(normalized)
        display = display_name.strip()
        if not display:
            raise InvalidRequest("Display name is required")

        try:
            taken = await self._store.query(PROFILE, Equals("username", normalized), limit=1)
        except StoreError as exc:
            raise classify_store_error(exc) from exc
        if taken:
            raise UsernameTaken()

        identity = await self._identity.resolve_identity()
        if await self._query_by_identity(identity) is not None:
            raise AlreadyRegistered()

        profile = Profile(identity=identity, username=normalized, display_name=display, bio=bio.strip())
        try:
            record = await self._store.create(profile_to_record(profile))
        except RecordConflict as exc:
            # The unique index settles races between concurrent registrations.
            if "username" in exc.fields:
                raise UsernameTaken() from exc
            raise AlreadyRegistered() from exc
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        saved = profile_from_record(record)
        await self.remember(saved)
        logger.info("Registered profile %s (%s)", saved.id, saved.username)
        return saved

    async def fetch_own(self) -> Profile:
        cached = self._cache.get_profile()
        if cached is not None:
            return cached

        identity = await self._identity.resolve_identity()
        profile = await self._query_by_identity(identity)
        if profile is None:
            raise self.invalidate("no profile for identity")
        await self.remember(profile)
        return profile

    async def refresh_own(self) -> Profile:
        """Re-read the own profile from the store; the remote copy wins."""

        current = await self.fetch_own()
        try:
            record = await self._store.fetch(PROFILE, current.id)
        except RecordNotFound as exc:
            raise self.invalidate("refresh") from exc
        except StoreError as exc:
            raise classify_store_error(exc) from exc
        profile = profile_from_record(record)
        async with self._lock:
            self._cache.set_profile(profile)
            self._cache.set_privacy_settings(profile.privacy)
        return profile

    async def fetch_profile(self, profile_id: str) -> Profile:
        try:
            record = await self._store.fetch(PROFILE, profile_id)
        except RecordNotFound as exc:
            raise UserNotFound() from exc
        except StoreError as exc:
            raise classify_store_error(exc) from exc
        return profile_from_record(record)

    async def update(self, **changes: Any) -> Profile:
        """Merge the non-None ``changes`` into the own profile and write it back.

        The write is conditional on the version read; losing a race raises
        :class:`ConcurrentModification` after the cache is refreshed.
        """

        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidRequest(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        fields = {name: value for name, value in changes.items() if value is not None}
        if "display_name" in fields:
            fields["display_name"] = fields["display_name"].strip()
            if not fields["display_name"]:
                raise InvalidRequest("Display name is required")
        if "bio" in fields:
            fields["bio"] = fields["bio"].strip()

        current = await self.fetch_own()
        merged = current.model_copy(update={**fields, "updated_at": _now(), "version": current.version + 1})
        try:
            record = await self._store.save(profile_to_record(merged), expected_version=current.version)
        except RecordNotFound as exc:
            raise self.invalidate("update") from exc
        except VersionMismatch as exc:
            logger.warning("Profile %s changed remotely; refreshing before retry", current.id)
            await self.refresh_own()
            raise ConcurrentModification() from exc
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        saved = profile_from_record(record)
        await self.remember(saved)
        return saved

    async def search(self, query: str, *, excluding: str | None = None) -> list[Profile]:
        text = query.strip()
        if not text:
            return []
        if excluding is None:
            cached = self._cache.get_profile()
            excluding = cached.id if cached else None

        try:
            records = await self._store.query(
                PROFILE,
                Contains(("username", "display_name"), text),
                limit=self._search_limit,
            )
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        profiles = [profile_from_record(record) for record in records]
        return [profile for profile in profiles if profile.id != excluding and visible_in_search(profile)]

    async def suggest(self) -> list[Profile]:
        """Public profiles with the most activity, minus self and people already followed."""

        me = await self.fetch_own()
        excluded = {me.id, *self._cache.get_following_ids()}
        try:
            records = await self._store.query(
                PROFILE,
                All.of(Equals("visibility", "public"), Equals("is_discoverable", True)),
                sort=Sort("total_activities", descending=True),
                limit=self._suggestion_limit + len(excluded),
            )
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        candidates = [profile_from_record(record) for record in records]
        suggestions = [profile for profile in candidates if profile.id not in excluded and discoverable(profile)]
        return suggestions[: self._suggestion_limit]

    async def remove_account(self) -> None:
        """Delete the own profile with its edges and activities, then reset the cache."""

        me = await self.fetch_own()
        try:
            outgoing = await self._store.query(RELATIONSHIP, Equals("follower_id", me.id))
            incoming = await self._store.query(RELATIONSHIP, Equals("following_id", me.id))
            activities = await self._store.query(SHARED_ACTIVITY, Equals("owner_id", me.id))
            for record in [*outgoing, *incoming, *activities]:
                await self._store.delete(record.record_type, record.record_id)
            await self._store.delete(PROFILE, me.id)
        except StoreError as exc:
            raise classify_store_error(exc) from exc

        self._identity.clear_identity()
        logger.info("Removed account %s", me.id)


class IncrementalSearch:
    """Search-as-you-type state that ignores responses overtaken by newer queries."""

    def __init__(self, directory: ProfileDirectory) -> None:
        self._directory = directory
        self._issued = 0
        self._applied = 0
        self._lock = asyncio.Lock()
        self.query = ""
        self.results: list[Profile] = []

    async def submit(self, query: str) -> bool:
        """Run ``query``; return ``True`` when its results were applied."""

        self._issued += 1
        sequence = self._issued
        results = await self._directory.search(query)
        async with self._lock:
            if sequence < self._applied:
                logger.debug("Discarding search #%d, #%d already applied", sequence, self._applied)
                return False
            self._applied = sequence
            self.query = query
            self.results = results
            return True


__all__ = ["ProfileDirectory", "IncrementalSearch", "normalize_username"]
