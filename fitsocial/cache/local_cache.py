"""On-device cache of the identity, own profile and derived social state.

Values live as JSON rows in a small SQLite file so they survive restarts. The
remote store stays authoritative; everything here is a possibly-stale copy.

Access is synchronous and meant for the event loop thread: each call is one
primary-key read or write on a local file, and the services expose it through
sync helpers such as ``FollowService.is_following``. Routes touching the cache
are declared ``async`` so they never contend for the lock from a worker thread.
"""
from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Final

from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.engine import Engine

from ..config import Settings, get_settings
from ..database import LocalBase, make_engine, make_session_factory
from ..models import CacheEntry
from ..schemas import PrivacySettings, Profile

logger = logging.getLogger(__name__)

IDENTITY_KEY: Final[str] = "identity"
PROFILE_KEY: Final[str] = "profile"
SETTINGS_KEY: Final[str] = "privacy_settings"
FOLLOWING_KEY: Final[str] = "following_ids"

_ALL_KEYS: Final[tuple[str, ...]] = (IDENTITY_KEY, PROFILE_KEY, SETTINGS_KEY, FOLLOWING_KEY)


class LocalCache:
    """Single-writer key/value cache; every access is serialized by one lock."""

    def __init__(self, path: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            url = "sqlite+pysqlite://" if path in (None, ":memory:") else f"sqlite+pysqlite:///{path}"
            engine = make_engine(url)
        self._engine = engine
        LocalBase.metadata.create_all(bind=self._engine)
        self._sessions = make_session_factory(self._engine)
        self._lock = threading.Lock()
        self._listeners: list[Callable[[], None]] = []

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "LocalCache":
        settings = settings or get_settings()
        return cls(settings.local_cache_path)

    # -- raw access ---------------------------------------------------------

    def _read(self, key: str) -> Any | None:
        with self._lock, self._sessions() as session:
            row = session.get(CacheEntry, key)
            if row is None:
                return None
            try:
                return json.loads(row.value)
            except json.JSONDecodeError:
                logger.warning("Dropping unreadable cache entry %s", key)
                session.delete(row)
                session.commit()
                return None

    def _write(self, key: str, value: Any) -> None:
        payload = json.dumps(value, default=str)
        with self._lock, self._sessions() as session:
            row = session.get(CacheEntry, key)
            if row is None:
                session.add(CacheEntry(key=key, value=payload))
            else:
                row.value = payload
            session.commit()

    def _remove(self, *keys: str) -> None:
        with self._lock, self._sessions() as session:
            session.execute(delete(CacheEntry).where(CacheEntry.key.in_(keys)))
            session.commit()

    # -- typed accessors ----------------------------------------------------

    def get_identity(self) -> str | None:
        value = self._read(IDENTITY_KEY)
        return value if isinstance(value, str) and value else None

    def set_identity(self, identity: str) -> None:
        self._write(IDENTITY_KEY, identity)

    def get_profile(self) -> Profile | None:
        data = self._read(PROFILE_KEY)
        if data is None:
            return None
        try:
            return Profile.model_validate(data)
        except ValidationError:
            logger.warning("Cached profile no longer matches the schema; discarding it")
            self._remove(PROFILE_KEY)
            return None

    def set_profile(self, profile: Profile) -> None:
        self._write(PROFILE_KEY, profile.model_dump(mode="json"))

    def get_privacy_settings(self) -> PrivacySettings | None:
        data = self._read(SETTINGS_KEY)
        if data is None:
            return None
        try:
            return PrivacySettings.model_validate(data)
        except ValidationError:
            logger.warning("Cached privacy settings are invalid; discarding them")
            self._remove(SETTINGS_KEY)
            return None

    def set_privacy_settings(self, settings: PrivacySettings) -> None:
        self._write(SETTINGS_KEY, settings.model_dump(mode="json"))

    def get_following_ids(self) -> list[str]:
        value = self._read(FOLLOWING_KEY)
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]

    def set_following_ids(self, ids: list[str]) -> None:
        self._write(FOLLOWING_KEY, list(ids))

    def invalidate(self) -> None:
        """Clear identity, profile, mirrored settings and following ids together."""

        self._remove(*_ALL_KEYS)
        for listener in list(self._listeners):
            listener()
        logger.info("Local social cache invalidated")

    def add_invalidation_listener(self, listener: Callable[[], None]) -> None:
        """Register in-memory state that must be dropped together with the cache."""

        self._listeners.append(listener)

    def close(self) -> None:
        self._engine.dispose()


__all__ = ["LocalCache", "IDENTITY_KEY", "PROFILE_KEY", "SETTINGS_KEY", "FOLLOWING_KEY"]
