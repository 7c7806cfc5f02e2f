"""Resolution and caching of the signed-in account's identity."""
from __future__ import annotations

import asyncio
import logging

from ..cache import LocalCache
from ..clients import IdentityProvider

logger = logging.getLogger(__name__)


class IdentityResolver:
    def __init__(self, provider: IdentityProvider, cache: LocalCache) -> None:
        self._provider = provider
        self._cache = cache
        self._lock = asyncio.Lock()

    async def resolve_identity(self) -> str:
        """Return the persisted identity, asking the provider only on a cache miss."""

        cached = self._cache.get_identity()
        if cached:
            return cached
        async with self._lock:
            # A concurrent caller may have resolved it while we waited.
            cached = self._cache.get_identity()
            if cached:
                return cached
            identity = await self._provider.current_identity()
            self._cache.set_identity(identity)
            logger.info("Identity resolved from provider and cached")
            return identity

    def cached_identity(self) -> str | None:
        return self._cache.get_identity()

    def clear_identity(self) -> None:
        """Drop the identity and everything cached on its behalf."""

        self._cache.invalidate()


__all__ = ["IdentityResolver"]
