from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from ..config import Settings, get_settings
from ..errors import NetworkError, NotAuthenticated, ServerError

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """External source of the stable account/device identifier."""

    @abstractmethod
    async def current_identity(self) -> str:
        """Return the identity or raise :class:`NotAuthenticated`."""


class StaticIdentityProvider(IdentityProvider):
    """Provider with a fixed identity, for local runs and tests."""

    def __init__(self, identity: str | None) -> None:
        self.identity = identity
        self.calls = 0

    async def current_identity(self) -> str:
        self.calls += 1
        if not self.identity:
            raise NotAuthenticated()
        return self.identity


class HttpIdentityProvider(IdentityProvider):
    """Asks an HTTP identity endpoint for the signed-in account's identifier.

    The endpoint answers ``{"identity": "..."}``; 401/403 mean nobody is signed in.
    """

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._url = f"{base_url.rstrip('/')}/identity"
        self._timeout = timeout
        self._transport = transport

    async def current_identity(self) -> str:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._url)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            raise NetworkError() from exc

        if response.status_code in (401, 403):
            raise NotAuthenticated()
        if response.status_code >= 400:
            logger.warning("Identity provider returned %s: %s", response.status_code, response.text[:200])
            raise ServerError()

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("Identity provider returned non-JSON response")
            raise ServerError() from exc

        identity = data.get("identity") if isinstance(data, dict) else None
        if not isinstance(identity, str) or not identity.strip():
            raise NotAuthenticated()
        return identity.strip()


def build_identity_provider(settings: Settings | None = None) -> IdentityProvider:
    settings = settings or get_settings()
    if settings.identity_provider_url:
        return HttpIdentityProvider(settings.identity_provider_url, timeout=settings.identity_provider_timeout)
    return StaticIdentityProvider(settings.device_identity)


__all__ = [
    "IdentityProvider",
    "StaticIdentityProvider",
    "HttpIdentityProvider",
    "build_identity_provider",
]
