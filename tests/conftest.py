"""Shared fixtures: every core is one device talking to a shared in-memory store."""
from __future__ import annotations

import os
from typing import Callable, Iterator

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("LOCAL_CACHE_PATH", ":memory:")
os.environ.setdefault("DEVICE_IDENTITY", "device-under-test")

from fitsocial.cache import LocalCache  # noqa: E402
from fitsocial.clients import StaticIdentityProvider  # noqa: E402
from fitsocial.config import get_settings  # noqa: E402
from fitsocial.schemas import PrivacySettings  # noqa: E402
from fitsocial.services import SocialCore  # noqa: E402
from fitsocial.store import InMemoryRecordStore  # noqa: E402


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def core_factory(store: InMemoryRecordStore) -> Iterator[Callable[[str], SocialCore]]:
    cores: list[SocialCore] = []

    def _factory(identity: str) -> SocialCore:
        core = SocialCore.build(store, LocalCache(), StaticIdentityProvider(identity), get_settings())
        cores.append(core)
        return core

    yield _factory
    for core in cores:
        core.close()


@pytest.fixture
def registered(core_factory: Callable[[str], SocialCore]):
    """Register a user on a fresh device, optionally with privacy settings."""

    async def _register(username: str, privacy: PrivacySettings | None = None) -> SocialCore:
        core = core_factory(f"identity-{username}")
        await core.profiles.register(username, username.title())
        if privacy is not None:
            await core.privacy.save_settings(privacy)
        return core

    return _register
