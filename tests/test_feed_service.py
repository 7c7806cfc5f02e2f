"""Publishing and feed assembly."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from fitsocial.errors import ConcurrentModification, VersionMismatch
from fitsocial.schemas import ActivitySummary, PrivacySettings
from fitsocial.store import PROFILE, SHARED_ACTIVITY

_START = datetime(2026, 3, 1, 7, 30, tzinfo=timezone.utc)


def _summary(label: str, *, hours: int = 0, volume: float = 1000.0) -> ActivitySummary:
    return ActivitySummary(label=label, occurred_at=_START + timedelta(hours=hours), total_volume=volume, item_count=5)


def test_fetch_feed_with_empty_following_makes_no_store_calls(registered, store) -> None:
    async def scenario() -> None:
        me = await registered("loner")
        store.reset_calls()
        assert await me.feed.fetch_feed() == []

    asyncio.run(scenario())
    assert store.total_calls == 0


def test_auto_triggered_publish_is_skipped_when_auto_share_is_off(registered, store) -> None:
    async def scenario() -> None:
        me = await registered("quiet")
        assert await me.feed.publish(_summary("Leg day"), auto_triggered=True) is None
        profile = await me.profiles.refresh_own()
        assert profile.total_activities == 0

    asyncio.run(scenario())
    assert store.records(SHARED_ACTIVITY) == []
    assert store.calls["save_all"] == 0


def test_auto_triggered_publish_goes_out_when_auto_share_is_on(registered, store) -> None:
    async def scenario() -> None:
        me = await registered("sharer", PrivacySettings.public_preset())
        assert await me.feed.publish(_summary("Push day"), auto_triggered=True) is not None

    asyncio.run(scenario())
    assert len(store.records(SHARED_ACTIVITY)) == 1


def test_publish_writes_activity_and_stats_in_one_call(registered, store) -> None:
    async def scenario() -> None:
        me = await registered("lifter")
        store.reset_calls()
        activity = await me.feed.publish(_summary("Pull day", volume=2500.0))

        assert activity is not None
        assert activity.owner_id == (await me.profiles.fetch_own()).id
        assert store.calls["save_all"] == 1

        cached = me.cache.get_profile()
        assert cached is not None
        assert cached.total_activities == 1
        assert cached.total_volume == pytest.approx(2500.0)

    asyncio.run(scenario())
    (profile_record,) = store.records(PROFILE)
    assert profile_record.get("total_activities") == 1
    assert profile_record.get("version") == 1


def test_publish_retries_after_a_concurrent_profile_edit(core_factory, store) -> None:
    async def scenario() -> None:
        phone = core_factory("identity-1")
        watch = core_factory("identity-1")
        await phone.profiles.register("athlete", "Athlete")
        await watch.profiles.fetch_own()

        await phone.profiles.update(bio="edited on phone")
        activity = await watch.feed.publish(_summary("Run"))
        assert activity is not None

        profile = await phone.profiles.refresh_own()
        assert profile.bio == "edited on phone"
        assert profile.total_activities == 1

    asyncio.run(scenario())
    assert store.calls["save_all"] == 2


def test_publish_gives_up_after_repeated_conflicts(registered, store) -> None:
    async def scenario() -> None:
        me = await registered("unlucky")
        profile_id = (await me.profiles.fetch_own()).id
        for _ in range(3):
            store.fail_next(VersionMismatch(PROFILE, profile_id, 0, 1), method="save_all")
        with pytest.raises(ConcurrentModification):
            await me.feed.publish(_summary("Never lands"))

    asyncio.run(scenario())
    assert store.records(SHARED_ACTIVITY) == []


def test_feed_lists_followed_activities_newest_first(registered) -> None:
    async def scenario() -> None:
        me = await registered("reader")
        friend = await registered("friend")
        stranger = await registered("stranger")

        await friend.feed.publish(_summary("Early", hours=0))
        await friend.feed.publish(_summary("Late", hours=5))
        await stranger.feed.publish(_summary("Unseen", hours=3))

        await me.follows.follow((await friend.profiles.fetch_own()).id)
        activities = await me.feed.fetch_feed()

        assert [activity.label for activity in activities] == ["Late", "Early"]
        assert me.feed.activities == activities
        assert len(await me.feed.fetch_feed(limit=1)) == 1

    asyncio.run(scenario())
