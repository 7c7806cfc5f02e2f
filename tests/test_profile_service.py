"""Profile directory behaviour against the in-memory record store."""
from __future__ import annotations

import asyncio

import pytest

from fitsocial.errors import (
    AlreadyRegistered,
    ConcurrentModification,
    InvalidRequest,
    ProfileNotFound,
    UsernameTaken,
)
from fitsocial.schemas import PrivacySettings
from fitsocial.services import IncrementalSearch, normalize_username
from fitsocial.store import PROFILE


def test_normalize_username_trims_and_lowercases() -> None:
    assert normalize_username("  Alice_01 ") == "alice_01"


def test_register_normalizes_and_rejects_variant_username(core_factory, store) -> None:
    async def scenario() -> None:
        first = core_factory("identity-1")
        second = core_factory("identity-2")

        profile = await first.profiles.register("Alice", "Alice A.")
        assert profile.username == "alice"

        with pytest.raises(UsernameTaken):
            await second.profiles.register(" alice ", "Impostor")

        assert [record.get("username") for record in store.records(PROFILE)] == ["alice"]

    asyncio.run(scenario())


@pytest.mark.parametrize("username", ["ab", "has space", "dash-name", ""])
def test_register_rejects_invalid_usernames(core_factory, store, username) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        with pytest.raises(InvalidRequest):
            await core.profiles.register(username, "Someone")

    asyncio.run(scenario())
    assert store.total_calls == 0


def test_second_profile_for_same_identity_is_refused(core_factory) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        await core.profiles.register("first_name", "First")
        with pytest.raises(AlreadyRegistered):
            await core.profiles.register("second_name", "Second")

    asyncio.run(scenario())


def test_concurrent_registrations_of_one_username_leave_a_single_winner(core_factory, store) -> None:
    async def scenario() -> list:
        left = core_factory("identity-left")
        right = core_factory("identity-right")
        return await asyncio.gather(
            left.profiles.register("sam", "Sam L"),
            right.profiles.register("SAM", "Sam R"),
            return_exceptions=True,
        )

    outcomes = asyncio.run(scenario())
    assert sum(isinstance(item, UsernameTaken) for item in outcomes) == 1
    assert len(store.records(PROFILE)) == 1


def test_fetch_own_is_served_from_cache_after_register(core_factory, store) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        profile = await core.profiles.register("cached", "Cached")
        store.reset_calls()
        assert (await core.profiles.fetch_own()).id == profile.id

    asyncio.run(scenario())
    assert store.total_calls == 0


def test_fetch_own_on_new_device_queries_by_identity(core_factory, store) -> None:
    async def scenario() -> None:
        await core_factory("identity-1").profiles.register("roamer", "Roamer")
        other_device = core_factory("identity-1")
        store.reset_calls()
        profile = await other_device.profiles.fetch_own()
        assert profile.username == "roamer"
        assert other_device.cache.get_profile().id == profile.id

    asyncio.run(scenario())
    assert store.calls["query"] == 1


def test_missing_remote_profile_clears_cache_and_keeps_missing(core_factory, store) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        profile = await core.profiles.register("ghost", "Ghost")
        await store.delete(PROFILE, profile.id)

        with pytest.raises(ProfileNotFound):
            await core.profiles.refresh_own()
        assert core.cache.get_profile() is None
        assert core.cache.get_identity() is None

        store.reset_calls()
        with pytest.raises(ProfileNotFound):
            await core.profiles.fetch_own()
        # The second read re-queried instead of returning the stale profile.
        assert store.calls["query"] == 1

    asyncio.run(scenario())


def test_update_of_deleted_profile_invalidates_cache(core_factory, store) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        profile = await core.profiles.register("vanishing", "Vanishing")
        await store.delete(PROFILE, profile.id)

        with pytest.raises(ProfileNotFound):
            await core.profiles.update(bio="still here?")
        assert core.cache.get_profile() is None

        again = await core.profiles.register("vanishing", "Back Again")
        assert again.id != profile.id

    asyncio.run(scenario())


def test_update_loses_to_concurrent_writer_and_refreshes(core_factory) -> None:
    async def scenario() -> None:
        phone = core_factory("identity-1")
        tablet = core_factory("identity-1")
        await phone.profiles.register("lifter", "Lifter")
        await tablet.profiles.fetch_own()

        await phone.profiles.update(bio="from phone")
        with pytest.raises(ConcurrentModification):
            await tablet.profiles.update(display_name="From Tablet")

        refreshed = tablet.cache.get_profile()
        assert refreshed is not None and refreshed.bio == "from phone"

        merged = await tablet.profiles.update(display_name="From Tablet")
        assert merged.bio == "from phone"
        assert merged.display_name == "From Tablet"
        assert merged.version == 2

    asyncio.run(scenario())


def test_update_rejects_unknown_fields_and_blank_display_name(core_factory) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        await core.profiles.register("strict", "Strict")
        with pytest.raises(InvalidRequest):
            await core.profiles.update(username="renamed")
        with pytest.raises(InvalidRequest):
            await core.profiles.update(display_name="   ")

    asyncio.run(scenario())


def test_search_hides_self_and_private_profiles(registered) -> None:
    async def scenario() -> None:
        me = await registered("runner_a")
        public = await registered("runner_b", PrivacySettings.public_preset())
        await registered("runner_c", PrivacySettings.private_preset())

        results = await me.profiles.search("RUNNER")
        assert [profile.id for profile in results] == [(await public.profiles.fetch_own()).id]

    asyncio.run(scenario())


def test_blank_search_makes_no_store_call(core_factory, store) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        assert await core.profiles.search("   ") == []

    asyncio.run(scenario())
    assert store.total_calls == 0


def test_suggestions_only_include_public_discoverable_unfollowed(registered) -> None:
    async def scenario() -> None:
        me = await registered("seeker")
        star = await registered("star", PrivacySettings.public_preset())
        await registered("shy", PrivacySettings.followers_only_preset())
        hidden = await registered("hidden", PrivacySettings.public_preset())
        await hidden.profiles.update(is_discoverable=False)
        await star.profiles.update(total_activities=12)

        suggestions = await me.profiles.suggest()
        assert [profile.username for profile in suggestions] == ["star"]

        await me.follows.follow(suggestions[0].id)
        assert await me.profiles.suggest() == []

    asyncio.run(scenario())


def test_remove_account_deletes_edges_and_activities(registered, store) -> None:
    async def scenario() -> None:
        me = await registered("leaver")
        friend = await registered("stayer")
        friend_id = (await friend.profiles.fetch_own()).id
        await me.follows.follow(friend_id)
        await friend.follows.follow((await me.profiles.fetch_own()).id)

        await me.profiles.remove_account()

        assert me.cache.get_identity() is None
        assert [record.get("username") for record in store.records(PROFILE)] == ["stayer"]
        assert store.records("Relationship") == []

    asyncio.run(scenario())


class _GatedDirectory:
    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = {}

    async def search(self, query: str) -> list[str]:
        await self.gates[query].wait()
        return [query]


def test_incremental_search_discards_overtaken_response() -> None:
    async def scenario() -> None:
        directory = _GatedDirectory()
        directory.gates = {"ru": asyncio.Event(), "run": asyncio.Event()}
        search = IncrementalSearch(directory)  # type: ignore[arg-type]

        slow = asyncio.create_task(search.submit("ru"))
        fast = asyncio.create_task(search.submit("run"))
        await asyncio.sleep(0)

        directory.gates["run"].set()
        assert await fast is True
        directory.gates["ru"].set()
        assert await slow is False

        assert search.query == "run"
        assert search.results == ["run"]

    asyncio.run(scenario())


def test_username_availability_ignores_case_and_whitespace(core_factory, store) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        await core.profiles.register("Alice", "Alice A.")
        store.reset_calls()

        assert await core.profiles.is_username_available(" ALICE ") is False
        assert store.calls["query"] == 1
        assert await core.profiles.is_username_available("alice") is False
        assert await core.profiles.is_username_available("Bob_9") is True

    asyncio.run(scenario())


@pytest.mark.parametrize("username", ["ab", "has space", "  "])
def test_username_availability_rejects_invalid_names(core_factory, store, username) -> None:
    async def scenario() -> None:
        core = core_factory("identity-1")
        with pytest.raises(InvalidRequest):
            await core.profiles.is_username_available(username)

    asyncio.run(scenario())
    assert store.total_calls == 0
