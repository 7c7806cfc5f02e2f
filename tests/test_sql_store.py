"""SQLAlchemy record store on a temporary SQLite file."""
from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest

from fitsocial.cache import LocalCache
from fitsocial.clients import StaticIdentityProvider
from fitsocial.config import get_settings
from fitsocial.database import init_db, make_engine, make_session_factory
from fitsocial.errors import RecordConflict, RecordNotFound, StoreSchemaError, VersionMismatch
from fitsocial.schemas import ActivitySummary, PrivacySettings, Profile, SharedActivity
from fitsocial.services import SocialCore
from fitsocial.store import PROFILE, SHARED_ACTIVITY, All, AnyOf, Contains, Equals, SqlRecordStore, Sort
from fitsocial.store.records import Record, activity_to_record, profile_from_record, profile_to_record


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite+pysqlite:///{tmp_path / 'remote.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine) -> SqlRecordStore:
    init_db(bind=engine)
    return SqlRecordStore(make_session_factory(engine))


def _profile(username: str, **changes) -> Profile:
    fields = {"display_name": username.title(), **changes}
    return Profile(identity=f"identity-{username}", username=username, **fields)


def test_create_and_fetch_round_trip_privacy(sql_store) -> None:
    profile = _profile("roundtrip", privacy=PrivacySettings.private_preset())

    async def scenario() -> Profile:
        await sql_store.create(profile_to_record(profile))
        return profile_from_record(await sql_store.fetch(PROFILE, profile.id))

    loaded = asyncio.run(scenario())
    assert loaded.username == "roundtrip"
    assert loaded.privacy == PrivacySettings.private_preset()
    assert loaded.created_at.tzinfo is not None


def test_create_reports_conflicting_unique_field(sql_store) -> None:
    async def scenario() -> None:
        await sql_store.create(profile_to_record(_profile("taken")))
        clash = Profile(identity="identity-other", username="taken", display_name="Other")
        with pytest.raises(RecordConflict) as excinfo:
            await sql_store.create(profile_to_record(clash))
        assert excinfo.value.fields == ("username",)

    asyncio.run(scenario())


def test_conditional_save_checks_version(sql_store) -> None:
    profile = _profile("versioned")

    async def scenario() -> None:
        await sql_store.create(profile_to_record(profile))
        bumped = profile.model_copy(update={"bio": "v1", "version": 1})
        await sql_store.save(profile_to_record(bumped), expected_version=0)

        stale = profile.model_copy(update={"bio": "stale", "version": 1})
        with pytest.raises(VersionMismatch):
            await sql_store.save(profile_to_record(stale), expected_version=0)

        missing = _profile("nobody")
        with pytest.raises(RecordNotFound):
            await sql_store.save(profile_to_record(missing), expected_version=0)

        stored = profile_from_record(await sql_store.fetch(PROFILE, profile.id))
        assert stored.bio == "v1"

    asyncio.run(scenario())


def test_save_all_is_atomic(sql_store) -> None:
    profile = _profile("atomic")
    activity = SharedActivity(owner_id=profile.id, label="Squat", occurred_at=datetime.now(timezone.utc))

    async def scenario() -> None:
        await sql_store.create(profile_to_record(profile))
        bumped = profile.model_copy(update={"total_activities": 1, "version": 1})
        with pytest.raises(VersionMismatch):
            await sql_store.save_all(
                [activity_to_record(activity), profile_to_record(bumped)],
                expected_versions={profile.id: 5},
            )
        assert await sql_store.query(SHARED_ACTIVITY) == []

        await sql_store.save_all(
            [activity_to_record(activity), profile_to_record(bumped)],
            expected_versions={profile.id: 0},
        )
        assert len(await sql_store.query(SHARED_ACTIVITY)) == 1

    asyncio.run(scenario())


class _BarrierStore(SqlRecordStore):
    """Holds each conditional write until every writer is ready at the same version."""

    def __init__(self, session_factory, parties: int) -> None:
        super().__init__(session_factory)
        self.barrier = threading.Barrier(parties, timeout=10)

    def _conditional_update(self, session, model, record, expected) -> None:
        self.barrier.wait()
        super()._conditional_update(session, model, record, expected)


def test_concurrent_saves_at_same_version_admit_one_writer(engine) -> None:
    init_db(bind=engine)
    store = _BarrierStore(make_session_factory(engine), parties=2)
    profile = _profile("contended")

    async def scenario() -> list:
        await store.create(profile_to_record(profile))
        writes = [
            profile_to_record(profile.model_copy(update={"bio": bio, "version": 1}))
            for bio in ("first writer", "second writer")
        ]
        return await asyncio.gather(
            *(store.save(record, expected_version=0) for record in writes),
            return_exceptions=True,
        )

    outcomes = asyncio.run(scenario())
    accepted = [outcome for outcome in outcomes if isinstance(outcome, Record)]
    rejected = [outcome for outcome in outcomes if isinstance(outcome, VersionMismatch)]
    assert len(accepted) == 1
    assert len(rejected) == 1
    assert rejected[0].actual == 1

    stored = profile_from_record(asyncio.run(store.fetch(PROFILE, profile.id)))
    assert stored.version == 1
    assert stored.bio == accepted[0].get("bio")


def test_query_predicates_sort_and_limit(sql_store) -> None:
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)

    async def scenario() -> None:
        for name in ("Alpha_Runner", "beta", "gamma_runner"):
            await sql_store.create(profile_to_record(_profile(name.lower(), display_name=name)))
        matches = await sql_store.query(PROFILE, Contains(("username", "display_name"), "RUNNER"))
        assert sorted(record.get("username") for record in matches) == ["alpha_runner", "gamma_runner"]

        both = await sql_store.query(
            PROFILE,
            All.of(AnyOf.of("username", ["beta", "gamma_runner"]), Equals("visibility", "followers_only")),
        )
        assert len(both) == 2

        for hours in (1, 3, 2):
            activity = SharedActivity(owner_id="owner", label=f"h{hours}", occurred_at=start + timedelta(hours=hours))
            await sql_store.create(activity_to_record(activity))
        newest = await sql_store.query(SHARED_ACTIVITY, sort=Sort("occurred_at", descending=True), limit=2)
        assert [record.get("label") for record in newest] == ["h3", "h2"]

    asyncio.run(scenario())


def test_contains_escapes_wildcards(sql_store) -> None:
    async def scenario() -> None:
        await sql_store.create(profile_to_record(_profile("plain_name")))
        assert await sql_store.query(PROFILE, Contains(("display_name",), "%")) == []

    asyncio.run(scenario())


def test_delete_of_missing_record_is_quiet(sql_store) -> None:
    asyncio.run(sql_store.delete(PROFILE, "does-not-exist"))


def test_unprovisioned_store_reports_schema_error(engine) -> None:
    store = SqlRecordStore(make_session_factory(engine))

    async def scenario() -> None:
        with pytest.raises(StoreSchemaError):
            await store.check_schema()
        with pytest.raises(StoreSchemaError):
            await store.query(PROFILE)
        with pytest.raises(StoreSchemaError):
            await store.query("Workout")

    asyncio.run(scenario())


def test_provisioned_store_passes_schema_check(sql_store) -> None:
    asyncio.run(sql_store.check_schema())


@pytest.fixture
def sql_core(sql_store) -> Iterator:
    cores: list[SocialCore] = []

    def _factory(identity: str) -> SocialCore:
        core = SocialCore.build(sql_store, LocalCache(), StaticIdentityProvider(identity), get_settings())
        cores.append(core)
        return core

    yield _factory
    for core in cores:
        core.close()


def test_end_to_end_follow_and_feed_on_sql_store(sql_core) -> None:
    async def scenario() -> None:
        reader = sql_core("identity-reader")
        author = sql_core("identity-author")
        await reader.profiles.register("Reader", "Reader")
        author_profile = await author.profiles.register("author", "Author")

        await reader.follows.follow(author_profile.id)
        published = await author.feed.publish(
            ActivitySummary(label="Deadlift", occurred_at=datetime.now(timezone.utc), total_volume=900.0)
        )
        assert published is not None

        feed = await reader.feed.fetch_feed()
        assert [activity.id for activity in feed] == [published.id]

        refreshed = await author.profiles.refresh_own()
        assert refreshed.total_activities == 1
        assert refreshed.version == 1

    asyncio.run(scenario())
