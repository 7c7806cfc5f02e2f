"""In-process record store used for offline runs and as a test double."""
from __future__ import annotations

import asyncio
import copy
from collections import Counter
from typing import Iterable, Mapping, Sequence

from ..errors import RecordConflict, RecordNotFound, StoreError, StoreSchemaError, VersionMismatch
from .base import RecordStore
from .query import Predicate, Sort, evaluate
from .records import PROFILE, RECORD_TYPES, RELATIONSHIP, Record

DEFAULT_UNIQUE_KEYS: dict[str, tuple[tuple[str, ...], ...]] = {
    PROFILE: (("username",), ("identity",)),
    RELATIONSHIP: (("follower_id", "following_id"),),
}


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed store with call counting and failure injection."""

    def __init__(
        self,
        *,
        record_types: Iterable[str] = RECORD_TYPES,
        unique_keys: Mapping[str, tuple[tuple[str, ...], ...]] | None = None,
    ) -> None:
        self._tables: dict[str, dict[str, dict]] = {name: {} for name in record_types}
        self._unique_keys = dict(DEFAULT_UNIQUE_KEYS if unique_keys is None else unique_keys)
        self._failures: list[tuple[str | None, StoreError]] = []
        self.calls: Counter[str] = Counter()
        self.call_log: list[tuple[str, str]] = []

    # -- test helpers -------------------------------------------------------

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def reset_calls(self) -> None:
        self.calls.clear()
        self.call_log.clear()

    def fail_next(self, exc: StoreError, *, method: str | None = None) -> None:
        """Make the next matching call raise ``exc``."""

        self._failures.append((method, exc))

    def records(self, record_type: str) -> list[Record]:
        return [Record(record_type, record_id, copy.deepcopy(fields)) for record_id, fields in self._table(record_type).items()]

    # -- internals ----------------------------------------------------------

    async def _enter(self, method: str, record_type: str) -> None:
        self.calls[method] += 1
        self.call_log.append((method, record_type))
        await asyncio.sleep(0)
        for index, (wanted, exc) in enumerate(self._failures):
            if wanted is None or wanted == method:
                del self._failures[index]
                raise exc
        self._table(record_type)

    def _table(self, record_type: str) -> dict[str, dict]:
        table = self._tables.get(record_type)
        if table is None:
            raise StoreSchemaError(f"Record type {record_type} is not provisioned")
        return table

    def _conflicts(self, record: Record) -> tuple[str, ...] | None:
        table = self._table(record.record_type)
        for key in self._unique_keys.get(record.record_type, ()):
            values = tuple(record.fields.get(name) for name in key)
            for record_id, fields in table.items():
                if record_id == record.record_id:
                    continue
                if tuple(fields.get(name) for name in key) == values:
                    return key
        return None

    def _check_version(self, record: Record, expected: int) -> None:
        stored = self._table(record.record_type).get(record.record_id)
        if stored is None:
            raise RecordNotFound(record.record_type, record.record_id)
        if stored.get("version") != expected:
            raise VersionMismatch(record.record_type, record.record_id, expected, stored.get("version"))

    def _write(self, record: Record) -> Record:
        conflict = self._conflicts(record)
        if conflict is not None:
            raise RecordConflict(record.record_type, conflict)
        self._table(record.record_type)[record.record_id] = copy.deepcopy(record.fields)
        return Record(record.record_type, record.record_id, copy.deepcopy(record.fields))

    # -- RecordStore --------------------------------------------------------

    async def query(
        self,
        record_type: str,
        predicate: Predicate | None = None,
        *,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        await self._enter("query", record_type)
        rows = [
            Record(record_type, record_id, copy.deepcopy(fields))
            for record_id, fields in self._table(record_type).items()
            if evaluate(predicate, {"id": record_id, **fields})
        ]
        if sort is not None:
            rows.sort(key=lambda row: row.fields.get(sort.field), reverse=sort.descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def fetch(self, record_type: str, record_id: str) -> Record:
        await self._enter("fetch", record_type)
        fields = self._table(record_type).get(record_id)
        if fields is None:
            raise RecordNotFound(record_type, record_id)
        return Record(record_type, record_id, copy.deepcopy(fields))

    async def save(self, record: Record, *, expected_version: int | None = None) -> Record:
        await self._enter("save", record.record_type)
        if expected_version is not None:
            self._check_version(record, expected_version)
        return self._write(record)

    async def create(self, record: Record) -> Record:
        await self._enter("create", record.record_type)
        if record.record_id in self._table(record.record_type):
            raise RecordConflict(record.record_type, ("id",))
        return self._write(record)

    async def save_all(
        self,
        records: Sequence[Record],
        *,
        expected_versions: Mapping[str, int] | None = None,
    ) -> list[Record]:
        if not records:
            return []
        await self._enter("save_all", records[0].record_type)
        expected_versions = expected_versions or {}
        for record in records:
            if record.record_id in expected_versions:
                self._check_version(record, expected_versions[record.record_id])
            conflict = self._conflicts(record)
            if conflict is not None:
                raise RecordConflict(record.record_type, conflict)
        return [self._write(record) for record in records]

    async def delete(self, record_type: str, record_id: str) -> None:
        await self._enter("delete", record_type)
        self._table(record_type).pop(record_id, None)

    async def check_schema(self) -> None:
        missing = [name for name in RECORD_TYPES if name not in self._tables]
        if missing:
            raise StoreSchemaError(f"Missing record types: {', '.join(missing)}")


__all__ = ["InMemoryRecordStore", "DEFAULT_UNIQUE_KEYS"]
