"""Contract for the remote record store the social core syncs against."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from .query import Predicate, Sort
from .records import Record


class RecordStore(ABC):
    """Asynchronous, authoritative store of profile, relationship and activity records.

    Every method raises :class:`~fitsocial.errors.StoreError` subclasses on failure.
    """

    @abstractmethod
    async def query(
        self,
        record_type: str,
        predicate: Predicate | None = None,
        *,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        ...

    @abstractmethod
    async def fetch(self, record_type: str, record_id: str) -> Record:
        """Return one record or raise ``RecordNotFound``."""

    @abstractmethod
    async def save(self, record: Record, *, expected_version: int | None = None) -> Record:
        """Upsert ``record``.

        With ``expected_version`` the write only applies when the stored record
        exists at that version (``RecordNotFound`` / ``VersionMismatch`` otherwise).
        """

    @abstractmethod
    async def create(self, record: Record) -> Record:
        """Insert ``record``; raise ``RecordConflict`` if a unique key is taken."""

    @abstractmethod
    async def save_all(
        self,
        records: Sequence[Record],
        *,
        expected_versions: Mapping[str, int] | None = None,
    ) -> list[Record]:
        """Write ``records`` atomically; ``expected_versions`` is keyed by record id."""

    @abstractmethod
    async def delete(self, record_type: str, record_id: str) -> None:
        """Delete a record; deleting a missing record is not an error."""

    @abstractmethod
    async def check_schema(self) -> None:
        """Raise ``StoreSchemaError`` when a social record type is not provisioned."""


__all__ = ["RecordStore"]
