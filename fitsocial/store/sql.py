"""Record store backed by SQLAlchemy sessions."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Sequence, TypeVar

from sqlalchemy import and_, func, inspect, or_, select, update
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    NoSuchTableError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from ..errors import (
    RecordConflict,
    RecordNotFound,
    StoreError,
    StoreFailure,
    StoreSchemaError,
    StoreUnavailable,
    VersionMismatch,
)
from ..models import ProfileRecord, RelationshipRecord, SharedActivityRecord
from .base import RecordStore
from .query import All, AnyOf, Contains, Equals, Predicate, Sort
from .records import PROFILE, RELATIONSHIP, SHARED_ACTIVITY, Record

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MODELS: dict[str, Any] = {
    PROFILE: ProfileRecord,
    RELATIONSHIP: RelationshipRecord,
    SHARED_ACTIVITY: SharedActivityRecord,
}

_SCHEMA_MARKERS = ("no such table", "no such column", "has no column", "does not exist")


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


class SqlRecordStore(RecordStore):
    """Runs blocking SQLAlchemy sessions in worker threads."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _model(record_type: str) -> Any:
        model = _MODELS.get(record_type)
        if model is None:
            raise StoreSchemaError(f"Record type {record_type} is not provisioned")
        return model

    @staticmethod
    def _column(model: Any, name: str) -> Any:
        if name not in model.__table__.columns:
            raise StoreSchemaError(f"{model.__tablename__} has no field {name}")
        return getattr(model, name)

    def _clause(self, model: Any, predicate: Predicate) -> Any:
        if isinstance(predicate, Equals):
            return self._column(model, predicate.field) == _plain(predicate.value)
        if isinstance(predicate, AnyOf):
            return self._column(model, predicate.field).in_([_plain(value) for value in predicate.values])
        if isinstance(predicate, Contains):
            needle = predicate.text.lower()
            return or_(
                *(func.lower(self._column(model, name)).contains(needle, autoescape=True) for name in predicate.fields)
            )
        if isinstance(predicate, All):
            return and_(*(self._clause(model, item) for item in predicate.predicates))
        raise TypeError(f"Unsupported predicate: {predicate!r}")

    @staticmethod
    def _to_record(record_type: str, row: Any) -> Record:
        fields = {column.name: getattr(row, column.name) for column in row.__table__.columns if column.name != "id"}
        return Record(record_type, row.id, fields)

    def _apply(self, model: Any, row: Any, record: Record) -> None:
        for name, value in record.fields.items():
            self._column(model, name)
            setattr(row, name, _plain(value))

    def _values(self, model: Any, record: Record) -> dict[str, Any]:
        return {self._column(model, name).key: _plain(value) for name, value in record.fields.items()}

    def _conditional_update(self, session: Session, model: Any, record: Record, expected: int) -> None:
        """Write ``record`` only if the stored row is still at ``expected``.

        The version test is part of the UPDATE statement, so a concurrent writer
        holding the same version either blocks or matches no row.
        """

        stmt = (
            update(model)
            .where(model.id == record.record_id, self._column(model, "version") == expected)
            .values(**self._values(model, record))
            .execution_options(synchronize_session=False)
        )
        try:
            result = session.execute(stmt)
        except IntegrityError as exc:
            self._raise_conflict(session, exc, [(model, record)])
        if result.rowcount:
            return
        actual = session.scalar(select(model.version).where(model.id == record.record_id))
        if actual is None:
            raise RecordNotFound(record.record_type, record.record_id)
        raise VersionMismatch(record.record_type, record.record_id, expected, actual)

    @staticmethod
    def _conflicting_key(session: Session, model: Any, record: Record) -> tuple[str, ...]:
        for key in getattr(model, "__unique_fields__", ()):
            clauses = [getattr(model, name) == _plain(record.fields.get(name)) for name in key]
            if session.scalar(select(model.id).where(*clauses, model.id != record.record_id)) is not None:
                return key
        if session.get(model, record.record_id) is not None:
            return ("id",)
        return ()

    def _raise_conflict(self, session: Session, exc: IntegrityError, pending: Sequence[tuple[Any, Record]]) -> None:
        session.rollback()
        for model, record in pending:
            key = self._conflicting_key(session, model, record)
            if key:
                raise RecordConflict(record.record_type, key) from exc
        raise StoreFailure(str(exc.orig or exc)) from exc

    def _commit(self, session: Session, pending: Sequence[tuple[Any, Record]]) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            self._raise_conflict(session, exc, pending)

    def _guarded(self, operation: Callable[..., T], *args: Any) -> T:
        with self._session_factory() as session:
            try:
                return operation(session, *args)
            except StoreError:
                session.rollback()
                raise
            except (NoSuchTableError, ProgrammingError) as exc:
                session.rollback()
                raise StoreSchemaError(str(exc)) from exc
            except OperationalError as exc:
                session.rollback()
                message = str(exc.orig or exc).lower()
                if any(marker in message for marker in _SCHEMA_MARKERS):
                    raise StoreSchemaError(message) from exc
                raise StoreUnavailable(message) from exc
            except (DisconnectionError, InterfaceError) as exc:
                session.rollback()
                raise StoreUnavailable(str(exc)) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Record store operation failed")
                raise StoreFailure(str(exc)) from exc

    async def _run(self, operation: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(self._guarded, operation, *args)

    # -- synchronous operations ---------------------------------------------

    def _query_sync(
        self,
        session: Session,
        record_type: str,
        predicate: Predicate | None,
        sort: Sort | None,
        limit: int | None,
    ) -> list[Record]:
        model = self._model(record_type)
        stmt = select(model)
        if predicate is not None:
            stmt = stmt.where(self._clause(model, predicate))
        if sort is not None:
            column = self._column(model, sort.field)
            stmt = stmt.order_by(column.desc() if sort.descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_record(record_type, row) for row in session.scalars(stmt)]

    def _fetch_sync(self, session: Session, record_type: str, record_id: str) -> Record:
        row = session.get(self._model(record_type), record_id)
        if row is None:
            raise RecordNotFound(record_type, record_id)
        return self._to_record(record_type, row)

    def _upsert(self, session: Session, record: Record, expected_version: int | None) -> Any:
        model = self._model(record.record_type)
        if expected_version is not None:
            self._conditional_update(session, model, record, expected_version)
            return model
        row = session.get(model, record.record_id)
        if row is None:
            row = model(id=record.record_id)
            session.add(row)
        self._apply(model, row, record)
        return model

    def _written(self, session: Session, model: Any, record: Record) -> Record:
        row = session.get(model, record.record_id, populate_existing=True)
        if row is None:
            raise RecordNotFound(record.record_type, record.record_id)
        return self._to_record(record.record_type, row)

    def _save_sync(self, session: Session, record: Record, expected_version: int | None) -> Record:
        model = self._upsert(session, record, expected_version)
        self._commit(session, [(model, record)])
        return self._written(session, model, record)

    def _create_sync(self, session: Session, record: Record) -> Record:
        model = self._model(record.record_type)
        if session.get(model, record.record_id) is not None:
            raise RecordConflict(record.record_type, ("id",))
        row = model(id=record.record_id)
        self._apply(model, row, record)
        session.add(row)
        self._commit(session, [(model, record)])
        return self._to_record(record.record_type, row)

    def _save_all_sync(
        self,
        session: Session,
        records: Sequence[Record],
        expected_versions: Mapping[str, int],
    ) -> list[Record]:
        models = [self._upsert(session, record, expected_versions.get(record.record_id)) for record in records]
        self._commit(session, list(zip(models, records)))
        return [self._written(session, model, record) for model, record in zip(models, records)]

    def _delete_sync(self, session: Session, record_type: str, record_id: str) -> None:
        row = session.get(self._model(record_type), record_id)
        if row is None:
            return
        session.delete(row)
        session.commit()

    def _check_schema_sync(self, session: Session) -> None:
        inspector = inspect(session.get_bind())
        problems: list[str] = []
        for record_type, model in _MODELS.items():
            if not inspector.has_table(model.__tablename__):
                problems.append(f"{record_type} ({model.__tablename__} missing)")
                continue
            present = {column["name"] for column in inspector.get_columns(model.__tablename__)}
            missing = sorted(set(model.__table__.columns.keys()) - present)
            if missing:
                problems.append(f"{record_type} (missing fields: {', '.join(missing)})")
        if problems:
            raise StoreSchemaError("; ".join(problems))

    # -- RecordStore --------------------------------------------------------

    async def query(
        self,
        record_type: str,
        predicate: Predicate | None = None,
        *,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        return await self._run(self._query_sync, record_type, predicate, sort, limit)

    async def fetch(self, record_type: str, record_id: str) -> Record:
        return await self._run(self._fetch_sync, record_type, record_id)

    async def save(self, record: Record, *, expected_version: int | None = None) -> Record:
        return await self._run(self._save_sync, record, expected_version)

    async def create(self, record: Record) -> Record:
        return await self._run(self._create_sync, record)

    async def save_all(
        self,
        records: Sequence[Record],
        *,
        expected_versions: Mapping[str, int] | None = None,
    ) -> list[Record]:
        if not records:
            return []
        return await self._run(self._save_all_sync, list(records), dict(expected_versions or {}))

    async def delete(self, record_type: str, record_id: str) -> None:
        await self._run(self._delete_sync, record_type, record_id)

    async def check_schema(self) -> None:
        await self._run(self._check_schema_sync)


__all__ = ["SqlRecordStore"]
