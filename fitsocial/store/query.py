"""Store-neutral predicates used to query records."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class AnyOf:
    field: str
    values: tuple[Any, ...]

    @classmethod
    def of(cls, field: str, values: Iterable[Any]) -> "AnyOf":
        return cls(field, tuple(values))


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match against any of ``fields``."""

    fields: tuple[str, ...]
    text: str


@dataclass(frozen=True)
class All:
    predicates: tuple["Predicate", ...]

    @classmethod
    def of(cls, *predicates: "Predicate") -> "All":
        return cls(tuple(predicates))


Predicate = Union[Equals, AnyOf, Contains, All]


@dataclass(frozen=True)
class Sort:
    field: str
    descending: bool = False


def _comparable(value: Any) -> Any:
    # Enum members compare by their stored value
    return getattr(value, "value", value)


def evaluate(predicate: Predicate | None, fields: Mapping[str, Any]) -> bool:
    """Evaluate ``predicate`` against an in-memory record."""

    if predicate is None:
        return True
    if isinstance(predicate, Equals):
        return _comparable(fields.get(predicate.field)) == _comparable(predicate.value)
    if isinstance(predicate, AnyOf):
        wanted = {_comparable(value) for value in predicate.values}
        return _comparable(fields.get(predicate.field)) in wanted
    if isinstance(predicate, Contains):
        needle = predicate.text.lower()
        return any(needle in str(fields.get(name) or "").lower() for name in predicate.fields)
    if isinstance(predicate, All):
        return all(evaluate(item, fields) for item in predicate.predicates)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


__all__ = ["Equals", "AnyOf", "Contains", "All", "Predicate", "Sort", "evaluate"]
