"""Remote record store contract and implementations."""
from .base import RecordStore
from .memory import InMemoryRecordStore
from .query import All, AnyOf, Contains, Equals, Predicate, Sort
from .records import PROFILE, RECORD_TYPES, RELATIONSHIP, SHARED_ACTIVITY, Record
from .sql import SqlRecordStore

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "SqlRecordStore",
    "All",
    "AnyOf",
    "Contains",
    "Equals",
    "Predicate",
    "Sort",
    "PROFILE",
    "RECORD_TYPES",
    "RELATIONSHIP",
    "SHARED_ACTIVITY",
    "Record",
]
