"""Convenience exports for ORM models."""
from .cache_entry import CacheEntry
from .profile import ProfileRecord
from .relationship import RelationshipRecord
from .shared_activity import SharedActivityRecord

__all__ = [
    "CacheEntry",
    "ProfileRecord",
    "RelationshipRecord",
    "SharedActivityRecord",
]
