"""Conversion between domain schemas and store records."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..schemas import PrivacySettings, Profile, Relationship, SharedActivity

PROFILE = "Profile"
RELATIONSHIP = "Relationship"
SHARED_ACTIVITY = "SharedActivity"

RECORD_TYPES = (PROFILE, RELATIONSHIP, SHARED_ACTIVITY)

_PRIVACY_FIELDS = tuple(PrivacySettings.model_fields)


@dataclass
class Record:
    record_type: str
    record_id: str
    fields: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def profile_to_record(profile: Profile) -> Record:
    fields = profile.model_dump(mode="python", exclude={"id", "privacy"})
    for name in _PRIVACY_FIELDS:
        fields[name] = getattr(profile.privacy, name)
    fields["visibility"] = profile.privacy.visibility.value
    fields["who_can_follow"] = profile.privacy.who_can_follow.value
    return Record(PROFILE, profile.id, fields)


def profile_from_record(record: Record) -> Profile:
    data = dict(record.fields)
    privacy = PrivacySettings(**{name: data.pop(name) for name in _PRIVACY_FIELDS if name in data})
    data["created_at"] = _as_utc(data.get("created_at"))
    data["updated_at"] = _as_utc(data.get("updated_at"))
    return Profile(id=record.record_id, privacy=privacy, **data)


def relationship_to_record(relationship: Relationship) -> Record:
    fields = relationship.model_dump(mode="python", exclude={"id"})
    fields["status"] = relationship.status.value
    return Record(RELATIONSHIP, relationship.id, fields)


def relationship_from_record(record: Record) -> Relationship:
    data = dict(record.fields)
    data["created_at"] = _as_utc(data.get("created_at"))
    return Relationship(id=record.record_id, **data)


def activity_to_record(activity: SharedActivity) -> Record:
    return Record(SHARED_ACTIVITY, activity.id, activity.model_dump(mode="python", exclude={"id"}))


def activity_from_record(record: Record) -> SharedActivity:
    data = dict(record.fields)
    data["occurred_at"] = _as_utc(data.get("occurred_at"))
    return SharedActivity(id=record.record_id, **data)


__all__ = [
    "PROFILE",
    "RELATIONSHIP",
    "SHARED_ACTIVITY",
    "RECORD_TYPES",
    "Record",
    "profile_to_record",
    "profile_from_record",
    "relationship_to_record",
    "relationship_from_record",
    "activity_to_record",
    "activity_from_record",
]
