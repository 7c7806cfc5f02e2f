"""Profile records and the payloads used to create or change them."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .privacy import PrivacySettings


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=_new_id)
    identity: str
    username: str
    display_name: str
    bio: str = ""
    is_discoverable: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    total_activities: int = 0
    total_volume: float = 0.0
    privacy: PrivacySettings = Field(default_factory=PrivacySettings)
    version: int = 0


class ProfileResponse(BaseModel):
    """Profile as shown to other users; the device identity is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    display_name: str
    bio: str
    is_discoverable: bool
    created_at: datetime
    total_activities: int
    total_volume: float
    privacy: PrivacySettings


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    display_name: str = Field(..., min_length=1, max_length=150)
    bio: str = Field(default="", max_length=500)


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = Field(default=None, max_length=150)
    bio: str | None = Field(default=None, max_length=500)
    is_discoverable: bool | None = None


class ProfileSearchResponse(BaseModel):
    query: str
    results: list[ProfileResponse]


class UsernameAvailabilityResponse(BaseModel):
    username: str
    available: bool


__all__ = [
    "Profile",
    "ProfileResponse",
    "RegisterRequest",
    "ProfileUpdateRequest",
    "ProfileSearchResponse",
    "UsernameAvailabilityResponse",
]
