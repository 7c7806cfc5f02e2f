"""Schemas supporting the directed follow graph."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .profiles import ProfileResponse


class RelationshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"


class Relationship(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    follower_id: str
    following_id: str
    status: RelationshipStatus = RelationshipStatus.ACCEPTED
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FollowStatsResponse(BaseModel):
    profile_id: str
    followers_count: int
    following_count: int
    is_following: bool


class FollowActionResponse(BaseModel):
    target_id: str
    status: Literal["followed", "pending", "unfollowed", "noop"]
    relationship: Relationship | None = None


class FollowingListResponse(BaseModel):
    following: list[ProfileResponse]


__all__ = [
    "RelationshipStatus",
    "Relationship",
    "FollowStatsResponse",
    "FollowActionResponse",
    "FollowingListResponse",
]
