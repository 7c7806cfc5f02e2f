"""Schemas for shared activities and the follower feed."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class ActivitySummary(BaseModel):
    """Summary of a completed workout handed over by the workout layer."""

    label: str = Field(..., min_length=1, max_length=200)
    occurred_at: datetime
    total_volume: float = Field(default=0.0, ge=0)
    item_count: int = Field(default=0, ge=0)
    is_completed: bool = True


class SharedActivity(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str
    label: str
    occurred_at: datetime
    total_volume: float = 0.0
    item_count: int = 0
    is_completed: bool = True


class PublishRequest(ActivitySummary):
    auto_triggered: bool = False


class PublishResponse(BaseModel):
    status: Literal["published", "skipped"]
    activity: SharedActivity | None = None


class FeedResponse(BaseModel):
    activities: list[SharedActivity]


__all__ = [
    "ActivitySummary",
    "SharedActivity",
    "PublishRequest",
    "PublishResponse",
    "FeedResponse",
]
