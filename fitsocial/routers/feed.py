"""Shared activity and follower feed routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ..schemas import ActivitySummary, FeedResponse, PublishRequest, PublishResponse
from ..services import SocialCore
from .dependencies import get_core

router = APIRouter(prefix="/feed", tags=["feed"])


@router.post("", response_model=PublishResponse, status_code=status.HTTP_201_CREATED)
async def publish_activity(payload: PublishRequest, core: SocialCore = Depends(get_core)) -> PublishResponse:
    summary = ActivitySummary.model_validate(payload.model_dump(exclude={"auto_triggered"}))
    activity = await core.feed.publish(summary, auto_triggered=payload.auto_triggered)
    if activity is None:
        return PublishResponse(status="skipped")
    return PublishResponse(status="published", activity=activity)


@router.get("", response_model=FeedResponse)
async def list_feed(
    limit: int | None = Query(None, ge=1, le=200),
    core: SocialCore = Depends(get_core),
) -> FeedResponse:
    return FeedResponse(activities=await core.feed.fetch_feed(limit))


__all__ = ["router"]
