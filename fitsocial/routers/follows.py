"""Follow management API routes."""
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, status

from ..schemas import FollowActionResponse, FollowingListResponse, FollowStatsResponse
from ..services import SocialCore
from .dependencies import get_core, to_response

router = APIRouter(prefix="/follows", tags=["follows"])


@router.post("/{target_id}", response_model=FollowActionResponse, status_code=status.HTTP_201_CREATED)
async def follow_user_endpoint(target_id: str, core: SocialCore = Depends(get_core)) -> FollowActionResponse:
    # Approval-gated targets raise ApprovalRequired, answered with 202 by the app handler.
    relationship = await core.follows.follow(target_id)
    return FollowActionResponse(target_id=target_id, status="followed", relationship=relationship)


@router.delete("/{target_id}", response_model=FollowActionResponse)
async def unfollow_user_endpoint(target_id: str, core: SocialCore = Depends(get_core)) -> FollowActionResponse:
    changed = await core.follows.unfollow(target_id)
    return FollowActionResponse(target_id=target_id, status="unfollowed" if changed else "noop")


@router.get("", response_model=FollowingListResponse)
async def following_list(core: SocialCore = Depends(get_core)) -> FollowingListResponse:
    profiles = await core.follows.fetch_following()
    return FollowingListResponse(following=[to_response(profile) for profile in profiles])


@router.get("/status/{target_id}", response_model=dict)
async def follow_status(target_id: str, core: SocialCore = Depends(get_core)) -> dict[str, bool]:
    return {"is_following": core.follows.is_following(target_id)}


@router.get("/stats/{profile_id}", response_model=FollowStatsResponse)
async def follow_stats_endpoint(profile_id: str, core: SocialCore = Depends(get_core)) -> FollowStatsResponse:
    stats = await core.follows.follow_stats(profile_id)
    return FollowStatsResponse(**asdict(stats))


__all__ = ["router"]
