"""Profile API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from ..schemas import (
    ProfileResponse,
    ProfileSearchResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UsernameAvailabilityResponse,
)
from ..services import SocialCore, normalize_username
from .dependencies import get_core, to_response

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register_profile(payload: RegisterRequest, core: SocialCore = Depends(get_core)) -> ProfileResponse:
    profile = await core.profiles.register(payload.username, payload.display_name, payload.bio)
    return to_response(profile)


@router.get("/username-available", response_model=UsernameAvailabilityResponse)
async def username_available(
    username: str = Query(..., max_length=150),
    core: SocialCore = Depends(get_core),
) -> UsernameAvailabilityResponse:
    available = await core.profiles.is_username_available(username)
    return UsernameAvailabilityResponse(username=normalize_username(username), available=available)


@router.get("/me", response_model=ProfileResponse)
async def read_my_profile(refresh: bool = False, core: SocialCore = Depends(get_core)) -> ProfileResponse:
    profile = await (core.profiles.refresh_own() if refresh else core.profiles.fetch_own())
    return to_response(profile)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(payload: ProfileUpdateRequest, core: SocialCore = Depends(get_core)) -> ProfileResponse:
    updated = await core.profiles.update(**payload.model_dump(exclude_none=True))
    return to_response(updated)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_profile(core: SocialCore = Depends(get_core)) -> Response:
    await core.profiles.remove_account()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/search", response_model=ProfileSearchResponse)
async def search_profiles(
    q: str = Query("", max_length=100),
    core: SocialCore = Depends(get_core),
) -> ProfileSearchResponse:
    results = await core.profiles.search(q)
    return ProfileSearchResponse(query=q, results=[to_response(profile) for profile in results])


@router.get("/suggestions", response_model=list[ProfileResponse])
async def suggested_profiles(core: SocialCore = Depends(get_core)) -> list[ProfileResponse]:
    return [to_response(profile) for profile in await core.profiles.suggest()]


@router.get("/by-id/{profile_id}", response_model=ProfileResponse)
async def retrieve_profile_by_id(profile_id: str, core: SocialCore = Depends(get_core)) -> ProfileResponse:
    """Fetch another user's profile by its record id."""
    return to_response(await core.profiles.fetch_profile(profile_id))


__all__ = ["router"]
