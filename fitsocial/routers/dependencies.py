"""Shared FastAPI dependencies."""
from __future__ import annotations

from fastapi import Request

from ..schemas import Profile, ProfileResponse
from ..services import SocialCore


def get_core(request: Request) -> SocialCore:
    """Return the core built at startup and stored on the application state."""

    return request.app.state.core


def to_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse.model_validate(profile.model_dump())


__all__ = ["get_core", "to_response"]
