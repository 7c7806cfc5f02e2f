"""System-level routes for health checks and diagnostics."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ..config import get_settings
from ..errors import StoreError, classify_store_error
from ..services import SocialCore
from .dependencies import get_core

router = APIRouter(prefix="/system", tags=["system"])


class HealthResponse(BaseModel):
    service: str
    version: str


class DiagnosticsResponse(BaseModel):
    schema_ok: bool
    detail: str | None
    identity_cached: bool
    profile_cached: bool
    following_cached: int


@router.get("/health", response_model=HealthResponse)
def healthcheck() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(service=settings.app_name, version=settings.api_version)


@router.get("/diagnostics", response_model=DiagnosticsResponse)
async def diagnostics(core: SocialCore = Depends(get_core)) -> DiagnosticsResponse:
    """Check that the remote store is provisioned and summarize the local cache."""

    detail = None
    try:
        await core.store.check_schema()
    except StoreError as exc:
        detail = classify_store_error(exc).message
    return DiagnosticsResponse(
        schema_ok=detail is None,
        detail=detail,
        identity_cached=core.identity.cached_identity() is not None,
        profile_cached=core.cache.get_profile() is not None,
        following_cached=len(core.cache.get_following_ids()),
    )


@router.post("/cache/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_cache(core: SocialCore = Depends(get_core)) -> None:
    core.reset()


__all__ = ["router"]
