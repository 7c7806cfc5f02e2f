"""Privacy settings API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..schemas import PRIVACY_PRESETS, PrivacySettings
from ..services import SocialCore
from .dependencies import get_core

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/privacy", response_model=PrivacySettings)
async def read_privacy_settings(core: SocialCore = Depends(get_core)) -> PrivacySettings:
    return await core.privacy.load_settings()


@router.put("/privacy", response_model=PrivacySettings)
async def replace_privacy_settings(payload: PrivacySettings, core: SocialCore = Depends(get_core)) -> PrivacySettings:
    return await core.privacy.save_settings(payload)


@router.get("/privacy/presets", response_model=dict[str, PrivacySettings])
async def privacy_presets() -> dict[str, PrivacySettings]:
    return {name: factory() for name, factory in PRIVACY_PRESETS.items()}


__all__ = ["router"]
