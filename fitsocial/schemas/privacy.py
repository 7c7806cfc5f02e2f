"""Privacy settings attached to every profile."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Visibility(str, Enum):
    PUBLIC = "public"
    FOLLOWERS_ONLY = "followers_only"
    PRIVATE = "private"


class FollowPermission(str, Enum):
    EVERYONE = "everyone"
    APPROVAL_REQUIRED = "approval_required"
    NOBODY = "nobody"


class PrivacySettings(BaseModel):
    """Whole-object settings; callers replace it, never patch single fields."""

    model_config = ConfigDict(frozen=True)

    visibility: Visibility = Visibility.FOLLOWERS_ONLY
    who_can_follow: FollowPermission = FollowPermission.EVERYONE
    show_activity_count: bool = True
    show_total_volume: bool = True
    show_detail_names: bool = True
    show_detail_breakdown: bool = False
    auto_share_activities: bool = False

    @classmethod
    def public_preset(cls) -> "PrivacySettings":
        return cls(
            visibility=Visibility.PUBLIC,
            who_can_follow=FollowPermission.EVERYONE,
            show_activity_count=True,
            show_total_volume=True,
            show_detail_names=True,
            show_detail_breakdown=True,
            auto_share_activities=True,
        )

    @classmethod
    def followers_only_preset(cls) -> "PrivacySettings":
        return cls(
            visibility=Visibility.FOLLOWERS_ONLY,
            who_can_follow=FollowPermission.APPROVAL_REQUIRED,
            show_activity_count=True,
            show_total_volume=True,
            show_detail_names=True,
            show_detail_breakdown=False,
            auto_share_activities=False,
        )

    @classmethod
    def private_preset(cls) -> "PrivacySettings":
        return cls(
            visibility=Visibility.PRIVATE,
            who_can_follow=FollowPermission.NOBODY,
            show_activity_count=False,
            show_total_volume=False,
            show_detail_names=False,
            show_detail_breakdown=False,
            auto_share_activities=False,
        )


PRIVACY_PRESETS = {
    "public": PrivacySettings.public_preset,
    "followers_only": PrivacySettings.followers_only_preset,
    "private": PrivacySettings.private_preset,
}


__all__ = ["Visibility", "FollowPermission", "PrivacySettings", "PRIVACY_PRESETS"]
