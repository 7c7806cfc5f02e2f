"""SQLAlchemy ORM model for public profile records."""
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import expression, func

from fitsocial.database import Base


class ProfileRecord(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    identity = Column(String(255), unique=True, nullable=False, index=True)
    # Stored already normalized (trimmed, lowercase); the unique index is the uniqueness guarantee.
    username = Column(String(150), unique=True, nullable=False, index=True)
    display_name = Column(String(150), nullable=False)
    bio = Column(String(500), nullable=False, default="")
    is_discoverable = Column(Boolean, nullable=False, server_default=expression.true(), default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    total_activities = Column(Integer, nullable=False, default=0)
    total_volume = Column(Float, nullable=False, default=0.0)

    visibility = Column(String(32), nullable=False, default="followers_only")
    who_can_follow = Column(String(32), nullable=False, default="everyone")
    show_activity_count = Column(Boolean, nullable=False, default=True)
    show_total_volume = Column(Boolean, nullable=False, default=True)
    show_detail_names = Column(Boolean, nullable=False, default=True)
    show_detail_breakdown = Column(Boolean, nullable=False, default=False)
    auto_share_activities = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=0)

    __unique_fields__ = (("username",), ("identity",))


__all__ = ["ProfileRecord"]
