"""ORM model for the on-device key/value cache."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from fitsocial.database import LocalBase


class CacheEntry(LocalBase):
    __tablename__ = "cache_entries"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


__all__ = ["CacheEntry"]
