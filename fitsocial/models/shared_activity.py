"""SQLAlchemy ORM model for published workout summaries."""
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from fitsocial.database import Base


class SharedActivityRecord(Base):
    __tablename__ = "shared_activities"

    id = Column(String(36), primary_key=True)
    owner_id = Column(String(36), nullable=False, index=True)
    label = Column(String(200), nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False, index=True)
    total_volume = Column(Float, nullable=False, default=0.0)
    item_count = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=True)

    __unique_fields__ = ()


__all__ = ["SharedActivityRecord"]
