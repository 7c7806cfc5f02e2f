"""SQLAlchemy ORM model for directed follow edges."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Enum, String, UniqueConstraint
from sqlalchemy.sql import func

from fitsocial.database import Base


class RelationshipRecord(Base):
    __tablename__ = "relationships"

    id = Column(String(36), primary_key=True)
    follower_id = Column(String(36), nullable=False, index=True)
    following_id = Column(String(36), nullable=False, index=True)
    status = Column(
        Enum("pending", "accepted", "blocked", name="relationship_status"),
        nullable=False,
        default="accepted",
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("follower_id", "following_id", name="uq_relationship_pair"),)
    __unique_fields__ = (("follower_id", "following_id"),)


__all__ = ["RelationshipRecord"]
