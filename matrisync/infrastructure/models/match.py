"""SQLAlchemy model for matches between two members."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String

from matrisync.infrastructure.database import Base

from ._columns import new_id, utc_now_naive


class MatchModel(Base):
    """``user1_id`` requested the match, ``user2_id`` received it."""

    __tablename__ = "matches"

    id = Column(String(36), primary_key=True, default=new_id)
    user1_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    user2_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive)


__all__ = ["MatchModel"]
