"""SQLAlchemy model for likes and other profile interactions."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from matrisync.infrastructure.database import Base

from ._columns import new_id, utc_now_naive


class ProfileInteractionModel(Base):
    __tablename__ = "profile_interactions"

    id = Column(String(36), primary_key=True, default=new_id)
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    receiver_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    interaction_type = Column(String(30), nullable=False)
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive)


__all__ = ["ProfileInteractionModel"]
