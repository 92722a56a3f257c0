"""SQLAlchemy model for profile views."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from matrisync.infrastructure.database import Base

from ._columns import new_id, utc_now_naive


class ProfileViewModel(Base):
    __tablename__ = "profile_views"

    id = Column(String(36), primary_key=True, default=new_id)
    viewer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    viewed_profile_id = Column(
        String(36), ForeignKey("profiles.id"), nullable=False, index=True
    )
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive)


__all__ = ["ProfileViewModel"]
