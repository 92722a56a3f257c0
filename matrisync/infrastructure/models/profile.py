"""SQLAlchemy model for member profiles."""

from sqlalchemy import Column, DateTime, JSON, String

from matrisync.infrastructure.database import Base

from ._columns import new_id, utc_now_naive


class ProfileModel(Base):
    """Public part of a member profile used to render notifications."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=True, unique=True)
    name = Column(String(120), nullable=True)
    full_name = Column(String(200), nullable=True)
    images = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive)


__all__ = ["ProfileModel"]
