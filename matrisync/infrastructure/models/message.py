"""SQLAlchemy model for direct messages."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from matrisync.infrastructure.database import Base

from ._columns import new_id, utc_now_naive


class MessageModel(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    receiver_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive, index=True)


__all__ = ["MessageModel"]
