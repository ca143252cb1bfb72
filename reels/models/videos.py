import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import relationship

from reels.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Video(Base):
    __tablename__ = "videos"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    video_url = Column(String(2048), nullable=False)
    s3_key = Column(String(1024), nullable=True, unique=True, index=True)
    thumbnail_url = Column(String(2048), nullable=True)
    music_title = Column(String(255), nullable=True, default="Original Sound")
    duration = Column(Integer, nullable=True)

    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    share_count = Column(Integer, nullable=False, default=0)

    is_public = Column(Boolean, nullable=False, default=True, index=True)

    # microsecond precision keeps the feed order stable for uploads in the same second
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=func.now(), nullable=False)

    user = relationship("Users", lazy="joined")
