from sqlalchemy import Column, DateTime, String, func

from reels.db.database import Base


class Users(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)

    email = Column(String(255), unique=True, index=True, nullable=True)
    name = Column(String(255), nullable=True)
    username = Column(String(100), nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    provider = Column(String(50), nullable=False, default="anonymous")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
