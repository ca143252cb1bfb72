from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class UserBase(BaseModel):
    email: Optional[str] = Field(default=None, max_length=255, description="User email")
    name: Optional[str] = Field(default=None, max_length=255, description="Display name")
    username: Optional[str] = Field(default=None, max_length=100)
    profile_image_url: Optional[str] = Field(default=None, max_length=1024)


class UserUpsert(UserBase):
    id: str = Field(..., min_length=1, max_length=255, description="Identity provider subject")
    provider: str = Field(default="oidc", min_length=1, max_length=50)


class UserResponse(UserBase):
    id: str
    provider: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserProfileResponse(UserResponse):
    follower_count: int = 0
    following_count: int = 0
    video_count: int = 0
    is_following: bool = False
