from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)


class CommentAuthor(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    profile_image_url: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    video_id: str
    user_id: str
    content: str
    created_at: datetime
    user: Optional[CommentAuthor] = None


class LikeToggleResponse(BaseModel):
    liked: bool
    like_count: int


class FollowToggleResponse(BaseModel):
    following: bool
