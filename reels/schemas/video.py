import math
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, field_validator

from reels.schemas.user import UserResponse


class EducationalAnalysis(BaseModel):
    is_educational: bool
    topic: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    reason: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence(cls, value):
        # models sometimes answer on a 0-100 scale
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(confidence):
            return None
        if 1.0 < confidence <= 100.0:
            confidence /= 100.0
        return min(max(confidence, 0.0), 1.0)

    @field_validator("topic", "reason", mode="before")
    @classmethod
    def stringify(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)


class VideoValidationResult(BaseModel):
    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    duration: Optional[int] = None
    file_size: int = 0
    educational_analysis: Optional[EducationalAnalysis] = None
    transcript: Optional[str] = None

    def reject(self, error: str) -> None:
        self.is_valid = False
        self.errors.append(error)


class UploadValidation(BaseModel):
    duration: Optional[int] = None
    educational_analysis: Optional[EducationalAnalysis] = None
    transcript: Optional[str] = None


class VideoMetadataCreate(BaseModel):
    title: str = Field(default="Untitled Video", min_length=1, max_length=255)
    description: Optional[str] = Field(default="", max_length=5000)
    video_url: str = Field(..., min_length=1, max_length=2048)
    s3_key: Optional[str] = Field(default=None, max_length=1024)
    music_title: str = Field(default="Original Sound", max_length=255)
    is_public: bool = True
    duration: Optional[int] = Field(default=None, ge=0)


class VideoResponse(BaseModel):
    id: UUID
    user_id: str
    title: str
    description: Optional[str] = None
    video_url: str
    s3_key: Optional[str] = None
    thumbnail_url: Optional[str] = None
    music_title: Optional[str] = None
    duration: Optional[int] = None
    view_count: int
    like_count: int
    comment_count: int
    share_count: int
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VideoWithUser(VideoResponse):
    user: Optional[UserResponse] = None
    is_liked: bool = False


class VideoUploadResponse(VideoResponse):
    validation: Optional[UploadValidation] = None


class ValidationRules(BaseModel):
    max_duration_seconds: int
    max_file_size_mb: int
    allowed_formats: List[str]
    requires_educational_content: bool
    description: str


class ViewResponse(BaseModel):
    success: bool = True
    view_count: int
