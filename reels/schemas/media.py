from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from reels.schemas.video import VideoResponse


class PresignedUrlRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1, max_length=100)


class PresignedUrlResponse(BaseModel):
    upload_url: str
    key: str
    public_url: str


class VideoUrlRequest(BaseModel):
    s3_key: Optional[str] = None
    video_url: Optional[str] = None


class VideoUrlResponse(BaseModel):
    url: str


class S3HealthResponse(BaseModel):
    s3_connected: bool
    bucket: Optional[str] = None
    region: Optional[str] = None


class AIHealthResponse(BaseModel):
    deepgram_configured: bool
    classifier_configured: bool
    educational_validation_enabled: bool


class SkippedObject(BaseModel):
    key: str
    reason: str


class SyncResult(BaseModel):
    message: str = "S3 videos sync completed"
    total: int
    synced: int
    skipped: int
    synced_videos: List[VideoResponse] = Field(default_factory=list)
    skipped_videos: List[SkippedObject] = Field(default_factory=list)


class DemoUploadResult(BaseModel):
    message: str = "Demo videos uploaded successfully"
    uploaded: int
    saved: int
    videos: List[VideoResponse] = Field(default_factory=list)


class CloudFrontTestRequest(BaseModel):
    s3_key: str = Field(default="videos/demo/demo-test.mp4", min_length=1)


class CloudFrontTestResponse(BaseModel):
    accessible: bool
    cloudfront_domain: Optional[str] = None
    test_url: str
    note: str


class MessageResponse(BaseModel):
    message: str
    details: Optional[Dict[str, Any]] = None
