from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from reels.api.deps import get_s3_service
from reels.models.users import Users
from reels.schemas.media import (
    PresignedUrlRequest,
    PresignedUrlResponse,
    VideoUrlRequest,
    VideoUrlResponse,
)
from reels.services.storage_service import S3Service
from reels.utils.security import get_current_user

media_router = APIRouter()


@media_router.post("/generate-presigned-url", response_model=PresignedUrlResponse)
async def generate_presigned_url(
    payload: PresignedUrlRequest,
    user: Users = Depends(get_current_user),
    s3: S3Service = Depends(get_s3_service),
):
    if not payload.file_type.startswith("video/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only video files are allowed",
        )

    presigned = s3.presigned_upload_url(payload.file_name, payload.file_type, user.id)
    logger.info(f"Issued presigned upload URL for {presigned['key']} to {user.id}")
    return PresignedUrlResponse(**presigned)


@media_router.post("/get-video-url", response_model=VideoUrlResponse)
async def get_video_url(
    payload: VideoUrlRequest,
    s3: S3Service = Depends(get_s3_service),
):
    if not payload.s3_key and not payload.video_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="s3_key or video_url is required",
        )

    video_url = payload.video_url
    if video_url and video_url.startswith("http") and not s3.is_s3_url(video_url):
        return VideoUrlResponse(url=video_url)

    if payload.s3_key:
        url = s3.cloudfront_url(payload.s3_key)
        logger.debug(f"Serving video via {url}")
        return VideoUrlResponse(url=url)

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Unable to generate video URL",
    )
