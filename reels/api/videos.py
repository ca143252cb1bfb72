import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reels.api.deps import get_s3_service, get_social_store, get_upload_settings, get_validation_runner
from reels.core.config import UploadSettings
from reels.core.exceptions import ValidationFailed
from reels.db.database import get_db
from reels.models.users import Users
from reels.schemas.social import CommentCreate, CommentResponse, LikeToggleResponse
from reels.schemas.video import (
    UploadValidation,
    ValidationRules,
    VideoMetadataCreate,
    VideoResponse,
    VideoUploadResponse,
    VideoValidationResult,
    VideoWithUser,
    ViewResponse,
)
from reels.services.engagement_service import EngagementService
from reels.services.social_store import SocialStore
from reels.services.storage_service import S3Service
from reels.services.validation_runner import ValidationRunner
from reels.services.video_service import VideoService
from reels.utils.security import get_current_user, get_optional_user

videos_router = APIRouter()


def _viewer_id(user: Optional[Users]) -> Optional[str]:
    return user.id if user else None


def _size_mb(size: int) -> str:
    return f"{size / (1024 * 1024):.2f}MB"


def _save_upload(upload: UploadFile, tmp_dir: str) -> Path:
    directory = Path(tmp_dir)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "video.mp4").suffix or ".mp4"
    with tempfile.NamedTemporaryFile(dir=directory, suffix=suffix, delete=False) as f:
        shutil.copyfileobj(upload.file, f)
        return Path(f.name)


def _validation_failed(result: VideoValidationResult, settings: UploadSettings) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "message": "Video validation failed",
            "errors": result.errors,
            "details": {
                "duration": result.duration,
                "file_size": _size_mb(result.file_size),
                "max_duration": f"{settings.max_duration_seconds} seconds",
                "max_file_size": f"{settings.max_file_size_mb}MB",
            },
        },
    )


@videos_router.get("", response_model=List[VideoWithUser])
async def list_videos(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    social_store: SocialStore = Depends(get_social_store),
    user: Optional[Users] = Depends(get_optional_user),
):
    return await VideoService(db, social_store).list_feed(limit=limit, offset=offset, viewer_id=_viewer_id(user))


@videos_router.get("/validation-rules", response_model=ValidationRules)
async def validation_rules(
    settings: UploadSettings = Depends(get_upload_settings),
    runner: ValidationRunner = Depends(get_validation_runner),
):
    return ValidationRules(
        max_duration_seconds=settings.max_duration_seconds,
        max_file_size_mb=settings.max_file_size_mb,
        allowed_formats=settings.allowed_mime_types,
        requires_educational_content=runner.ai_configured(),
        description=(
            f"Videos must be educational content only, maximum {settings.max_duration_seconds} "
            f"seconds or {settings.max_file_size_mb}MB"
        ),
    )


@videos_router.get("/user/{user_id}", response_model=List[VideoWithUser])
async def list_user_videos(
    user_id: str,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    social_store: SocialStore = Depends(get_social_store),
    user: Optional[Users] = Depends(get_optional_user),
):
    return await VideoService(db, social_store).list_user_videos(
        user_id, limit=limit, offset=offset, viewer_id=_viewer_id(user)
    )


@videos_router.get("/{video_id}", response_model=VideoWithUser)
async def get_video(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    social_store: SocialStore = Depends(get_social_store),
    user: Optional[Users] = Depends(get_optional_user),
):
    return await VideoService(db, social_store).get_video_with_user(video_id, viewer_id=_viewer_id(user))


@videos_router.post("", response_model=VideoUploadResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    video: Optional[UploadFile] = File(None),
    video_url: Optional[str] = Form(None, max_length=2048),
    title: Optional[str] = Form(None, max_length=255),
    description: Optional[str] = Form(None, max_length=5000),
    music_title: Optional[str] = Form(None, max_length=255),
    is_public: bool = Form(True),
    db: AsyncSession = Depends(get_db),
    user: Users = Depends(get_current_user),
    s3: S3Service = Depends(get_s3_service),
    runner: ValidationRunner = Depends(get_validation_runner),
    settings: UploadSettings = Depends(get_upload_settings),
):
    s3_key = None
    result = None

    if video is not None and video.filename:
        if not s3.is_configured():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="S3 is not configured. Please provide a video URL instead or configure AWS credentials.",
            )

        mime_type = video.content_type or "application/octet-stream"
        local_path = await asyncio.to_thread(_save_upload, video, settings.upload_tmp_dir)
        try:
            file_size = local_path.stat().st_size
            logger.info(f"Validating upload {video.filename} ({_size_mb(file_size)}, {mime_type}) from {user.id}")

            result = await runner.run(local_path, file_size, mime_type)
            if not result.is_valid:
                logger.warning(f"Upload {video.filename} rejected: {result.errors}")
                raise _validation_failed(result, settings)

            video_url, s3_key = await s3.upload_video(local_path, video.filename, mime_type, user.id)
        finally:
            local_path.unlink(missing_ok=True)

    elif video_url:
        logger.info(f"Using provided video URL: {video_url}")
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No video file or URL provided",
        )

    if not description and result and result.educational_analysis and result.educational_analysis.topic:
        description = f"Educational content about: {result.educational_analysis.topic}"

    payload = VideoMetadataCreate(
        title=title or "Untitled Video",
        description=description or "",
        video_url=video_url,
        s3_key=s3_key,
        music_title=music_title or "Original Sound",
        is_public=is_public,
        duration=result.duration if result else None,
    )
    created = await VideoService(db).create_video(user.id, payload)

    return VideoUploadResponse(
        **VideoResponse.model_validate(created).model_dump(),
        validation=UploadValidation(
            duration=result.duration,
            educational_analysis=result.educational_analysis,
            transcript=result.transcript,
        ) if result else None,
    )


@videos_router.post("/metadata", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def register_video_metadata(
    payload: VideoMetadataCreate,
    db: AsyncSession = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    videos = VideoService(db)
    if payload.s3_key and await videos.get_by_s3_key(payload.s3_key):
        raise ValidationFailed("Video already registered")

    video = await videos.create_video(user.id, payload)
    return VideoResponse.model_validate(video)


@videos_router.post("/{video_id}/view", response_model=ViewResponse)
async def record_view(video_id: UUID, db: AsyncSession = Depends(get_db)):
    view_count = await VideoService(db).increment_view_count(video_id)
    return ViewResponse(view_count=view_count)


@videos_router.post("/{video_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    social_store: SocialStore = Depends(get_social_store),
    user: Users = Depends(get_current_user),
):
    return await EngagementService(db, social_store).toggle_like(user, video_id)


@videos_router.get("/{video_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    video_id: UUID,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    social_store: SocialStore = Depends(get_social_store),
):
    return await EngagementService(db, social_store).list_comments(video_id, limit=limit, offset=offset)


@videos_router.post("/{video_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    social_store: SocialStore = Depends(get_social_store),
    user: Users = Depends(get_current_user),
):
    return await EngagementService(db, social_store).add_comment(user, video_id, payload.content)
