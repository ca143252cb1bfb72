from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reels.api.deps import get_auth_settings, get_s3_service, get_upload_settings
from reels.core.config import AppSettings, AuthSettings, UploadSettings
from reels.db.database import get_db
from reels.schemas.media import (
    CloudFrontTestRequest,
    CloudFrontTestResponse,
    DemoUploadResult,
    MessageResponse,
    SyncResult,
)
from reels.services.storage_service import S3Service
from reels.services.user_service import UserService
from reels.services.video_import_service import VideoImportService
from reels.utils.security import verify_admin_token

admin_router = APIRouter(dependencies=[Depends(verify_admin_token)])


@admin_router.post("/configure-s3-cors", response_model=MessageResponse)
async def configure_s3_cors(s3: S3Service = Depends(get_s3_service)):
    origins = AppSettings().cors_origins_list
    await s3.configure_cors(origins)
    return MessageResponse(message="S3 CORS configured successfully", details={"allowed_origins": origins})


@admin_router.post("/upload-demo-videos", response_model=DemoUploadResult)
async def upload_demo_videos(
    db: AsyncSession = Depends(get_db),
    s3: S3Service = Depends(get_s3_service),
    auth: AuthSettings = Depends(get_auth_settings),
    settings: UploadSettings = Depends(get_upload_settings),
):
    owner = await UserService(db).ensure_user(auth.anonymous_user_id)
    logger.info(f"Starting demo video upload for {owner.id}")
    return await VideoImportService(db, s3, tmp_dir=settings.upload_tmp_dir).import_demo_videos(owner.id)


@admin_router.post("/sync-s3-videos", response_model=SyncResult)
async def sync_s3_videos(
    db: AsyncSession = Depends(get_db),
    s3: S3Service = Depends(get_s3_service),
    auth: AuthSettings = Depends(get_auth_settings),
):
    owner = await UserService(db).ensure_user(auth.anonymous_user_id)
    logger.info(f"Starting S3 videos sync for {owner.id}")
    return await VideoImportService(db, s3).sync_s3_videos(owner.id)


@admin_router.post("/test-cloudfront", response_model=CloudFrontTestResponse)
async def check_cloudfront(
    payload: CloudFrontTestRequest,
    s3: S3Service = Depends(get_s3_service),
):
    accessible = await s3.test_cloudfront_access(payload.s3_key)
    return CloudFrontTestResponse(
        accessible=accessible,
        cloudfront_domain=s3.settings.cloudfront_domain,
        test_url=s3.cloudfront_url(payload.s3_key),
        note="CloudFront is working!" if accessible else "CloudFront DNS may still be propagating (takes 5-15 minutes)",
    )
