from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reels.core.config import (
    AWSSettings,
    AuthSettings,
    SocialStoreType,
    UploadSettings,
    ValidationBackend,
)
from reels.db.database import get_db
from reels.services.social_store import DynamoSocialStore, SocialStore, SqlSocialStore
from reels.services.storage_service import S3Service
from reels.services.validation_runner import (
    CeleryValidationRunner,
    InlineValidationRunner,
    ValidationRunner,
    build_video_validator,
)


@lru_cache
def get_aws_settings() -> AWSSettings:
    return AWSSettings()


@lru_cache
def get_upload_settings() -> UploadSettings:
    return UploadSettings()


@lru_cache
def get_auth_settings() -> AuthSettings:
    return AuthSettings()


@lru_cache
def get_s3_service() -> S3Service:
    return S3Service(get_aws_settings())


@lru_cache
def _dynamo_store() -> DynamoSocialStore:
    return DynamoSocialStore(get_aws_settings())


def get_social_store(db: AsyncSession = Depends(get_db)) -> SocialStore:
    if get_aws_settings().social_store == SocialStoreType.DYNAMODB:
        return _dynamo_store()
    return SqlSocialStore(db)


@lru_cache
def get_validation_runner() -> ValidationRunner:
    settings = get_upload_settings()
    if settings.validation_backend == ValidationBackend.INLINE:
        return InlineValidationRunner(build_video_validator())
    return CeleryValidationRunner(timeout=settings.validation_timeout)
