from fastapi import APIRouter, Depends

from reels.api.deps import get_s3_service, get_validation_runner
from reels.schemas.media import AIHealthResponse, S3HealthResponse
from reels.services.storage_service import S3Service
from reels.services.validation_runner import ValidationRunner

health_router = APIRouter()


@health_router.get("/s3", response_model=S3HealthResponse)
async def s3_health(s3: S3Service = Depends(get_s3_service)):
    return S3HealthResponse(
        s3_connected=await s3.test_connection(),
        bucket=s3.bucket,
        region=s3.region,
    )


@health_router.get("/ai", response_model=AIHealthResponse)
async def ai_health(runner: ValidationRunner = Depends(get_validation_runner)):
    deepgram_configured, classifier_configured = runner.ai_status()
    return AIHealthResponse(
        deepgram_configured=deepgram_configured,
        classifier_configured=classifier_configured,
        educational_validation_enabled=deepgram_configured and classifier_configured,
    )
