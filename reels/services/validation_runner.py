import asyncio
from pathlib import Path
from typing import Tuple

from celery.exceptions import CeleryError
from kombu.exceptions import OperationalError
from loguru import logger

from reels.core.config import DeepgramSettings, GeminiSettings, UploadSettings
from reels.core.exceptions import ReelsError
from reels.ml.llm import LLMService
from reels.schemas.video import VideoValidationResult
from reels.services.transcription_service import DeepgramService
from reels.services.video_validator import VideoValidator


def build_video_validator() -> VideoValidator:
    return VideoValidator(
        UploadSettings(),
        DeepgramService(DeepgramSettings()),
        LLMService(GeminiSettings()),
    )


class ValidationRunner:
    async def run(self, file_path: Path, file_size: int, mime_type: str) -> VideoValidationResult:
        raise NotImplementedError

    def ai_status(self) -> Tuple[bool, bool]:
        validator = build_video_validator()
        return validator.transcriber.is_configured(), validator.classifier.is_configured()

    def ai_configured(self) -> bool:
        return all(self.ai_status())


class InlineValidationRunner(ValidationRunner):
    def __init__(self, validator: VideoValidator):
        self.validator = validator

    async def run(self, file_path: Path, file_size: int, mime_type: str) -> VideoValidationResult:
        return await self.validator.validate(file_path, file_size, mime_type)

    def ai_status(self) -> Tuple[bool, bool]:
        return self.validator.transcriber.is_configured(), self.validator.classifier.is_configured()


class CeleryValidationRunner(ValidationRunner):
    """Hands the upload to a Celery worker and waits for its verdict.

    The file must sit on storage shared with the worker (``UPLOAD_TMP_DIR``).
    """

    def __init__(self, timeout: int):
        self.timeout = timeout

    async def run(self, file_path: Path, file_size: int, mime_type: str) -> VideoValidationResult:
        from reels.tasks.validation_task import validate_video_task

        def dispatch():
            async_result = validate_video_task.apply_async(args=[str(file_path), file_size, mime_type])
            logger.debug(f"Queued validation task {async_result.id} for {file_path}")
            return async_result.get(timeout=self.timeout)

        try:
            payload = await asyncio.to_thread(dispatch)
        except (CeleryError, OperationalError, OSError) as e:
            logger.error(f"Validation task for {file_path} failed: {e}")
            raise ReelsError(f"Validation worker unavailable: {e}") from e

        return VideoValidationResult.model_validate(payload)
