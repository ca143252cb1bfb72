import asyncio
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from reels.services.validation_runner import build_video_validator
from reels.worker import celery_app


def run_async(coro):
    """Run a coroutine to completion from a synchronous Celery task."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(name="reels.tasks.validation_task.validate_video_task")
def validate_video_task(file_path: str, file_size: int, mime_type: str) -> Dict[str, Any]:
    logger.info(f"Validating upload {file_path} ({file_size} bytes, {mime_type})")

    validator = build_video_validator()
    try:
        result = run_async(validator.validate(Path(file_path), file_size, mime_type))
    except Exception as e:
        logger.exception(f"Error validating upload {file_path}: {e}")
        raise

    logger.info(f"Validation of {file_path} finished: valid={result.is_valid}, errors={result.errors}")
    return result.model_dump(mode="json")
