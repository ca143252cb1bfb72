import asyncio
import json
from pathlib import Path

from loguru import logger

from reels.core.config import UploadSettings
from reels.core.exceptions import ReelsError, ValidationFailed
from reels.ml.llm import LLMService
from reels.schemas.video import VideoValidationResult
from reels.services.transcription_service import DeepgramService


NOT_CONFIGURED_WARNING = "Educational content validation is not configured"


class VideoValidator:
    """Checks an uploaded video before it is stored.

    Size, format and duration are checked first. Only a video that passes
    them is transcribed and the transcript classified as educational or not.
    """

    def __init__(self, settings: UploadSettings, transcriber: DeepgramService, classifier: LLMService):
        self.settings = settings
        self.transcriber = transcriber
        self.classifier = classifier

    def ai_configured(self) -> bool:
        return self.transcriber.is_configured() and self.classifier.is_configured()

    async def validate(self, file_path: Path, file_size: int, mime_type: str) -> VideoValidationResult:
        result = VideoValidationResult(file_size=file_size)

        if mime_type not in self.settings.allowed_mime_types:
            result.reject(
                f"Unsupported video format ({mime_type}). "
                f"Allowed formats: {', '.join(self.settings.allowed_mime_types)}"
            )
            return result

        if file_size > self.settings.max_file_size_bytes:
            result.reject(
                f"File size ({file_size / (1024 * 1024):.2f}MB) exceeds maximum allowed size "
                f"of {self.settings.max_file_size_mb}MB"
            )

        try:
            duration = await self.probe_duration(file_path)
            result.duration = duration

            if duration > self.settings.max_duration_seconds:
                result.reject(
                    f"Video duration ({duration}s) exceeds maximum allowed duration "
                    f"of {self.settings.max_duration_seconds} seconds"
                )

            if not result.is_valid:
                return result

            if not self.ai_configured():
                logger.warning(f"{NOT_CONFIGURED_WARNING}, accepting {file_path.name} without analysis")
                result.warnings.append(NOT_CONFIGURED_WARNING)
                return result

            logger.info(f"Transcribing {file_path.name} with Deepgram")
            transcript = await self.transcriber.transcribe(file_path, mime_type)
            result.transcript = transcript

            if not transcript.strip():
                result.reject("No speech detected in video. Educational videos must contain spoken content.")
                return result

            logger.info(f"Analyzing educational content of {file_path.name} with Gemini")
            analysis = await self.classifier.analyze_educational_content(transcript)
            result.educational_analysis = analysis

            if not analysis.is_educational:
                result.reject(
                    f"Video content is not educational. "
                    f"{analysis.reason or 'Please upload educational content only.'}"
                )

        except ReelsError as e:
            logger.warning(f"Video validation error for {file_path.name}: {e}")
            result.reject(f"Validation failed: {e}")

        return result

    async def probe_duration(self, file_path: Path) -> int:
        try:
            process = await asyncio.create_subprocess_exec(
                self.settings.ffprobe_path,
                "-v", "quiet",
                "-print_format", "json",
                "-show_format",
                str(file_path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=30)
        except (OSError, asyncio.TimeoutError) as e:
            raise ValidationFailed(f"Failed to analyze video: {e}") from e

        if process.returncode != 0:
            raise ValidationFailed(f"Failed to analyze video: {stderr.decode(errors='replace').strip()}")

        try:
            probe = json.loads(stdout or b"{}")
            duration = float(probe["format"]["duration"])
        except (ValueError, KeyError, TypeError) as e:
            raise ValidationFailed("Could not determine video duration") from e

        return round(duration)
