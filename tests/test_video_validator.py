"""
Unit tests for the upload validation pipeline.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from reels.core.config import GeminiSettings, UploadSettings
from reels.core.exceptions import ClassificationError, TranscriptionError, ValidationFailed
from reels.ml.llm import LLMService
from reels.schemas.video import EducationalAnalysis
from reels.services import video_validator as validator_module
from reels.services.video_validator import VideoValidator


MB = 1024 * 1024


@pytest.fixture
def transcriber():
    mock = MagicMock()
    mock.is_configured.return_value = True
    mock.transcribe = AsyncMock(return_value="Today we learn how vaccines train the immune system.")
    return mock


@pytest.fixture
def classifier():
    mock = MagicMock()
    mock.is_configured.return_value = True
    mock.analyze_educational_content = AsyncMock(return_value=EducationalAnalysis(
        is_educational=True,
        topic="Immunology",
        confidence=0.9,
        reason="Explains a biology concept",
    ))
    return mock


@pytest.fixture
def validator(transcriber, classifier):
    validator = VideoValidator(UploadSettings(), transcriber, classifier)
    validator.probe_duration = AsyncMock(return_value=30)
    return validator


@pytest.fixture
def video_file(tmp_path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"fake video")
    return path


@pytest.mark.unit
@pytest.mark.validation
class TestBasicChecks:
    """Test size, format and duration checks."""

    async def test_valid_video(self, validator, video_file, transcriber, classifier):
        result = await validator.validate(video_file, 2 * MB, "video/mp4")

        assert result.is_valid is True
        assert result.errors == []
        assert result.duration == 30
        assert result.educational_analysis.topic == "Immunology"
        assert result.transcript.startswith("Today we learn")
        transcriber.transcribe.assert_awaited_once_with(video_file, "video/mp4")
        classifier.analyze_educational_content.assert_awaited_once()

    async def test_size_and_duration_errors_are_collected(self, validator, video_file, transcriber):
        validator.probe_duration.return_value = 95

        result = await validator.validate(video_file, 12 * MB, "video/mp4")

        assert result.is_valid is False
        assert result.errors == [
            "File size (12.00MB) exceeds maximum allowed size of 10MB",
            "Video duration (95s) exceeds maximum allowed duration of 60 seconds",
        ]
        transcriber.transcribe.assert_not_awaited()

    async def test_unsupported_format(self, validator, video_file):
        result = await validator.validate(video_file, MB, "video/x-flv")

        assert result.is_valid is False
        assert result.errors[0].startswith("Unsupported video format (video/x-flv)")
        validator.probe_duration.assert_not_awaited()

    async def test_unreadable_duration(self, validator, video_file, transcriber):
        validator.probe_duration.side_effect = ValidationFailed("Could not determine video duration")

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.is_valid is False
        assert result.errors == ["Validation failed: Could not determine video duration"]
        transcriber.transcribe.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.validation
class TestEducationalGate:
    """Test the transcription and classification steps."""

    async def test_unconfigured_ai_accepts_with_warning(self, validator, video_file, transcriber):
        transcriber.is_configured.return_value = False

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.is_valid is True
        assert result.warnings == ["Educational content validation is not configured"]
        transcriber.transcribe.assert_not_awaited()

    async def test_no_speech(self, validator, video_file, transcriber, classifier):
        transcriber.transcribe.return_value = "   "

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.is_valid is False
        assert result.errors == ["No speech detected in video. Educational videos must contain spoken content."]
        classifier.analyze_educational_content.assert_not_awaited()

    async def test_not_educational(self, validator, video_file, classifier):
        classifier.analyze_educational_content.return_value = EducationalAnalysis(
            is_educational=False, confidence=0.8, reason="This is a dance trend."
        )

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.is_valid is False
        assert result.errors == ["Video content is not educational. This is a dance trend."]
        assert result.educational_analysis.is_educational is False

    async def test_not_educational_without_reason(self, validator, video_file, classifier):
        classifier.analyze_educational_content.return_value = EducationalAnalysis(is_educational=False)

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.errors == ["Video content is not educational. Please upload educational content only."]

    async def test_transcription_error(self, validator, video_file, transcriber):
        transcriber.transcribe.side_effect = TranscriptionError("Failed to transcribe video")

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.is_valid is False
        assert result.errors == ["Validation failed: Failed to transcribe video"]

    async def test_classification_error(self, validator, video_file, classifier):
        classifier.analyze_educational_content.side_effect = ClassificationError("Invalid analysis result")

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.errors == ["Validation failed: Invalid analysis result"]
        assert result.transcript is not None

    async def test_percent_confidence_is_accepted(self, transcriber, video_file):
        reply = '{"is_educational": true, "topic": "Immunology", "confidence": 92}'
        body = {"candidates": [{"content": {"parts": [{"text": reply}]}}]}
        classifier = LLMService(
            GeminiSettings(GEMINI_API_KEY="gm-key"),
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)),
        )
        validator = VideoValidator(UploadSettings(), transcriber, classifier)
        validator.probe_duration = AsyncMock(return_value=20)

        result = await validator.validate(video_file, MB, "video/mp4")

        assert result.is_valid is True
        assert result.errors == []
        assert result.educational_analysis.confidence == 0.92


class FakeProcess:
    def __init__(self, stdout: bytes, stderr: bytes = b"", returncode: int = 0):
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode

    async def communicate(self):
        return self._stdout, self._stderr


@pytest.mark.unit
@pytest.mark.validation
class TestProbeDuration:
    """Test ffprobe output handling."""

    @pytest.fixture
    def plain_validator(self, transcriber, classifier):
        return VideoValidator(UploadSettings(), transcriber, classifier)

    def fake_exec(self, monkeypatch, process):
        calls = []

        async def create_subprocess_exec(*args, **kwargs):
            calls.append(args)
            return process

        monkeypatch.setattr(validator_module.asyncio, "create_subprocess_exec", create_subprocess_exec)
        return calls

    async def test_rounds_duration(self, plain_validator, video_file, monkeypatch):
        calls = self.fake_exec(monkeypatch, FakeProcess(b'{"format": {"duration": "12.6"}}'))

        assert await plain_validator.probe_duration(video_file) == 13
        assert calls[0][0] == "ffprobe"
        assert calls[0][-1] == str(video_file)

    async def test_missing_duration(self, plain_validator, video_file, monkeypatch):
        self.fake_exec(monkeypatch, FakeProcess(b'{"format": {}}'))

        with pytest.raises(ValidationFailed, match="Could not determine video duration"):
            await plain_validator.probe_duration(video_file)

    async def test_ffprobe_error(self, plain_validator, video_file, monkeypatch):
        self.fake_exec(monkeypatch, FakeProcess(b"", b"Invalid data found", returncode=1))

        with pytest.raises(ValidationFailed, match="Invalid data found"):
            await plain_validator.probe_duration(video_file)

    async def test_missing_binary(self, transcriber, classifier, video_file):
        settings = UploadSettings(FFPROBE_PATH="/nonexistent/bin/ffprobe")
        validator = VideoValidator(settings, transcriber, classifier)

        with pytest.raises(ValidationFailed, match="Failed to analyze video"):
            await validator.probe_duration(video_file)
