from pathlib import Path
from typing import Optional

import httpx
from loguru import logger

from reels.core.config import DeepgramSettings
from reels.core.exceptions import TranscriptionError


class DeepgramService:
    def __init__(self, settings: DeepgramSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.settings.deepgram_api_key)

    def _params(self) -> dict:
        return {
            "model": self.settings.deepgram_model,
            "language": self.settings.deepgram_language,
            "smart_format": "true",
            "punctuate": "true",
            "diarize": "false",
        }

    async def transcribe(self, file_path: Path, mime_type: str) -> str:
        if not self.is_configured():
            raise TranscriptionError("Deepgram is not configured")

        headers = {
            "Authorization": f"Token {self.settings.deepgram_api_key}",
            "Content-Type": mime_type,
        }

        try:
            content = Path(file_path).read_bytes()
            async with httpx.AsyncClient(
                timeout=self.settings.deepgram_timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(
                    str(self.settings.deepgram_api_url),
                    params=self._params(),
                    headers=headers,
                    content=content,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Deepgram returned {e.response.status_code}: {e.response.text[:200]}")
            raise TranscriptionError("Failed to transcribe video") from e
        except (httpx.HTTPError, OSError, ValueError) as e:
            logger.error(f"Deepgram transcription error: {e}")
            raise TranscriptionError("Failed to transcribe video") from e

        transcript = self._extract_transcript(data)
        logger.debug(f"Deepgram transcript ({len(transcript)} chars): {transcript[:100]}...")
        return transcript

    @staticmethod
    def _extract_transcript(data: dict) -> str:
        try:
            return data["results"]["channels"][0]["alternatives"][0].get("transcript") or ""
        except (KeyError, IndexError, TypeError):
            return ""
