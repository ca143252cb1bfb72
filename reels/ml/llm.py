import json
import re
from typing import Any, Dict, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from reels.core.config import GeminiSettings
from reels.core.exceptions import ClassificationError
from reels.schemas.video import EducationalAnalysis


JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class LLMService:
    def __init__(self, settings: GeminiSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport
        self._prompt_template = self._build_prompt_template()

    def is_configured(self) -> bool:
        return bool(self.settings.gemini_api_key)

    @property
    def endpoint(self) -> str:
        base = str(self.settings.gemini_api_url).rstrip("/")
        return f"{base}/models/{self.settings.gemini_model}:generateContent"

    def _build_prompt_template(self) -> str:
        return """You are an expert at identifying educational video content.

Below is the transcript of a short video:

\"\"\"
{transcript}
\"\"\"

Determine whether this video is educational in nature (e.g., teaching something, explaining a topic, sharing useful knowledge, tutorials, how-to guides, academic content, skill development, informative content).

Educational content includes:
- Tutorials and how-to videos
- Academic lectures or lessons
- Skill demonstrations
- Scientific explanations
- Historical information
- Language learning
- Professional development
- Technical explanations
- DIY instructions
- Educational storytelling

Non-educational content includes:
- Entertainment content
- Personal vlogs without educational value
- Pure gaming content
- Music videos
- Comedy skits
- Social media trends
- Promotional content

Reply with a JSON object:
{{
  "is_educational": true or false,
  "topic": "Short description of the subject if educational",
  "confidence": 0.0 to 1.0,
  "reason": "Brief explanation of the decision"
}}"""

    async def analyze_educational_content(self, transcript: str) -> EducationalAnalysis:
        if not self.is_configured():
            raise ClassificationError("Gemini is not configured")

        prompt = self._prompt_template.format(transcript=transcript)
        logger.debug(f"Sending transcript to Gemini: {transcript[:100]}...")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.gemini_timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(
                    self.endpoint,
                    headers={"x-goog-api-key": self.settings.gemini_api_key},
                    json={"contents": [{"parts": [{"text": prompt}]}]},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            raise ClassificationError("Failed to analyze educational content") from e
        except ValueError as e:
            logger.error(f"Gemini returned a non-JSON body: {e}")
            raise ClassificationError("Failed to analyze educational content") from e

        content = self._response_text(data)
        logger.debug(f"Gemini response: {content[:200]}...")

        analysis = self.parse_analysis(content)
        logger.info(
            f"Educational analysis: is_educational={analysis.is_educational}, "
            f"topic={analysis.topic}, confidence={analysis.confidence}"
        )
        return analysis

    @staticmethod
    def _response_text(data: Dict[str, Any]) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            raise ClassificationError("Invalid response format from Gemini")
        return "".join(part.get("text", "") for part in parts).strip()

    @staticmethod
    def parse_analysis(content: str) -> EducationalAnalysis:
        if content.startswith("```json"):
            content = content.replace("```json", "").replace("```", "").strip()
        elif content.startswith("```"):
            content = content.replace("```", "").strip()

        match = JSON_OBJECT_RE.search(content)
        if not match:
            raise ClassificationError("Invalid response format from Gemini")

        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON from Gemini response: {e}")
            logger.error(f"Response content: {content}")
            raise ClassificationError("Invalid response format from Gemini") from e

        if not isinstance(parsed, dict) or not isinstance(parsed.get("is_educational"), bool):
            raise ClassificationError("Invalid analysis result")

        try:
            return EducationalAnalysis.model_validate(parsed)
        except ValidationError as e:
            raise ClassificationError("Invalid analysis result") from e
