"""
Marksheet extraction via the Gemini generateContent REST API

The image goes out inline (compressed JPEG) with a JSON response schema; the
reply text is parsed into a RawExtraction. The whole call runs under one
caller-imposed timeout and is never retried here.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..config import Settings, settings as default_settings
from ..core.errors import (
    ExtractionServiceError,
    ExtractionTimeoutError,
    MalformedExtractionError,
)
from ..core.extraction import parse_raw_extraction
from ..core.models import RawExtraction
from .imaging import JPEG_MIME_TYPE, compress_image, encode_image

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Extract results from this university marksheet. "
    "Output JSON: {detectedDepartment, detectedSemester, results: [{code, grade}]}."
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "detectedDepartment": {"type": "STRING"},
        "detectedSemester": {"type": "NUMBER"},
        "results": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {"code": {"type": "STRING"}, "grade": {"type": "STRING"}},
                "required": ["code", "grade"],
            },
        },
    },
    "required": ["detectedDepartment", "detectedSemester", "results"],
}


class ExtractionClient(ABC):
    """Image -> raw grade list"""

    @abstractmethod
    async def extract(self, image_bytes: bytes) -> RawExtraction: ...


class GeminiExtractionClient(ExtractionClient):
    """Extraction backed by a Gemini vision model"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.api_key = self.settings.GEMINI_API_KEY
        self.model = self.settings.GEMINI_MODEL
        self.timeout = self.settings.EXTRACTION_TIMEOUT

    @property
    def endpoint(self) -> str:
        base = self.settings.GEMINI_API_BASE_URL.rstrip("/")
        return f"{base}/models/{self.model}:generateContent"

    def build_request(self, image_bytes: bytes) -> Dict[str, Any]:
        """Compress the image and build the generateContent body"""
        jpeg = compress_image(
            image_bytes,
            max_dimension=self.settings.IMAGE_MAX_DIMENSION,
            quality=self.settings.IMAGE_JPEG_QUALITY,
        )
        return {
            "contents": [
                {
                    "parts": [
                        {"inlineData": {"mimeType": JPEG_MIME_TYPE, "data": encode_image(jpeg)}},
                        {"text": EXTRACTION_PROMPT},
                    ]
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    async def extract(self, image_bytes: bytes) -> RawExtraction:
        """
        Send a marksheet image and return the parsed reply

        Raises:
            ExtractionTimeoutError: no reply within EXTRACTION_TIMEOUT seconds
            ExtractionServiceError: missing key, transport or HTTP failure, empty reply
            MalformedExtractionError: reply is not the expected JSON structure
        """
        if not self.api_key:
            raise ExtractionServiceError("GEMINI_API_KEY is not configured")

        body = self.build_request(image_bytes)
        logger.info(f"🔍 Sending marksheet to {self.model}")

        try:
            data = await asyncio.wait_for(self._generate(body), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"❌ Extraction timed out after {self.timeout:g}s")
            raise ExtractionTimeoutError(
                f"Extraction timed out after {self.timeout:g}s. Check your connectivity."
            ) from e

        text = self._response_text(data)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedExtractionError(f"Extraction reply is not JSON: {e}") from e

        return parse_raw_extraction(payload)

    async def _generate(self, body: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
            try:
                response = await client.post(self.endpoint, params={"key": self.api_key}, json=body)
            except httpx.TimeoutException:
                raise
            except httpx.HTTPError as e:
                logger.error(f"❌ Extraction request failed: {e}")
                raise ExtractionServiceError(f"Extraction request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"❌ Extraction failed with HTTP {response.status_code}")
            raise ExtractionServiceError(
                f"Extraction failed ({response.status_code}): {response.text}"
            )
        return response.json()

    @staticmethod
    def _response_text(data: Dict[str, Any]) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExtractionServiceError("Extraction service returned no candidates") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text.strip():
            raise ExtractionServiceError("Extraction service returned an empty reply")
        return text


__all__ = [
    "EXTRACTION_PROMPT",
    "RESPONSE_SCHEMA",
    "ExtractionClient",
    "GeminiExtractionClient",
]
