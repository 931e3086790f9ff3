from __future__ import annotations

import base64
import logging
import os
from typing import Any, Mapping, Sequence

import requests

logger = logging.getLogger(__name__)

VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"


class OCRError(RuntimeError):
    """Raised when the Vision API fails or finds no text in the image."""


def _error_message(error: Any) -> str:
    if isinstance(error, Mapping):
        return str(error.get("message") or error)
    return str(error or "")


class VisionClient:
    """Google Cloud Vision TEXT_DETECTION over the REST API (API-key auth)."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        endpoint: str = VISION_ENDPOINT,
        language_hints: Sequence[str] = ("fr", "en"),
        timeout: float = 30,
    ):
        key = api_key or os.environ.get("GOOGLE_VISION_API_KEY")
        if not key:
            raise ValueError("Google Vision API key missing. Set GOOGLE_VISION_API_KEY or pass api_key.")
        self.api_key = key
        self.endpoint = endpoint
        self.language_hints = list(language_hints)
        self.timeout = timeout

    def build_request(self, image_bytes: bytes) -> dict[str, Any]:
        return {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
                    "imageContext": {"languageHints": self.language_hints},
                }
            ]
        }

    def extract_text(self, image_bytes: bytes) -> str:
        if not image_bytes:
            raise OCRError("Image is empty.")

        try:
            response = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                json=self.build_request(image_bytes),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise OCRError(f"Vision API request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise OCRError(f"Invalid JSON from Vision API: {response.text[:200]}") from exc

        if response.status_code >= 400:
            message = _error_message(body.get("error")) if isinstance(body, Mapping) else None
            raise OCRError(f"Vision API error {response.status_code}: {message or response.text[:200]}")

        responses = body.get("responses") if isinstance(body, Mapping) else None
        if not responses:
            raise OCRError("No response received from Vision API")
        result = responses[0]
        if not isinstance(result, Mapping):
            raise OCRError(f"Unexpected Vision API response: {str(result)[:200]}")
        if result.get("error"):
            raise OCRError(f"Vision API error: {_error_message(result['error'])}")

        annotations = result.get("textAnnotations") or []
        if not annotations or not annotations[0].get("description", "").strip():
            raise OCRError("No text detected in image")

        text = annotations[0]["description"]
        logger.info("Vision API returned %s characters of text", len(text))
        return text
