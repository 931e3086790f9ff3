from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .llm_client import DEFAULT_BASE_URL, DEFAULT_MODEL


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {value!r}") from exc


def _env_origins() -> Sequence[str]:
    return tuple(
        origin.strip()
        for origin in os.getenv("FRONTEND_ORIGINS", "http://localhost:3000,http://localhost:8081").split(",")
        if origin.strip()
    )


@dataclass
class Settings:
    """Runtime configuration; every field falls back to an environment variable."""

    openai_api_key: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_API_KEY") or None)
    openai_model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", DEFAULT_MODEL))
    openai_base_url: str = field(default_factory=lambda: os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL))
    llm_timeout_seconds: float = field(default_factory=lambda: _env_float("LLM_TIMEOUT_SECONDS", 30))
    llm_max_retries: int = field(default_factory=lambda: int(_env_float("LLM_MAX_RETRIES", 3)))
    enable_llm_extraction: bool = field(default_factory=lambda: _env_bool("ENABLE_LLM_EXTRACTION", True))
    vision_api_key: Optional[str] = field(default_factory=lambda: os.getenv("GOOGLE_VISION_API_KEY") or None)
    frontend_origins: Sequence[str] = field(default_factory=_env_origins)
    score_floor: float = field(default_factory=lambda: _env_float("SCORE_FLOOR", 1.0))
    score_ceil: float = field(default_factory=lambda: _env_float("SCORE_CEIL", 10.0))
    fallback_threshold: float = field(default_factory=lambda: _env_float("FALLBACK_THRESHOLD", 60.0))
    max_upload_mb: float = field(default_factory=lambda: _env_float("MAX_UPLOAD_MB", 10))
    log_level: str = field(default_factory=lambda: os.getenv("MENU_SCAN_LOG_LEVEL", "INFO").upper())

    def __post_init__(self) -> None:
        if self.score_floor > self.score_ceil:
            raise ValueError("SCORE_FLOOR must not exceed SCORE_CEIL")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls()

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key) and self.enable_llm_extraction

    @property
    def ocr_configured(self) -> bool:
        return bool(self.vision_api_key)
