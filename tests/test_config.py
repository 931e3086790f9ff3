import pytest

from menu_scan.config import Settings

ENV_KEYS = (
    "OPENAI_API_KEY",
    "GOOGLE_VISION_API_KEY",
    "ENABLE_LLM_EXTRACTION",
    "FRONTEND_ORIGINS",
    "SCORE_FLOOR",
    "SCORE_CEIL",
    "FALLBACK_THRESHOLD",
    "MAX_UPLOAD_MB",
    "MENU_SCAN_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    settings = Settings.from_env()
    assert settings.score_floor == 1.0 and settings.score_ceil == 10.0
    assert settings.fallback_threshold == 60.0
    assert settings.frontend_origins == ("http://localhost:3000", "http://localhost:8081")
    assert settings.max_upload_bytes == 10 * 1024 * 1024
    assert not settings.llm_configured
    assert not settings.ocr_configured


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GOOGLE_VISION_API_KEY", "vision")
    monkeypatch.setenv("FRONTEND_ORIGINS", "https://menu.example, ,http://localhost:5173")
    monkeypatch.setenv("MENU_SCAN_LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.llm_configured and settings.ocr_configured
    assert settings.frontend_origins == ("https://menu.example", "http://localhost:5173")
    assert settings.log_level == "DEBUG"


def test_llm_extraction_toggle(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("ENABLE_LLM_EXTRACTION", "off")
    assert not Settings.from_env().llm_configured


def test_invalid_numbers(monkeypatch) -> None:
    monkeypatch.setenv("SCORE_FLOOR", "low")
    with pytest.raises(ValueError, match="SCORE_FLOOR"):
        Settings.from_env()


def test_floor_above_ceil(monkeypatch) -> None:
    monkeypatch.setenv("SCORE_FLOOR", "9")
    monkeypatch.setenv("SCORE_CEIL", "2")
    with pytest.raises(ValueError):
        Settings.from_env()
