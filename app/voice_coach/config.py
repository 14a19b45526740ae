"""Voice analysis settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field


DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"
DEFAULT_TONE_MODEL = "gpt-4o-mini"
DEFAULT_MAX_AUDIO_BYTES = 25 * 1024 * 1024
TRANSCRIPTION_PROVIDERS = {"whisper", "google"}


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from exc


def _split_origins() -> list[str]:
    raw = os.getenv("FRONTEND_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class VoiceAnalysisSettings(BaseModel):
    transcription_provider: str = Field(
        default_factory=lambda: _env_str("VOICE_TRANSCRIPTION_PROVIDER", "whisper").lower()
    )
    language: str = Field(default_factory=lambda: _env_str("VOICE_ANALYSIS_LANGUAGE", "es"))
    google_language_code: str = Field(
        default_factory=lambda: _env_str("GOOGLE_SPEECH_LANGUAGE_CODE", "es-PY")
    )
    openai_api_key: str | None = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", "").strip() or None
    )
    openai_base_url: str = Field(
        default_factory=lambda: _env_str("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL)
    )
    transcription_model: str = Field(
        default_factory=lambda: _env_str("OPENAI_TRANSCRIPTION_MODEL", DEFAULT_TRANSCRIPTION_MODEL)
    )
    tone_model: str = Field(default_factory=lambda: _env_str("TONE_SCORING_MODEL", DEFAULT_TONE_MODEL))
    tone_temperature: float = Field(default_factory=lambda: _env_float("TONE_SCORING_TEMPERATURE", 0.2))
    llm_timeout_seconds: float = Field(default_factory=lambda: _env_float("LLM_TIMEOUT_SECONDS", 60.0))
    audio_download_timeout_seconds: float = Field(
        default_factory=lambda: _env_float("AUDIO_DOWNLOAD_TIMEOUT_SECONDS", 30.0)
    )
    max_audio_bytes: int = Field(default_factory=lambda: _env_int("MAX_AUDIO_BYTES", DEFAULT_MAX_AUDIO_BYTES))
    allow_local_audio_files: bool = Field(
        default_factory=lambda: parse_bool_env("ALLOW_LOCAL_AUDIO_FILES", False)
    )
    frontend_origins: list[str] = Field(default_factory=_split_origins)

    def require_openai_api_key(self) -> str:
        if not self.openai_api_key:
            raise RuntimeError(
                "Missing OPENAI_API_KEY. Set it before running voice analysis "
                '(example: export OPENAI_API_KEY="YOUR_KEY_HERE").'
            )
        return self.openai_api_key


@lru_cache()
def get_settings() -> VoiceAnalysisSettings:
    return VoiceAnalysisSettings()
