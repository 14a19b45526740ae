import pytest

from app.voice_coach.config import DEFAULT_MAX_AUDIO_BYTES, VoiceAnalysisSettings, parse_bool_env


def test_defaults(monkeypatch):
    for name in (
        "VOICE_TRANSCRIPTION_PROVIDER",
        "VOICE_ANALYSIS_LANGUAGE",
        "OPENAI_API_KEY",
        "MAX_AUDIO_BYTES",
        "FRONTEND_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = VoiceAnalysisSettings()

    assert settings.transcription_provider == "whisper"
    assert settings.language == "es"
    assert settings.google_language_code == "es-PY"
    assert settings.openai_api_key is None
    assert settings.max_audio_bytes == DEFAULT_MAX_AUDIO_BYTES
    assert "http://localhost:5173" in settings.frontend_origins


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("VOICE_TRANSCRIPTION_PROVIDER", " Google ")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("FRONTEND_ORIGINS", "https://a.example.com, ,https://b.example.com")

    settings = VoiceAnalysisSettings()

    assert settings.transcription_provider == "google"
    assert settings.require_openai_api_key() == "sk-test"
    assert settings.llm_timeout_seconds == 12.5
    assert settings.frontend_origins == ["https://a.example.com", "https://b.example.com"]


def test_invalid_numbers_raise(monkeypatch):
    monkeypatch.setenv("MAX_AUDIO_BYTES", "lots")
    with pytest.raises(RuntimeError, match="MAX_AUDIO_BYTES"):
        VoiceAnalysisSettings()


def test_missing_api_key_message(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        VoiceAnalysisSettings().require_openai_api_key()


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), (" Yes ", True), ("on", True), ("0", False), ("off", False), ("", False)],
)
def test_parse_bool_env(monkeypatch, raw, expected):
    monkeypatch.setenv("ALLOW_LOCAL_AUDIO_FILES", raw)
    assert parse_bool_env("ALLOW_LOCAL_AUDIO_FILES", default=True) is expected


def test_local_audio_files_are_disabled_unless_enabled(monkeypatch):
    monkeypatch.delenv("ALLOW_LOCAL_AUDIO_FILES", raising=False)
    assert VoiceAnalysisSettings().allow_local_audio_files is False

    monkeypatch.setenv("ALLOW_LOCAL_AUDIO_FILES", "true")
    assert VoiceAnalysisSettings().allow_local_audio_files is True
