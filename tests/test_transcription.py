import base64
from datetime import timedelta
from types import SimpleNamespace

import httpx
import pytest

from app.voice_coach.config import VoiceAnalysisSettings
from app.voice_coach.google_stt import duration_to_seconds, load_speech_credentials, parse_speech_response
from app.voice_coach.transcription import (
    TranscriptionError,
    WhisperTranscriber,
    audio_filename,
    build_transcriber,
    fetch_audio,
    parse_whisper_response,
)


def _mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_parse_whisper_verbose_json_payload():
    payload = {
        "text": " Buenos días, entiendo su situación. ",
        "language": "spanish",
        "duration": 6.5,
        "segments": [
            {"id": 1, "start": 3.2, "end": 6.0, "text": " entiendo su situación.", "tokens": [1, 2]},
            {"id": 0, "start": 0.0, "end": 3.0, "text": " Buenos días,", "avg_logprob": -0.2},
        ],
    }
    transcription = parse_whisper_response(payload, "es")

    assert transcription.text == "Buenos días, entiendo su situación."
    assert transcription.language == "spanish"
    assert transcription.duration == 6.5
    assert [segment.text for segment in transcription.segments] == [
        "Buenos días,",
        "entiendo su situación.",
    ]


def test_parse_whisper_response_tolerates_missing_segments():
    response = SimpleNamespace(text="hola", language=None, duration=None, segments=None)
    transcription = parse_whisper_response(response, "es")

    assert transcription.segments == []
    assert transcription.language == "es"
    assert transcription.duration == 0.0


def test_parse_whisper_response_rejects_inverted_segment():
    payload = {"text": "hola", "segments": [{"start": 2.0, "end": 1.0, "text": "hola"}]}
    with pytest.raises(TranscriptionError):
        parse_whisper_response(payload, "es")


def test_fetch_audio_streams_bytes():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/simulations/1.webm"
        return httpx.Response(200, content=b"RIFFDATA")

    content = fetch_audio(
        "https://cdn.example.com/simulations/1.webm",
        max_bytes=1024,
        http_client=_mock_client(handler),
    )
    assert content == b"RIFFDATA"


def test_fetch_audio_rejects_oversized_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"x" * 64)

    with pytest.raises(TranscriptionError, match="too large"):
        fetch_audio("https://cdn.example.com/a.webm", max_bytes=16, http_client=_mock_client(handler))


@pytest.mark.parametrize("status_code, body", [(404, b"missing"), (200, b"")])
def test_fetch_audio_rejects_bad_downloads(status_code, body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=body)

    with pytest.raises(TranscriptionError):
        fetch_audio("https://cdn.example.com/a.webm", max_bytes=1024, http_client=_mock_client(handler))


def test_fetch_audio_wraps_network_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(TranscriptionError, match="download failed"):
        fetch_audio("https://cdn.example.com/a.webm", max_bytes=1024, http_client=_mock_client(handler))


def test_fetch_audio_reads_local_files_when_allowed(tmp_path):
    audio_path = tmp_path / "take.wav"
    audio_path.write_bytes(b"wave")

    assert fetch_audio(str(audio_path), max_bytes=1024, allow_local_files=True) == b"wave"
    assert fetch_audio(f"file://{audio_path}", max_bytes=1024, allow_local_files=True) == b"wave"
    with pytest.raises(TranscriptionError, match="not found"):
        fetch_audio(str(tmp_path / "missing.wav"), max_bytes=1024, allow_local_files=True)
    with pytest.raises(TranscriptionError, match="empty"):
        fetch_audio("  ", max_bytes=1024)


def test_fetch_audio_refuses_local_paths_by_default(tmp_path):
    secret_path = tmp_path / "secret.env"
    secret_path.write_bytes(b"OPENAI_API_KEY=sk-live")

    for reference in (str(secret_path), f"file://{secret_path}"):
        with pytest.raises(TranscriptionError, match=r"http\(s\) URL"):
            fetch_audio(reference, max_bytes=1024)


def test_audio_filename_defaults_to_webm():
    assert audio_filename("https://cdn.example.com/sim/42.mp3?sig=abc") == "42.mp3"
    assert audio_filename("https://cdn.example.com/stream") == "audio.webm"


class _FakeTranscriptions:
    def __init__(self, response):
        self.response = response
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        return self.response


def test_whisper_transcriber_requests_segment_timestamps():
    transcriptions = _FakeTranscriptions(
        {
            "text": "hola",
            "language": "spanish",
            "duration": 1.0,
            "segments": [{"start": 0.0, "end": 1.0, "text": "hola"}],
        }
    )
    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))
    transcriber = WhisperTranscriber(
        client=client,
        model="whisper-1",
        max_audio_bytes=1024,
        http_client=_mock_client(lambda request: httpx.Response(200, content=b"audio")),
    )

    transcription = transcriber.transcribe("https://cdn.example.com/sim/7.webm", "es")

    assert transcription.text == "hola"
    assert transcriptions.kwargs["language"] == "es"
    assert transcriptions.kwargs["response_format"] == "verbose_json"
    assert transcriptions.kwargs["timestamp_granularities"] == ["segment"]
    assert transcriptions.kwargs["file"] == ("7.webm", b"audio")


def test_build_transcriber_rejects_unknown_provider():
    settings = VoiceAnalysisSettings(transcription_provider="carrier-pigeon", openai_api_key="k")
    with pytest.raises(RuntimeError, match="VOICE_TRANSCRIPTION_PROVIDER"):
        build_transcriber(settings)


def test_build_transcriber_requires_api_key_for_whisper():
    settings = VoiceAnalysisSettings(transcription_provider="whisper", openai_api_key=None)
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        build_transcriber(settings)


def _word(start, end, word):
    return SimpleNamespace(start_time=timedelta(seconds=start), end_time=timedelta(seconds=end), word=word)


def test_google_response_is_flattened_into_timed_segments():
    response = SimpleNamespace(
        results=[
            SimpleNamespace(
                alternatives=[
                    SimpleNamespace(
                        transcript="Buenos días",
                        words=[_word(0.0, 0.5, "Buenos"), _word(0.5, 1.25, "días")],
                    )
                ]
            ),
            SimpleNamespace(alternatives=[]),
            SimpleNamespace(
                alternatives=[
                    SimpleNamespace(
                        transcript="¿en qué puedo ayudarle?",
                        words=[_word(2.0, 2.2, "¿en"), _word(2.2, 3.5, "ayudarle?")],
                    )
                ]
            ),
        ]
    )
    transcription = parse_speech_response(response, "es")

    assert transcription.text == "Buenos días ¿en qué puedo ayudarle?"
    assert [(s.start, s.end) for s in transcription.segments] == [(0.0, 1.25), (2.0, 3.5)]
    assert transcription.duration == 3.5


def test_duration_to_seconds_handles_protobuf_style_values():
    assert duration_to_seconds(None) == 0.0
    assert duration_to_seconds(timedelta(seconds=1, microseconds=500000)) == 1.5
    assert duration_to_seconds(SimpleNamespace(seconds=2, nanos=250_000_000)) == 2.25


@pytest.fixture
def speech_env(monkeypatch):
    for name in (
        "GOOGLE_APPLICATION_CREDENTIALS_B64",
        "GOOGLE_APPLICATION_CREDENTIALS_JSON",
        "GOOGLE_APPLICATION_CREDENTIALS",
    ):
        monkeypatch.delenv(name, raising=False)
    load_speech_credentials.cache_clear()
    yield monkeypatch
    load_speech_credentials.cache_clear()


def test_speech_credentials_default_to_application_default(speech_env):
    assert load_speech_credentials() is None


def test_speech_credentials_require_a_json_object(speech_env):
    encoded = base64.b64encode(b'["not", "an", "object"]').decode("ascii")
    speech_env.setenv("GOOGLE_APPLICATION_CREDENTIALS_B64", encoded)
    with pytest.raises(RuntimeError, match="GOOGLE_APPLICATION_CREDENTIALS_B64 must contain a JSON object"):
        load_speech_credentials()


def test_speech_credentials_reject_invalid_inline_json(speech_env):
    speech_env.setenv("GOOGLE_APPLICATION_CREDENTIALS_JSON", "{not json")
    with pytest.raises(RuntimeError, match="does not contain valid JSON"):
        load_speech_credentials()


def test_speech_credentials_reject_missing_key_file(speech_env, tmp_path):
    speech_env.setenv("GOOGLE_APPLICATION_CREDENTIALS", str(tmp_path / "missing.json"))
    with pytest.raises(RuntimeError, match="missing file"):
        load_speech_credentials()
