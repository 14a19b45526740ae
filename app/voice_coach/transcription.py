from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI
from pydantic import ValidationError

from .config import TRANSCRIPTION_PROVIDERS, VoiceAnalysisSettings
from .models import TranscriptSegment, Transcription


logger = logging.getLogger("uvicorn.error")

CHUNK_SIZE = 1024 * 1024
REMOTE_AUDIO_SCHEMES = {"http", "https"}
DEFAULT_AUDIO_FILENAME = "audio.webm"


class TranscriptionError(RuntimeError):
    pass


class Transcriber(Protocol):
    def transcribe(self, audio_url: str, language: str) -> Transcription:
        ...


def is_remote_audio_url(audio_url: str) -> bool:
    return urlparse((audio_url or "").strip()).scheme.lower() in REMOTE_AUDIO_SCHEMES


def audio_filename(audio_url: str) -> str:
    name = Path(urlparse(audio_url).path).name
    return name if Path(name).suffix else DEFAULT_AUDIO_FILENAME


def fetch_audio(
    audio_url: str,
    *,
    max_bytes: int,
    timeout_seconds: float = 30.0,
    http_client: Optional[httpx.Client] = None,
    allow_local_files: bool = False,
) -> bytes:
    """Load the recording behind ``audio_url``.

    http(s) URLs are streamed. Local paths (plain or ``file://``) are read
    only when ``allow_local_files`` is set.
    """
    reference = (audio_url or "").strip()
    if not reference:
        raise TranscriptionError("Audio reference is empty.")

    scheme = urlparse(reference).scheme.lower()
    if scheme not in REMOTE_AUDIO_SCHEMES:
        if not allow_local_files:
            raise TranscriptionError("Audio reference must be an http(s) URL.")
        local_path = Path(reference[len("file://") :] if scheme == "file" else reference)
        if not local_path.is_file():
            raise TranscriptionError(f"Audio file not found: {local_path}")
        size = local_path.stat().st_size
        if size > max_bytes:
            raise TranscriptionError(f"Audio too large. Max size is {max_bytes} bytes.")
        content = local_path.read_bytes()
    else:
        client = http_client or httpx.Client(timeout=timeout_seconds, follow_redirects=True)
        chunks: list[bytes] = []
        total_bytes = 0
        try:
            with client.stream("GET", reference) as response:
                if response.status_code >= 400:
                    raise TranscriptionError(
                        f"Audio download failed with HTTP {response.status_code}."
                    )
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    total_bytes += len(chunk)
                    if total_bytes > max_bytes:
                        raise TranscriptionError(f"Audio too large. Max size is {max_bytes} bytes.")
                    chunks.append(chunk)
        except httpx.TimeoutException as exc:
            raise TranscriptionError(
                f"Audio download timed out after {int(timeout_seconds)} seconds."
            ) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionError(f"Audio download failed: {exc}") from exc
        finally:
            if http_client is None:
                client.close()
        content = b"".join(chunks)

    if not content:
        raise TranscriptionError("Audio file is empty.")
    return content


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def parse_whisper_response(response: Any, language: str) -> Transcription:
    text = str(_field(response, "text") or "").strip()
    raw_segments = _field(response, "segments") or []
    try:
        segments = [
            TranscriptSegment(
                start=float(_field(segment, "start", 0.0) or 0.0),
                end=float(_field(segment, "end", 0.0) or 0.0),
                text=str(_field(segment, "text") or "").strip(),
            )
            for segment in raw_segments
        ]
    except (TypeError, ValueError, ValidationError) as exc:
        raise TranscriptionError(f"Unexpected transcription segment shape: {exc}") from exc

    segments.sort(key=lambda segment: segment.start)
    duration = _field(response, "duration")
    return Transcription(
        text=text,
        language=str(_field(response, "language") or language),
        duration=float(duration) if duration is not None else (segments[-1].end if segments else 0.0),
        segments=segments,
    )


class WhisperTranscriber:
    """Speech-to-text through the OpenAI audio transcription endpoint."""

    def __init__(
        self,
        *,
        client: OpenAI,
        model: str,
        max_audio_bytes: int,
        download_timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
        allow_local_files: bool = False,
    ) -> None:
        self._client = client
        self._model = model
        self._max_audio_bytes = max_audio_bytes
        self._download_timeout_seconds = download_timeout_seconds
        self._http_client = http_client
        self._allow_local_files = allow_local_files

    @classmethod
    def from_settings(cls, settings: VoiceAnalysisSettings) -> "WhisperTranscriber":
        client = OpenAI(
            api_key=settings.require_openai_api_key(),
            base_url=settings.openai_base_url,
            timeout=settings.llm_timeout_seconds,
        )
        return cls(
            client=client,
            model=settings.transcription_model,
            max_audio_bytes=settings.max_audio_bytes,
            download_timeout_seconds=settings.audio_download_timeout_seconds,
            allow_local_files=settings.allow_local_audio_files,
        )

    def transcribe(self, audio_url: str, language: str) -> Transcription:
        audio_bytes = fetch_audio(
            audio_url,
            max_bytes=self._max_audio_bytes,
            timeout_seconds=self._download_timeout_seconds,
            http_client=self._http_client,
            allow_local_files=self._allow_local_files,
        )
        logger.info("transcription_audio_fetched bytes=%s model=%s", len(audio_bytes), self._model)

        try:
            response = self._client.audio.transcriptions.create(
                model=self._model,
                file=(audio_filename(audio_url), audio_bytes),
                language=language,
                response_format="verbose_json",
                timestamp_granularities=["segment"],
            )
        except APIStatusError as exc:
            detail = getattr(exc, "message", None) or str(exc)
            raise TranscriptionError(
                f"Transcription request failed ({exc.status_code}): {detail}"
            ) from exc
        except APITimeoutError as exc:
            raise TranscriptionError("Transcription request timed out.") from exc
        except APIConnectionError as exc:
            raise TranscriptionError(f"Failed to connect to transcription provider: {exc}") from exc

        return parse_whisper_response(response, language)


def build_transcriber(settings: VoiceAnalysisSettings) -> Transcriber:
    provider = settings.transcription_provider
    if provider not in TRANSCRIPTION_PROVIDERS:
        raise RuntimeError(
            f"Unknown VOICE_TRANSCRIPTION_PROVIDER {provider!r}. "
            f"Expected one of: {', '.join(sorted(TRANSCRIPTION_PROVIDERS))}."
        )
    if provider == "google":
        from .google_stt import GoogleSpeechTranscriber

        return GoogleSpeechTranscriber.from_settings(settings)
    return WhisperTranscriber.from_settings(settings)
