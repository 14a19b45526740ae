import base64
import json
import logging
import os
import shutil
import subprocess
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import speech
from google.oauth2 import service_account

from .config import VoiceAnalysisSettings
from .models import TranscriptSegment, Transcription
from .transcription import TranscriptionError, audio_filename, fetch_audio


logger = logging.getLogger("uvicorn.error")

SAMPLE_RATE_HERTZ = 16000
SPEECH_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
CREDENTIAL_SOURCES = (
    "GOOGLE_APPLICATION_CREDENTIALS_B64",
    "GOOGLE_APPLICATION_CREDENTIALS_JSON",
    "GOOGLE_APPLICATION_CREDENTIALS",
)


def duration_to_seconds(duration) -> float:
    if duration is None:
        return 0.0
    total_seconds = getattr(duration, "total_seconds", None)
    if callable(total_seconds):
        return float(total_seconds())
    seconds = getattr(duration, "seconds", 0) or 0
    nanos = getattr(duration, "nanos", 0) or 0
    return float(seconds) + (float(nanos) / 1_000_000_000.0)


def _service_account_info(raw_json: str, source: str) -> dict:
    try:
        info = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"{source} does not contain valid JSON.") from exc
    if not isinstance(info, dict):
        raise RuntimeError(f"{source} must contain a JSON object.")
    return info


def _decode_b64_service_account(encoded: str) -> dict:
    padded = encoded + "=" * ((-len(encoded)) % 4)
    try:
        raw_json = base64.b64decode(padded).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as exc:
        raise RuntimeError("GOOGLE_APPLICATION_CREDENTIALS_B64 is not valid base64.") from exc
    return _service_account_info(raw_json, "GOOGLE_APPLICATION_CREDENTIALS_B64")


@lru_cache(maxsize=1)
def load_speech_credentials() -> Optional[service_account.Credentials]:
    """Resolve speech credentials from the environment.

    Inline base64 wins over inline JSON, which wins over a key file path.
    ``None`` means no variable is set and the client falls back to
    application default credentials.
    """
    encoded = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_B64", "").strip()
    if encoded:
        return service_account.Credentials.from_service_account_info(
            _decode_b64_service_account(encoded), scopes=[SPEECH_SCOPE]
        )

    inline_json = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON", "").strip()
    if inline_json:
        return service_account.Credentials.from_service_account_info(
            _service_account_info(inline_json, "GOOGLE_APPLICATION_CREDENTIALS_JSON"),
            scopes=[SPEECH_SCOPE],
        )

    key_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "").strip()
    if key_path:
        if not Path(key_path).is_file():
            raise RuntimeError(f"GOOGLE_APPLICATION_CREDENTIALS points to a missing file: {key_path}")
        return service_account.Credentials.from_service_account_file(key_path, scopes=[SPEECH_SCOPE])

    logger.info("speech_credentials source=default checked=%s", ",".join(CREDENTIAL_SOURCES))
    return None


def build_speech_client() -> speech.SpeechClient:
    return speech.SpeechClient(credentials=load_speech_credentials())


def convert_to_linear16(input_path: Path, wav_path: Path) -> None:
    ffmpeg_path = shutil.which("ffmpeg")
    if not ffmpeg_path:
        raise TranscriptionError(
            "ffmpeg is not installed or not on PATH. Install ffmpeg (macOS: brew install ffmpeg)."
        )

    command = [
        ffmpeg_path,
        "-y",
        "-i",
        str(input_path),
        "-ac",
        "1",
        "-ar",
        str(SAMPLE_RATE_HERTZ),
        "-f",
        "wav",
        str(wav_path),
    ]
    result = subprocess.run(command, capture_output=True, text=True)
    if result.returncode != 0:
        stderr_tail = (result.stderr or "").strip().splitlines()
        message = stderr_tail[-1] if stderr_tail else "Unknown ffmpeg error"
        raise TranscriptionError(f"Audio conversion failed: {message}")


def parse_speech_response(response, language: str) -> Transcription:
    """Flatten a recognize() response; one segment per result, timed by its words."""
    full_text_parts: List[str] = []
    segments: List[TranscriptSegment] = []

    for result in response.results:
        if not result.alternatives:
            continue
        alternative = result.alternatives[0]
        transcript = (alternative.transcript or "").strip()
        if transcript:
            full_text_parts.append(transcript)
        result_words = list(alternative.words or [])
        if not transcript or not result_words:
            continue

        segments.append(
            TranscriptSegment(
                start=duration_to_seconds(result_words[0].start_time),
                end=duration_to_seconds(result_words[-1].end_time),
                text=transcript,
            )
        )

    segments.sort(key=lambda segment: segment.start)
    return Transcription(
        text=" ".join(full_text_parts).strip(),
        language=language,
        duration=segments[-1].end if segments else 0.0,
        segments=segments,
    )


class GoogleSpeechTranscriber:
    """Speech-to-text through Google Cloud Speech-to-Text (synchronous recognize)."""

    def __init__(
        self,
        *,
        language_code: str,
        max_audio_bytes: int,
        download_timeout_seconds: float = 30.0,
        client: Optional[speech.SpeechClient] = None,
        allow_local_files: bool = False,
    ) -> None:
        self._language_code = language_code
        self._max_audio_bytes = max_audio_bytes
        self._download_timeout_seconds = download_timeout_seconds
        self._client = client
        self._allow_local_files = allow_local_files

    @classmethod
    def from_settings(cls, settings: VoiceAnalysisSettings) -> "GoogleSpeechTranscriber":
        return cls(
            language_code=settings.google_language_code,
            max_audio_bytes=settings.max_audio_bytes,
            download_timeout_seconds=settings.audio_download_timeout_seconds,
            allow_local_files=settings.allow_local_audio_files,
        )

    def _speech_client(self) -> speech.SpeechClient:
        if self._client is None:
            self._client = build_speech_client()
        return self._client

    def transcribe(self, audio_url: str, language: str) -> Transcription:
        audio_bytes = fetch_audio(
            audio_url,
            max_bytes=self._max_audio_bytes,
            timeout_seconds=self._download_timeout_seconds,
            allow_local_files=self._allow_local_files,
        )

        temp_dir = Path(tempfile.mkdtemp(prefix="voice_analysis_"))
        try:
            input_path = temp_dir / audio_filename(audio_url)
            input_path.write_bytes(audio_bytes)
            wav_path = temp_dir / "converted.wav"
            convert_to_linear16(input_path, wav_path)

            wav_content = wav_path.read_bytes()
            if not wav_content:
                raise TranscriptionError("Converted WAV audio is empty.")

            config = speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=SAMPLE_RATE_HERTZ,
                language_code=self._language_code,
                enable_automatic_punctuation=True,
                enable_word_time_offsets=True,
            )
            audio = speech.RecognitionAudio(content=wav_content)
            response = self._speech_client().recognize(config=config, audio=audio)
        except GoogleAPICallError as exc:
            raise TranscriptionError(f"Google Speech-to-Text error: {exc}") from exc
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

        logger.info(
            "transcription_google_done language_code=%s results=%s",
            self._language_code,
            len(response.results),
        )
        return parse_speech_response(response, language)
