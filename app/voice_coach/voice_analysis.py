"""Voice performance analysis for a recorded agent response.

The pipeline is strictly sequential::

    transcribe -> speech metrics -> tone -> overall score -> insights -> keywords

Only transcription can fail the analysis. Tone scoring degrades to neutral
scores and every other step is a pure computation over the transcript.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache

from .config import VoiceAnalysisSettings, get_settings
from .keywords import detect_keywords
from .llm_client import ChatCompletionsToneProvider
from .metrics import calculate_speech_metrics, count_words
from .models import VoiceAnalysisResult, VoiceMetrics
from .scoring import calculate_overall_voice_score, generate_insights
from .tone import ToneScoringProvider, analyze_sentiment
from .transcription import Transcriber, build_transcriber


logger = logging.getLogger("uvicorn.error")

ANALYSIS_FAILED_MESSAGE = "Error al analizar el audio"


class VoiceAnalysisError(RuntimeError):
    """Raised when a recording cannot be analysed at all."""

    def __init__(self, message: str = ANALYSIS_FAILED_MESSAGE) -> None:
        super().__init__(message)


def _describe_reference(audio_url: str) -> str:
    reference = (audio_url or "").split("?", 1)[0]
    return reference if len(reference) <= 120 else reference[:117] + "..."


class VoiceAnalyzer:
    def __init__(
        self,
        transcriber: Transcriber,
        tone_provider: ToneScoringProvider,
        language: str = "es",
    ) -> None:
        self.transcriber = transcriber
        self.tone_provider = tone_provider
        self.language = language

    @classmethod
    def from_settings(cls, settings: VoiceAnalysisSettings) -> "VoiceAnalyzer":
        return cls(
            transcriber=build_transcriber(settings),
            tone_provider=ChatCompletionsToneProvider.from_settings(settings),
            language=settings.language,
        )

    def analyze(self, audio_url: str) -> VoiceAnalysisResult:
        start_ts = time.monotonic()
        audio_ref = _describe_reference(audio_url)
        logger.info("voice_analysis_started audio_ref=%s language=%s", audio_ref, self.language)

        try:
            transcription = self.transcriber.transcribe(audio_url, self.language)
        except Exception as exc:
            logger.error(
                "voice_analysis_transcription_failed audio_ref=%s error=%s",
                audio_ref,
                exc,
                exc_info=True,
            )
            raise VoiceAnalysisError() from exc

        transcript = transcription.text
        segments = list(transcription.segments)
        logger.info(
            "voice_analysis_transcribed audio_ref=%s words=%s segments=%s",
            audio_ref,
            count_words(transcript),
            len(segments),
        )

        speech = calculate_speech_metrics(transcript, segments)
        tone = analyze_sentiment(transcript, self.tone_provider)
        overall = calculate_overall_voice_score(speech, tone)
        insights = generate_insights(speech, tone)
        keyword_analysis = detect_keywords(transcript)

        result = VoiceAnalysisResult(
            transcript=transcript,
            segments=segments,
            keywords=keyword_analysis.keywords,
            metrics=VoiceMetrics(
                speech_rate=speech.speech_rate,
                average_pause_duration=speech.average_pause_duration,
                total_speaking_time=speech.total_speaking_time,
                sentiment_scores=tone,
                overall_voice_score=overall,
                insights=insights,
            ),
        )

        elapsed_ms = int((time.monotonic() - start_ts) * 1000)
        logger.info(
            "voice_analysis_done audio_ref=%s overall=%s speech_rate=%s keywords=%s elapsed_ms=%s",
            audio_ref,
            overall,
            speech.speech_rate,
            len(keyword_analysis.keywords),
            elapsed_ms,
        )
        return result


@lru_cache(maxsize=1)
def get_voice_analyzer() -> VoiceAnalyzer:
    return VoiceAnalyzer.from_settings(get_settings())


def analyze_voice(audio_url: str) -> VoiceAnalysisResult:
    return get_voice_analyzer().analyze(audio_url)
