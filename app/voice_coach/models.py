from __future__ import annotations

import json
import math
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


KeywordCategory = Literal["banking", "emotional", "protocol"]


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like the dashboard does (halves go up), not banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class PayloadModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TranscriptSegment(PayloadModel):
    start: float
    end: float
    text: str = ""

    @model_validator(mode="after")
    def _check_bounds(self) -> "TranscriptSegment":
        if self.end < self.start:
            raise ValueError(f"Segment ends before it starts ({self.start} > {self.end}).")
        return self

    @property
    def duration(self) -> float:
        return self.end - self.start


class Transcription(PayloadModel):
    text: str
    language: str
    duration: float = 0.0
    segments: List[TranscriptSegment] = Field(default_factory=list)


class SpeechMetrics(PayloadModel):
    speech_rate: int = Field(default=0, ge=0)
    average_pause_duration: float = Field(default=0.0, ge=0)
    total_speaking_time: float = Field(default=0.0, ge=0)


class ToneScores(PayloadModel):
    confidence: int = Field(ge=0, le=100)
    empathy: int = Field(ge=0, le=100)
    professionalism: int = Field(ge=0, le=100)
    clarity: int = Field(ge=0, le=100)
    enthusiasm: int = Field(ge=0, le=100)

    @classmethod
    def neutral(cls) -> "ToneScores":
        return cls(confidence=50, empathy=50, professionalism=50, clarity=50, enthusiasm=50)


class KeywordMatch(PayloadModel):
    word: str
    category: KeywordCategory
    count: int = Field(ge=1)


class KeywordStats(PayloadModel):
    total_keywords: int = 0
    banking_count: int = 0
    emotional_count: int = 0
    protocol_count: int = 0


class KeywordAnalysis(PayloadModel):
    keywords: List[str] = Field(default_factory=list)
    matches: List[KeywordMatch] = Field(default_factory=list)
    stats: KeywordStats = Field(default_factory=KeywordStats)


class VoiceMetrics(SpeechMetrics):
    sentiment_scores: ToneScores
    overall_voice_score: int = Field(default=0, ge=0, le=100)
    insights: List[str] = Field(default_factory=list)


class VoiceAnalysisResult(PayloadModel):
    transcript: str
    segments: List[TranscriptSegment]
    keywords: List[str]
    metrics: VoiceMetrics

    def to_storage_columns(self) -> dict[str, str]:
        """Text columns the simulation record keeps for a graded recording."""
        payload = self.to_payload()
        return {
            "audioTranscript": self.transcript,
            "transcriptSegments": json.dumps(payload["segments"], ensure_ascii=False),
            "transcriptKeywords": json.dumps(payload["keywords"], ensure_ascii=False),
            "voiceMetrics": json.dumps(payload["metrics"], ensure_ascii=False),
        }
