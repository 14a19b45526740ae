from __future__ import annotations

from .coaching_rules import (
    ACCEPTABLE_EDGE_SCORE,
    ACCEPTABLE_RATE_MAX,
    ACCEPTABLE_RATE_MIN,
    IDEAL_RATE_MAX,
    IDEAL_RATE_MIN,
    PACING_MESSAGES,
    SPEECH_RATE_SHARE,
    TONE_INSIGHT_RULES,
    TONE_SHARE,
    TONE_WEIGHTS,
)
from .models import SpeechMetrics, ToneScores, round_half_up


def calculate_speech_rate_score(speech_rate: float) -> float:
    """Map words per minute onto a 0-100 adequacy score.

    100 inside the ideal band, a linear ramp down to 80 across the
    acceptable margins, then one point lost per wpm outside them.
    """
    ramp = 100 - ACCEPTABLE_EDGE_SCORE
    if IDEAL_RATE_MIN <= speech_rate <= IDEAL_RATE_MAX:
        return 100.0
    if ACCEPTABLE_RATE_MIN <= speech_rate < IDEAL_RATE_MIN:
        progress = (speech_rate - ACCEPTABLE_RATE_MIN) / (IDEAL_RATE_MIN - ACCEPTABLE_RATE_MIN)
        return ACCEPTABLE_EDGE_SCORE + progress * ramp
    if IDEAL_RATE_MAX < speech_rate <= ACCEPTABLE_RATE_MAX:
        progress = (speech_rate - IDEAL_RATE_MAX) / (ACCEPTABLE_RATE_MAX - IDEAL_RATE_MAX)
        return 100.0 - progress * ramp
    if speech_rate < ACCEPTABLE_RATE_MIN:
        return max(0.0, ACCEPTABLE_EDGE_SCORE - (ACCEPTABLE_RATE_MIN - speech_rate))
    return max(0.0, ACCEPTABLE_EDGE_SCORE - (speech_rate - ACCEPTABLE_RATE_MAX))


def calculate_tone_composite(tone: ToneScores) -> float:
    return sum(getattr(tone, dimension) * weight for dimension, weight in TONE_WEIGHTS.items())


def calculate_overall_voice_score(speech: SpeechMetrics, tone: ToneScores) -> int:
    composite = calculate_tone_composite(tone)
    rate_score = calculate_speech_rate_score(speech.speech_rate)
    overall = composite * TONE_SHARE + rate_score * SPEECH_RATE_SHARE
    return int(min(100.0, max(0.0, round_half_up(overall))))


def _pacing_insight(speech_rate: float) -> str | None:
    if speech_rate < ACCEPTABLE_RATE_MIN:
        return PACING_MESSAGES["too_slow"]
    if speech_rate > ACCEPTABLE_RATE_MAX:
        return PACING_MESSAGES["too_fast"]
    if IDEAL_RATE_MIN <= speech_rate <= IDEAL_RATE_MAX:
        return PACING_MESSAGES["ideal"]
    return None


def generate_insights(speech: SpeechMetrics, tone: ToneScores) -> list[str]:
    insights: list[str] = []

    pacing = _pacing_insight(speech.speech_rate)
    if pacing:
        insights.append(pacing)

    for dimension, comparison, threshold, message in TONE_INSIGHT_RULES:
        value = getattr(tone, dimension)
        if comparison == "below" and value < threshold:
            insights.append(message)
        elif comparison == "at_least" and value >= threshold:
            insights.append(message)

    return insights
