from __future__ import annotations

from typing import Sequence

from .models import SpeechMetrics, TranscriptSegment, round_half_up


# Gaps at or under this are coarticulation, not a pause the customer hears.
PAUSE_THRESHOLD_SECONDS = 0.10


def count_words(transcript: str) -> int:
    return len((transcript or "").split())


def find_pauses(segments: Sequence[TranscriptSegment]) -> list[float]:
    pauses: list[float] = []
    for previous, current in zip(segments, segments[1:]):
        gap = current.start - previous.end
        if gap > PAUSE_THRESHOLD_SECONDS:
            pauses.append(gap)
    return pauses


def calculate_speech_metrics(
    transcript: str,
    segments: Sequence[TranscriptSegment],
) -> SpeechMetrics:
    if not segments:
        return SpeechMetrics(speech_rate=0, average_pause_duration=0.0, total_speaking_time=0.0)

    word_count = count_words(transcript)
    total_speaking_time = sum(segment.end - segment.start for segment in segments)
    speech_rate = (word_count / total_speaking_time) * 60.0 if total_speaking_time > 0 else 0.0

    pauses = find_pauses(segments)
    average_pause = sum(pauses) / len(pauses) if pauses else 0.0

    return SpeechMetrics(
        speech_rate=int(round_half_up(speech_rate)),
        average_pause_duration=round_half_up(average_pause, 2),
        total_speaking_time=round_half_up(total_speaking_time, 2),
    )
