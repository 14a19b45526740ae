"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from app.voice_coach.models import TranscriptSegment, Transcription  # noqa: E402
from fakes import SCENARIO_TRANSCRIPT  # noqa: E402


@pytest.fixture
def scenario_segments():
    return [
        TranscriptSegment(start=0, end=3, text="Buenos días"),
        TranscriptSegment(start=3.2, end=6, text="entiendo su situación"),
        TranscriptSegment(start=6.1, end=9, text="vamos a resolver esto"),
    ]


@pytest.fixture
def scenario_transcription(scenario_segments):
    return Transcription(
        text=SCENARIO_TRANSCRIPT,
        language="es",
        duration=9.0,
        segments=scenario_segments,
    )
