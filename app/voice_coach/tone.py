from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError

from .models import ToneScores, round_half_up


logger = logging.getLogger("uvicorn.error")

TONE_SYSTEM_PROMPT = """Eres un experto en análisis de comunicación para contact centers bancarios.
Analiza el siguiente texto de un agente de servicio al cliente y evalúa su tono en estas dimensiones:
- Confianza: ¿Habla con seguridad y conocimiento?
- Empatía: ¿Muestra comprensión y preocupación por el cliente?
- Profesionalismo: ¿Mantiene un tono apropiado y cortés?
- Claridad: ¿Se expresa de forma clara y comprensible?
- Entusiasmo: ¿Muestra energía y disposición para ayudar?

Responde SOLO con un objeto JSON válido con las puntuaciones (0-100) para cada dimensión."""

USER_PROMPT_TEMPLATE = "Transcripción del agente:\n\n{transcript}"

_DIMENSION_DESCRIPTIONS = {
    "confidence": "Nivel de confianza (0-100)",
    "empathy": "Nivel de empatía (0-100)",
    "professionalism": "Nivel de profesionalismo (0-100)",
    "clarity": "Nivel de claridad (0-100)",
    "enthusiasm": "Nivel de entusiasmo (0-100)",
}

TONE_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "sentiment_analysis",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                name: {"type": "number", "description": description}
                for name, description in _DIMENSION_DESCRIPTIONS.items()
            },
            "required": list(_DIMENSION_DESCRIPTIONS),
            "additionalProperties": False,
        },
    },
}


class ToneScoringProvider(Protocol):
    def request_scores(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        ...


class _ToneScorePayload(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    confidence: float
    empathy: float
    professionalism: float
    clarity: float
    enthusiasm: float


@dataclass(frozen=True)
class ToneScoringOutcome:
    scores: Optional[ToneScores] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.scores is not None

    def scores_or_neutral(self) -> ToneScores:
        return self.scores if self.scores is not None else ToneScores.neutral()


def _extract_json_object(raw_content: str) -> str:
    # Providers that ignore response_format may wrap the object in prose or fences.
    stripped = raw_content.strip()
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end <= start:
        return stripped
    return stripped[start : end + 1]


def parse_tone_scores(raw_content: str) -> ToneScoringOutcome:
    if not raw_content or not raw_content.strip():
        return ToneScoringOutcome(error="empty tone scoring response")
    try:
        payload = _ToneScorePayload.model_validate_json(_extract_json_object(raw_content))
    except ValidationError as exc:
        return ToneScoringOutcome(error=f"tone scoring response failed validation: {exc.errors()}")

    # Round first: 100.3 is a usable 100, 100.5 rounds out of range.
    rounded = {name: int(round_half_up(value)) for name, value in payload.model_dump().items()}
    try:
        scores = ToneScores(**rounded)
    except ValidationError:
        return ToneScoringOutcome(error=f"tone scores out of range: {rounded}")
    return ToneScoringOutcome(scores=scores)


def score_tone(transcript: str, provider: ToneScoringProvider) -> ToneScoringOutcome:
    try:
        raw_content = provider.request_scores(
            system_prompt=TONE_SYSTEM_PROMPT,
            user_prompt=USER_PROMPT_TEMPLATE.format(transcript=transcript),
            response_format=TONE_RESPONSE_FORMAT,
        )
    except Exception as exc:
        return ToneScoringOutcome(error=f"{type(exc).__name__}: {exc}")
    return parse_tone_scores(raw_content)


def analyze_sentiment(transcript: str, provider: ToneScoringProvider) -> ToneScores:
    """Score the agent's tone, falling back to neutral 50s on any failure."""
    outcome = score_tone(transcript, provider)
    if not outcome.ok:
        logger.warning("tone_scoring_failed fallback=neutral error=%s", outcome.error)
    return outcome.scores_or_neutral()
