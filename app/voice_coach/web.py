import logging
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .config import get_settings
from .keywords import detect_keywords, get_top_keywords, highlight_keywords
from .models import KeywordAnalysis, KeywordMatch
from .transcription import is_remote_audio_url
from .voice_analysis import VoiceAnalysisError, VoiceAnalyzer, get_voice_analyzer


logger = logging.getLogger("uvicorn.error")


class VoiceAnalysisRequest(BaseModel):
    audio_url: str


class KeywordRequest(BaseModel):
    transcript: str
    top: int = Field(default=10, ge=0, le=100)


class KeywordResponse(BaseModel):
    analysis: dict
    top_keywords: List[dict]
    highlights: List[dict]


app = FastAPI(title="Voice Coach Analysis Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().frontend_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def voice_analyzer_dependency() -> VoiceAnalyzer:
    try:
        return get_voice_analyzer()
    except RuntimeError as exc:
        logger.error("voice_analyzer_unavailable error=%s", exc)
        raise HTTPException(status_code=503, detail="Voice analysis is not configured.") from exc


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "transcription_provider": get_settings().transcription_provider}


@app.post("/api/voice-analysis")
def create_voice_analysis(
    payload: VoiceAnalysisRequest,
    analyzer: VoiceAnalyzer = Depends(voice_analyzer_dependency),
) -> dict:
    audio_url = payload.audio_url.strip()
    if not audio_url:
        raise HTTPException(status_code=400, detail="Missing audio_url.")
    if not is_remote_audio_url(audio_url):
        raise HTTPException(status_code=400, detail="audio_url must be an http(s) URL.")

    try:
        result = analyzer.analyze(audio_url)
    except VoiceAnalysisError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return result.to_payload()


@app.post("/api/voice-analysis/keywords", response_model=KeywordResponse)
def analyze_transcript_keywords(payload: KeywordRequest) -> KeywordResponse:
    analysis: KeywordAnalysis = detect_keywords(payload.transcript)
    top: List[KeywordMatch] = get_top_keywords(analysis.matches, payload.top)
    return KeywordResponse(
        analysis=analysis.to_payload(),
        top_keywords=[match.to_payload() for match in top],
        highlights=[
            {"text": fragment, "keyword": is_keyword}
            for fragment, is_keyword in highlight_keywords(payload.transcript, analysis.keywords)
        ],
    )
