import json
from typing import Any, Dict, List, Optional

import httpx

from .config import VoiceAnalysisSettings


MAX_PROVIDER_ERROR_CHARS = 1200


def _truncate(text: str, max_chars: int = MAX_PROVIDER_ERROR_CHARS) -> str:
    value = (text or "").strip()
    if len(value) <= max_chars:
        return value
    return value[: max_chars - 3] + "..."


def _extract_content(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts: List[str] = []
        for item in value:
            if isinstance(item, dict):
                text = item.get("text")
                if text:
                    parts.append(str(text))
        return "\n".join(parts).strip()
    return str(value or "").strip()


def _error_detail(response: httpx.Response) -> str:
    try:
        error_payload = response.json()
    except ValueError:
        return response.text or ""
    if isinstance(error_payload, dict):
        error = error_payload.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or "")
    return ""


class ChatCompletionsToneProvider:
    """Tone scoring over an OpenAI-compatible ``/chat/completions`` endpoint.

    Sends exactly one request per call. A provider that rejects
    ``response_format`` or ``temperature`` surfaces as an error, which tone
    scoring turns into the neutral fallback.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        timeout_seconds: float = 60.0,
        temperature: Optional[float] = 0.2,
        max_tokens: int = 300,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._endpoint = base_url.rstrip("/") + "/chat/completions"
        self._timeout_seconds = timeout_seconds
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    @classmethod
    def from_settings(cls, settings: VoiceAnalysisSettings) -> "ChatCompletionsToneProvider":
        return cls(
            api_key=settings.require_openai_api_key(),
            model=settings.tone_model,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.llm_timeout_seconds,
            temperature=settings.tone_temperature,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _send(self, payload: Dict[str, Any]) -> httpx.Response:
        try:
            return self._http.post(
                self._endpoint,
                headers=self._headers(),
                json=payload,
                timeout=self._timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise RuntimeError(
                f"Tone scoring request timed out after {int(self._timeout_seconds)} seconds."
            ) from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Failed to call tone scoring provider: {exc}") from exc

    def request_scores(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self._max_tokens,
        }
        if self._temperature is not None:
            payload["temperature"] = self._temperature
        if response_format is not None:
            payload["response_format"] = response_format

        response = self._send(payload)
        if response.status_code >= 400:
            detail = _truncate(_error_detail(response) or "Unknown provider error")
            raise RuntimeError(f"Tone scoring provider error {response.status_code}: {detail}")

        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise RuntimeError("Tone scoring provider returned a non-JSON HTTP response.") from exc

        choices = body.get("choices") if isinstance(body, dict) else None
        if not choices:
            raise RuntimeError("Tone scoring response did not contain choices.")

        first_choice = choices[0] if isinstance(choices, list) else None
        message = first_choice.get("message") if isinstance(first_choice, dict) else None
        content = _extract_content(message.get("content") if isinstance(message, dict) else "")
        if not content:
            raise RuntimeError("Tone scoring provider returned empty assistant content.")
        return content
