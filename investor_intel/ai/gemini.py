from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests


def _debug(msg: str) -> None:
    print(f"[gemini] {msg}")


@dataclass
class GeminiError(Exception):
    message: str


def _endpoint(base_url: str, model: str) -> str:
    base = base_url.rstrip("/")
    if not base.endswith("/v1beta"):
        base = f"{base}/v1beta"
    return f"{base}/models/{model}:generateContent"


def _extract_text(data: Dict[str, Any]) -> str:
    # Expected: candidates[0].content.parts[*].text
    candidates = data.get("candidates") or []
    if not candidates:
        raise GeminiError(f"No candidates in response: {data}")
    content = (candidates[0] or {}).get("content") or {}
    parts = content.get("parts") or []
    texts = [str(p["text"]) for p in parts if isinstance(p, dict) and "text" in p]
    if not texts:
        raise GeminiError(f"No text in response: {data}")
    return "".join(texts)


def generate_content(
    api_key: Optional[str],
    base_url: str,
    model: str,
    prompt: str,
    *,
    temperature: float = 0.3,
    max_output_tokens: int = 2048,
    response_mime_type: Optional[str] = None,
    retries: int = 3,
    timeout_seconds: int = 90,
) -> str:
    """Call Gemini generateContent and return the model text.

    Retries on 5xx and transport errors with a linear backoff; 4xx fails immediately.
    """
    if not api_key:
        raise GeminiError("Missing API key")
    if not model:
        raise GeminiError("Missing model")
    if not prompt:
        raise GeminiError("Missing prompt")

    generation: Dict[str, Any] = {
        "temperature": float(temperature),
        "maxOutputTokens": int(max_output_tokens),
    }
    if response_mime_type:
        generation["responseMimeType"] = response_mime_type

    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": generation,
    }
    url = _endpoint(base_url, model)

    last_err: Optional[str] = None
    for attempt in range(retries):
        try:
            r = requests.post(url, params={"key": api_key}, json=payload, timeout=timeout_seconds)
        except requests.RequestException as e:
            last_err = str(e)
            if attempt < retries - 1:
                time.sleep(1.5 * (attempt + 1))
                continue
            break

        if r.status_code != 200:
            last_err = f"HTTP {r.status_code}: {r.text}"
            if 500 <= r.status_code < 600 and attempt < retries - 1:
                _debug(f"Retrying after {last_err[:120]}")
                time.sleep(1.5 * (attempt + 1))
                continue
            raise GeminiError(last_err)

        try:
            data = r.json()
        except ValueError as e:
            raise GeminiError(f"Invalid JSON in response: {e}")
        return _extract_text(data)

    raise GeminiError(f"Failed to call Gemini: {last_err}")
