import base64
from typing import Any, Dict, Optional

import requests

from medscan.core.errors import OllamaError
from medscan.core.llm_config import (
    OLLAMA_BASE_URL,
    OLLAMA_TEMPERATURE,
    OLLAMA_TIMEOUT_S,
)


def ollama_chat_text(
    model: str,
    prompt: str,
    image_bytes: Optional[bytes] = None,
    temperature: Optional[float] = None,
    timeout_s: Optional[int] = None,
) -> str:
    """
    Calls Ollama /api/chat and returns the assistant message content verbatim.
    Parsing is left to the caller: vision models wrap JSON inconsistently.
    """
    url = f"{OLLAMA_BASE_URL}/chat"
    message: Dict[str, Any] = {"role": "user", "content": prompt}
    if image_bytes:
        message["images"] = [base64.b64encode(image_bytes).decode("ascii")]

    payload: Dict[str, Any] = {
        "model": model,
        "messages": [message],
        "stream": False,
        "options": {"temperature": temperature if temperature is not None else OLLAMA_TEMPERATURE},
    }

    try:
        r = requests.post(url, json=payload, timeout=timeout_s or OLLAMA_TIMEOUT_S)
    except requests.RequestException as e:
        raise OllamaError(f"Ollama unreachable: {e}") from e
    if r.status_code >= 400:
        raise OllamaError(f"Ollama {r.status_code}: {r.text}")

    try:
        data = r.json()
        return (data.get("message") or {}).get("content", "") or ""
    except (ValueError, AttributeError) as e:
        raise OllamaError(f"Ollama returned an unreadable body: {r.text[:200]}") from e
