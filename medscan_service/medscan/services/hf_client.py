import base64
import os
from typing import Any, Dict, List, Optional

from huggingface_hub import InferenceClient

from medscan.core.errors import HFLLMError
from medscan.core.llm_config import (
    HF_MAX_TOKENS,
    HF_TEMPERATURE,
    HF_TIMEOUT_S,
)


def _user_content(prompt: str, image_bytes: Optional[bytes]) -> Any:
    if not image_bytes:
        return prompt
    data_url = "data:image/jpeg;base64," + base64.b64encode(image_bytes).decode("ascii")
    parts: List[Dict[str, Any]] = [
        {"type": "text", "text": prompt},
        {"type": "image_url", "image_url": {"url": data_url}},
    ]
    return parts


def hf_chat_text(
    *,
    model: str,
    prompt: str,
    image_bytes: Optional[bytes] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    timeout_s: Optional[int] = None,
) -> str:
    # read token/provider at runtime so config.env edits apply without re-import
    token = os.getenv("HF_TOKEN", "").strip()
    if not token:
        raise HFLLMError("HF_TOKEN is missing. Set it in config.env and restart.")
    provider = os.getenv("HF_PROVIDER", "auto").strip() or "auto"

    client = InferenceClient(
        provider=provider,
        api_key=token,
        timeout=float(timeout_s or HF_TIMEOUT_S),
    )

    try:
        out = client.chat_completion(
            model=model,
            messages=[{"role": "user", "content": _user_content(prompt, image_bytes)}],
            temperature=temperature if temperature is not None else HF_TEMPERATURE,
            max_tokens=max_tokens if max_tokens is not None else HF_MAX_TOKENS,
        )
    except Exception as e:  # provider/transport errors vary across hub versions
        raise HFLLMError(f"HF inference failed: {e}") from e

    try:
        return out.choices[0].message.content or ""
    except (AttributeError, IndexError, TypeError) as e:
        raise HFLLMError(f"HF inference returned no message: {e}") from e
