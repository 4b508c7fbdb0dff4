# medscan/services/llm/sanitize.py
import json
import re
from typing import Any, NamedTuple

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")


class ParseOutcome(NamedTuple):
    ok: bool
    value: Any
    raw: str


def strip_code_fences(text: str) -> str:
    """Drop ``` / ```json markers wherever the model put them."""
    return _FENCE_RE.sub("", text or "").strip()


def _outer_span(text: str, open_ch: str, close_ch: str) -> str | None:
    start = text.find(open_ch)
    end = text.rfind(close_ch)
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return None


def parse_json_payload(raw_text: str) -> ParseOutcome:
    """
    Staged, non-throwing parse of model output:
      1) strip code fences
      2) json.loads on what is left
      3) retry on the outermost [...] then {...} span (prose around the JSON)
    Returns ParseOutcome(ok=False, value=None, raw=raw_text) when nothing parses.
    """
    raw_text = raw_text or ""
    text = strip_code_fences(raw_text)

    try:
        return ParseOutcome(True, json.loads(text), raw_text)
    except (ValueError, RecursionError):
        pass

    for open_ch, close_ch in (("[", "]"), ("{", "}")):
        span = _outer_span(text, open_ch, close_ch)
        if span is None:
            continue
        try:
            return ParseOutcome(True, json.loads(span), raw_text)
        except (ValueError, RecursionError):
            continue

    return ParseOutcome(False, None, raw_text)


def parse_json_object(raw_text: str) -> dict | None:
    outcome = parse_json_payload(raw_text)
    if outcome.ok and isinstance(outcome.value, dict):
        return outcome.value
    return None
