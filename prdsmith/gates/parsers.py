from __future__ import annotations

import json
import re
from typing import Any, Optional

_WRAPPING_FENCE = re.compile(r"\A```[\w.+-]*[ \t]*\n?(.*?)\n?```\Z", flags=re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Unwrap a single fenced block only when it spans the whole trimmed text."""
    stripped = text.strip()
    match = _WRAPPING_FENCE.match(stripped)
    if not match:
        return text
    inner = match.group(1)
    if "```" in inner:
        return text
    return inner


def _try_parse(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def extract_json(raw_text: Optional[str]) -> Any:
    """Return the first JSON value found in model output, or None.

    Handles a wrapping code fence, a clean JSON document, and a JSON value
    followed (or preceded) by commentary. Never raises.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return None

    candidate = strip_code_fence(raw_text).strip()
    parsed = _try_parse(candidate)
    if parsed is not None:
        return parsed

    decoder = json.JSONDecoder()
    for match in re.finditer(r"[\[{]", candidate):
        try:
            parsed, _ = decoder.raw_decode(candidate, match.start())
        except json.JSONDecodeError:
            continue
        return parsed
    return None
