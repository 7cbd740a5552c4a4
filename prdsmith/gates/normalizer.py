"""Reduce provider response envelopes to text or parsed structured values.

Envelopes may be SDK objects (attribute access) or plain dicts (as read back
from audit logs or produced by the mock adapter); both are handled.

Problems are reported as rows of ``{"path", "code", "message"}`` so the
dispatcher can classify them; nothing in here raises on bad model output.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from jsonschema import Draft202012Validator

from prdsmith.adapters.llm_base import ProviderResult
from prdsmith.gates.parsers import extract_json

Problem = Dict[str, str]

ENVELOPE_MISSING = "ENVELOPE_MISSING"
CONTENT_MISSING = "CONTENT_MISSING"
CONTENT_EMPTY = "CONTENT_EMPTY"
TEXT_MISSING = "TEXT_MISSING"
JSON_PARSE = "JSON_PARSE"
JSON_TYPE = "JSON_TYPE"
SCHEMA_REQUIRED = "SCHEMA_REQUIRED"
SCHEMA_TYPE = "SCHEMA_TYPE"
SCHEMA_VALUE = "SCHEMA_VALUE"

_TOOL_BLOCK_TYPES = {"tool_use", "function_call"}


def _problem(code: str, message: str, path: str = "$") -> Problem:
    return {"path": path, "code": code, "message": message}


def _field(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _is_empty_envelope(envelope: Any) -> bool:
    if envelope is None:
        return True
    if isinstance(envelope, (Mapping, list, str)) and not envelope:
        return True
    return False


def flattened_text(envelope: Any) -> Optional[str]:
    """Single text field some SDKs expose (OpenAI ``output_text``, Gemini ``text``)."""
    for key in ("output_text", "text"):
        value = _field(envelope, key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def content_blocks(envelope: Any) -> Tuple[List[Any], List[Problem]]:
    """Locate the ordered content blocks of an Anthropic, OpenAI or Gemini envelope."""
    if _is_empty_envelope(envelope):
        return [], [_problem(ENVELOPE_MISSING, "provider returned an empty response")]

    for key in ("content", "output"):
        blocks = _field(envelope, key)
        if blocks is None:
            continue
        if not isinstance(blocks, list):
            return [], [_problem(CONTENT_MISSING, f"'{key}' is not a list", f"$.{key}")]
        if not blocks:
            return [], [_problem(CONTENT_EMPTY, f"'{key}' is empty", f"$.{key}")]
        return blocks, []

    candidates = _field(envelope, "candidates")
    if candidates is not None:
        if not isinstance(candidates, list):
            return [], [_problem(CONTENT_MISSING, "'candidates' is not a list", "$.candidates")]
        if not candidates:
            return [], [_problem(CONTENT_EMPTY, "'candidates' is empty", "$.candidates")]
        parts = _field(_field(candidates[0], "content"), "parts")
        if not isinstance(parts, list):
            return [], [
                _problem(CONTENT_MISSING, "first candidate has no parts", "$.candidates[0].content")
            ]
        if not parts:
            return [], [
                _problem(CONTENT_EMPTY, "first candidate has no parts", "$.candidates[0].content")
            ]
        return parts, []

    return [], [_problem(CONTENT_MISSING, "response has no content array")]


def first_text_block(blocks: List[Any]) -> Optional[str]:
    for block in blocks:
        kind = _field(block, "type")
        if kind == "message":
            for part in _field(block, "content") or []:
                text = _field(part, "text")
                if isinstance(text, str) and text:
                    return text
        elif kind in (None, "text", "output_text"):
            text = _field(block, "text")
            if isinstance(text, str) and text:
                return text
    return None


def tool_payload(blocks: List[Any]) -> Any:
    """Input of the first tool/function call block, already parsed where possible."""
    for block in blocks:
        kind = _field(block, "type")
        if kind == "tool_use":
            payload = _field(block, "input")
            if payload is not None:
                return payload
        elif kind == "function_call":
            arguments = _field(block, "arguments")
            if isinstance(arguments, str):
                return extract_json(arguments)
            if arguments is not None:
                return arguments
        call = _field(block, "function_call") if kind not in _TOOL_BLOCK_TYPES else None
        if call is not None:
            args = _field(call, "args")
            if args is not None:
                return dict(args) if isinstance(args, Mapping) else args
    return None


def extract_text(result: ProviderResult) -> Tuple[Optional[str], List[Problem]]:
    if _is_empty_envelope(result.raw_envelope):
        return None, [_problem(ENVELOPE_MISSING, "provider returned an empty response")]
    text = result.extracted_text or flattened_text(result.raw_envelope)
    if text:
        return text, []
    blocks, problems = content_blocks(result.raw_envelope)
    if problems:
        return None, problems
    text = first_text_block(blocks)
    if text is None:
        return None, [_problem(TEXT_MISSING, "no text block in response content")]
    return text, []


def extract_structured(result: ProviderResult) -> Tuple[Any, List[Problem]]:
    if _is_empty_envelope(result.raw_envelope):
        return None, [_problem(ENVELOPE_MISSING, "provider returned an empty response")]

    blocks, block_problems = content_blocks(result.raw_envelope)
    if not block_problems:
        payload = tool_payload(blocks)
        if payload is not None:
            return _require_object(payload)

    text, problems = extract_text(result)
    if problems:
        return None, problems
    parsed = extract_json(text)
    if parsed is None:
        snippet = text.strip().replace("\n", " ")
        snippet = (snippet[:200] + "...") if len(snippet) > 200 else snippet
        return None, [_problem(JSON_PARSE, f"no JSON value found in response: {snippet}")]
    return _require_object(parsed)


def _require_object(value: Any) -> Tuple[Any, List[Problem]]:
    if isinstance(value, str):
        parsed = extract_json(value)
        if parsed is not None:
            value = parsed
    if not isinstance(value, dict):
        return None, [_problem(JSON_TYPE, "structured output must be a JSON object")]
    return value, []


def normalize(result: ProviderResult, structured: bool) -> Tuple[Any, List[Problem]]:
    if structured:
        return extract_structured(result)
    return extract_text(result)


def _json_path(parts: Iterable[Any]) -> str:
    return "$" + "".join(f"[{part}]" if isinstance(part, int) else f".{part}" for part in parts)


def check_shape(value: Any, schema: Mapping[str, Any]) -> List[Problem]:
    """Validate extracted output against the full canonical schema, nested items included."""
    problems: List[Problem] = []
    errors = Draft202012Validator(schema).iter_errors(value)
    for error in sorted(errors, key=lambda e: [str(part) for part in e.absolute_path]):
        if error.validator == "required":
            code = SCHEMA_REQUIRED
        elif error.validator == "type":
            code = SCHEMA_TYPE
        else:
            code = SCHEMA_VALUE
        problems.append(_problem(code, error.message, _json_path(error.absolute_path)))
    return problems


def describe_problems(problems: List[Problem]) -> str:
    return "; ".join(f"{row['code']} at {row['path']}: {row['message']}" for row in problems)


def dump_envelope(envelope: Any) -> str:
    dump = getattr(envelope, "model_dump", None)
    if callable(dump):
        envelope = dump(mode="json")
    try:
        return json.dumps(envelope, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(envelope)
