from __future__ import annotations

import copy
from typing import Any, Callable, Dict

from .llm_base import OutputSchema, Provider

GEMINI_UNSUPPORTED_KEYS = frozenset({"strict", "additionalProperties"})
ANTHROPIC_UNSUPPORTED_KEYS = frozenset({"strict"})


def _convert(node: Any, drop_keys: frozenset, upper_types: bool) -> Any:
    if isinstance(node, list):
        return [_convert(item, drop_keys, upper_types) for item in node]
    if not isinstance(node, dict):
        return node

    converted: Dict[str, Any] = {}
    for key, value in node.items():
        if key in drop_keys:
            continue
        if key == "type" and upper_types:
            if isinstance(value, str):
                converted[key] = value.upper()
            elif isinstance(value, list):
                converted[key] = [v.upper() if isinstance(v, str) else v for v in value]
            else:
                converted[key] = _convert(value, drop_keys, upper_types)
        elif key == "required" and isinstance(value, list):
            converted[key] = list(value)
        else:
            converted[key] = _convert(value, drop_keys, upper_types)
    return converted


def to_openai_format(descriptor: OutputSchema) -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "name": descriptor.name,
        "strict": descriptor.strict,
        "schema": copy.deepcopy(dict(descriptor.schema)),
    }


def to_gemini_schema(descriptor: OutputSchema) -> Dict[str, Any]:
    return _convert(dict(descriptor.schema), GEMINI_UNSUPPORTED_KEYS, upper_types=True)


def to_anthropic_schema(descriptor: OutputSchema) -> Dict[str, Any]:
    return _convert(dict(descriptor.schema), ANTHROPIC_UNSUPPORTED_KEYS, upper_types=False)


TRANSLATORS: Dict[Provider, Callable[[OutputSchema], Dict[str, Any]]] = {
    Provider.OPENAI: to_openai_format,
    Provider.GEMINI: to_gemini_schema,
    Provider.CLAUDE: to_anthropic_schema,
}


def translate_schema(descriptor: OutputSchema, provider: Provider) -> Dict[str, Any]:
    return TRANSLATORS[provider](descriptor)
