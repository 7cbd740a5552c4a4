from __future__ import annotations

from types import SimpleNamespace

import pytest

from prdsmith.adapters.llm_base import ProviderResult
from prdsmith.gates.normalizer import (
    CONTENT_EMPTY,
    CONTENT_MISSING,
    ENVELOPE_MISSING,
    JSON_PARSE,
    JSON_TYPE,
    SCHEMA_REQUIRED,
    SCHEMA_TYPE,
    SCHEMA_VALUE,
    check_shape,
    extract_structured,
    extract_text,
    normalize,
)
from prdsmith.generators import QUESTION_SCHEMA, TODO_SCHEMA


def _codes(problems):
    return [row["code"] for row in problems]


def test_flattened_output_text_wins() -> None:
    envelope = {
        "output_text": "flattened",
        "output": [{"type": "message", "content": [{"type": "output_text", "text": "block"}]}],
    }
    assert extract_text(ProviderResult(raw_envelope=envelope)) == ("flattened", [])


def test_openai_message_block_used_when_no_flattened_text() -> None:
    envelope = {
        "output": [
            {"type": "reasoning", "summary": []},
            {"type": "message", "content": [{"type": "output_text", "text": "from block"}]},
        ]
    }
    assert extract_text(ProviderResult(raw_envelope=envelope)) == ("from block", [])


def test_gemini_candidate_parts() -> None:
    envelope = {"candidates": [{"content": {"parts": [{"text": "gemini says"}]}}]}
    assert extract_text(ProviderResult(raw_envelope=envelope)) == ("gemini says", [])


def test_sdk_style_objects_are_supported() -> None:
    envelope = SimpleNamespace(
        content=[SimpleNamespace(type="text", text="claude says")],
    )
    assert extract_text(ProviderResult(raw_envelope=envelope)) == ("claude says", [])


@pytest.mark.parametrize(
    "envelope, code",
    [
        (None, ENVELOPE_MISSING),
        ({}, ENVELOPE_MISSING),
        ({"id": "msg_1"}, CONTENT_MISSING),
        ({"content": "oops"}, CONTENT_MISSING),
        ({"content": []}, CONTENT_EMPTY),
        ({"candidates": []}, CONTENT_EMPTY),
    ],
)
def test_malformed_envelopes_are_signalled_not_raised(envelope, code) -> None:
    text, problems = extract_text(ProviderResult(raw_envelope=envelope))
    assert text is None
    assert _codes(problems) == [code]


def test_structured_prefers_tool_payload_over_text() -> None:
    envelope = {
        "content": [
            {"type": "text", "text": '{"from": "text"}'},
            {"type": "tool_use", "name": "emit_structured_json", "input": {"from": "tool"}},
        ]
    }
    assert extract_structured(ProviderResult(raw_envelope=envelope)) == ({"from": "tool"}, [])


def test_structured_parses_openai_function_call_arguments() -> None:
    envelope = {"output": [{"type": "function_call", "arguments": '{"x": 1}'}]}
    assert extract_structured(ProviderResult(raw_envelope=envelope)) == ({"x": 1}, [])


def test_structured_falls_back_to_json_in_text() -> None:
    envelope = {"output_text": '```json\n{"questions": []}\n```'}
    assert normalize(ProviderResult(raw_envelope=envelope), structured=True) == (
        {"questions": []},
        [],
    )


def test_structured_reports_unparsable_text() -> None:
    value, problems = normalize(ProviderResult(raw_envelope={"output_text": "no idea"}), True)
    assert value is None
    assert _codes(problems) == [JSON_PARSE]


def test_structured_rejects_non_object_json() -> None:
    value, problems = normalize(ProviderResult(raw_envelope={"output_text": "[1, 2]"}), True)
    assert value is None
    assert _codes(problems) == [JSON_TYPE]


def test_free_text_is_returned_untouched() -> None:
    text = "```md\n# PRD\n```"
    assert normalize(ProviderResult(raw_envelope={"output_text": text}), False) == (text, [])


def test_check_shape_accepts_valid_payload() -> None:
    payload = {"questions": [{"question": "Who?", "choices": ["a", "b"]}]}
    assert check_shape(payload, QUESTION_SCHEMA.schema) == []


def test_check_shape_reports_missing_and_mistyped_keys() -> None:
    assert _codes(check_shape({}, QUESTION_SCHEMA.schema)) == [SCHEMA_REQUIRED]
    problems = check_shape({"questions": "Who?"}, QUESTION_SCHEMA.schema)
    assert _codes(problems) == [SCHEMA_TYPE]
    assert problems[0]["path"] == "$.questions"


def test_check_shape_reaches_nested_question_items() -> None:
    problems = check_shape({"questions": [{"text": "Who?"}]}, QUESTION_SCHEMA.schema)
    assert SCHEMA_REQUIRED in _codes(problems)
    assert SCHEMA_VALUE in _codes(problems)
    assert {row["path"] for row in problems} == {"$.questions[0]"}

    problems = check_shape({"questions": ["Who?"]}, QUESTION_SCHEMA.schema)
    assert _codes(problems) == [SCHEMA_TYPE]
    assert problems[0]["path"] == "$.questions[0]"


def test_check_shape_reaches_nested_todo_tasks() -> None:
    todo = {"title": "t", "phases": [{"tasks": [{"description": "x", "priority": "urgent"}]}]}
    paths = {row["path"] for row in check_shape(todo, TODO_SCHEMA.schema)}
    assert "$.phases[0]" in paths
    assert "$.phases[0].tasks[0]" in paths
    assert "$.phases[0].tasks[0].priority" in paths
