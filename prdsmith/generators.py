from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from prdsmith.adapters.llm_base import LLMRequest, Message, OutputSchema, Purpose, Role
from prdsmith.config import AppConfig
from prdsmith.dispatcher import Dispatcher
from prdsmith.utils.io import read_text

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

QUESTION_SCHEMA = OutputSchema(
    name="prd_interrogator",
    strict=True,
    schema={
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "description": "Short, clear PRD-related questions to ask the user.",
                "items": {
                    "type": "object",
                    "properties": {
                        "question": {
                            "type": "string",
                            "description": "A short, focused question about one PRD element.",
                        },
                        "choices": {
                            "type": "array",
                            "description": "4-5 short answer options that are easy to pick.",
                            "items": {"type": "string"},
                        },
                    },
                    "required": ["question", "choices"],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["questions"],
        "additionalProperties": False,
    },
)

TODO_SCHEMA = OutputSchema(
    name="todo_list",
    strict=True,
    schema={
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "phases": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "tasks": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "title": {"type": "string"},
                                    "description": {"type": "string"},
                                    "priority": {
                                        "type": "string",
                                        "enum": ["high", "medium", "low"],
                                    },
                                },
                                "required": ["title", "description", "priority"],
                                "additionalProperties": False,
                            },
                        },
                    },
                    "required": ["name", "tasks"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["title", "phases"],
        "additionalProperties": False,
    },
)


def load_prompt(name: str, replacements: Optional[Dict[str, str]] = None) -> str:
    template = read_text(PROMPTS_DIR / f"{name}.md")
    for key, value in (replacements or {}).items():
        template = template.replace(f"{{{{{key}}}}}", value)
    return template


def build_messages(system_prompt: str, user_text: str) -> Tuple[Message, ...]:
    return (Message(Role.SYSTEM, system_prompt), Message(Role.USER, user_text))


def _generate(
    dispatcher: Dispatcher,
    config: AppConfig,
    purpose: Purpose,
    system_prompt: str,
    user_text: str,
    output_schema: Optional[OutputSchema] = None,
) -> Any:
    request = LLMRequest(
        purpose=purpose,
        model=config.model_for(purpose),
        messages=build_messages(system_prompt, user_text),
        output_schema=output_schema,
        generation_options=config.generation_options_for(purpose),
    )
    return dispatcher.invoke(request, config)


def generate_questions(
    dispatcher: Dispatcher, config: AppConfig, conversation: str, max_questions: int
) -> Dict[str, Any]:
    system_prompt = load_prompt("question_system", {"MAX_QUESTIONS": str(max_questions)})
    return _generate(
        dispatcher, config, Purpose.QUESTION, system_prompt, conversation, QUESTION_SCHEMA
    )


def generate_prd(dispatcher: Dispatcher, config: AppConfig, interview: str) -> str:
    return _generate(dispatcher, config, Purpose.PRD, load_prompt("prd_system"), interview)


def generate_trd(dispatcher: Dispatcher, config: AppConfig, prd: str) -> str:
    return _generate(dispatcher, config, Purpose.TRD, load_prompt("trd_system"), prd)


def generate_todo(dispatcher: Dispatcher, config: AppConfig, trd: str) -> Dict[str, Any]:
    return _generate(
        dispatcher, config, Purpose.TODO, load_prompt("todo_system"), trd, TODO_SCHEMA
    )
