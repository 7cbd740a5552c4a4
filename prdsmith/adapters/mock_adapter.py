from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from prdsmith.utils.audit_log import AuditLog

from .llm_base import LLMAdapter, Provider, ProviderCall, ProviderResult, Purpose

MOCK_QUESTIONS: List[Dict[str, Any]] = [
    {
        "question": "Who is the primary user of the product?",
        "choices": ["Individual consumers", "Small teams", "Enterprises", "Developers"],
    },
    {
        "question": "Which platform should the first release target?",
        "choices": ["Web", "iOS", "Android", "Desktop", "CLI"],
    },
    {
        "question": "How will users sign in?",
        "choices": ["Email and password", "Social login", "SSO", "No accounts"],
    },
    {
        "question": "What matters most for the MVP?",
        "choices": ["Speed to launch", "Polish", "Scalability", "Low cost"],
    },
]


@dataclass
class MockAdapter(LLMAdapter):
    """Offline adapter that answers with canned envelopes in the provider's native shape."""

    provider: Provider = Provider.OPENAI
    audit: AuditLog = field(default_factory=AuditLog)

    def complete(self, call: ProviderCall) -> ProviderResult:
        payload = self._build_payload(call)
        self.audit.record(call.purpose.value, "REQUEST", "mock", call.model, call.user_text)
        envelope = self._envelope(payload, call.structured)
        self.audit.record(call.purpose.value, "RESPONSE", "mock", call.model, envelope)
        return ProviderResult(raw_envelope=envelope)

    def _envelope(self, payload: Any, structured: bool) -> Dict[str, Any]:
        text = json.dumps(payload) if structured else payload
        if self.provider is Provider.CLAUDE:
            if structured:
                block = {"type": "tool_use", "name": "emit_structured_json", "input": payload}
            else:
                block = {"type": "text", "text": text}
            return {"type": "message", "role": "assistant", "content": [block]}
        if self.provider is Provider.GEMINI:
            return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
        return {
            "output_text": text,
            "output": [
                {"type": "message", "content": [{"type": "output_text", "text": text}]}
            ],
        }

    def _build_payload(self, call: ProviderCall) -> Any:
        if call.purpose is Purpose.QUESTION:
            asked = call.user_text.count("<qa_history_item>")
            return {"questions": [MOCK_QUESTIONS[asked % len(MOCK_QUESTIONS)]]}
        if call.purpose is Purpose.TODO:
            return {
                "title": "Mock project tasks",
                "phases": [
                    {
                        "name": "Foundation",
                        "tasks": [
                            {
                                "title": "Set up repository",
                                "description": "Create the project skeleton and CI.",
                                "priority": "high",
                            },
                            {
                                "title": "Define data model",
                                "description": "Translate the TRD entities into schemas.",
                                "priority": "medium",
                            },
                        ],
                    }
                ],
            }
        if call.purpose is Purpose.TRD:
            return "# Technical Requirements\n\n## Architecture\nMock architecture.\n"
        return "# Product Requirements\n\n## Overview\nMock product overview.\n"
