from __future__ import annotations

from typing import Any, Dict, Optional

from anthropic import Anthropic

from prdsmith.errors import ProviderNotConfiguredError
from prdsmith.utils.audit_log import AuditLog

from .llm_base import LLMAdapter, Provider, ProviderCall, ProviderResult

STRUCTURED_TOOL_NAME = "emit_structured_json"
DEFAULT_MAX_TOKENS = 8000


class AnthropicAdapter(LLMAdapter):
    """Messages API adapter; structured output is forced through a single tool call."""

    provider = Provider.CLAUDE

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Any = None,
        audit: Optional[AuditLog] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        if client is None:
            if not api_key:
                raise ProviderNotConfiguredError(self.provider.value, "ANTHROPIC_API_KEY")
            client = Anthropic(api_key=api_key)
        self.client = client
        self.audit = audit or AuditLog()
        self.max_tokens = max_tokens

    def build_request(self, call: ProviderCall) -> Dict[str, Any]:
        request_data: Dict[str, Any] = {
            "model": call.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": call.user_text}],
        }
        if call.system_text:
            request_data["system"] = [{"type": "text", "text": call.system_text}]
        if call.schema is not None:
            request_data["tools"] = [
                {
                    "name": STRUCTURED_TOOL_NAME,
                    "description": "Return structured data as JSON according to the schema.",
                    "input_schema": call.schema,
                }
            ]
            request_data["tool_choice"] = {"type": "tool", "name": STRUCTURED_TOOL_NAME}
        return request_data

    def complete(self, call: ProviderCall) -> ProviderResult:
        request_data = self.build_request(call)
        self.audit.record(call.purpose.value, "REQUEST", self.provider.value, call.model, request_data)
        response = self.client.messages.create(**request_data)
        self.audit.record(call.purpose.value, "RESPONSE", self.provider.value, call.model, response)

        usage = getattr(response, "usage", None)
        if usage is not None:
            print(
                f"[claude] model={call.model} "
                f"input_tokens={getattr(usage, 'input_tokens', None)} "
                f"output_tokens={getattr(usage, 'output_tokens', None)}"
            )
        return ProviderResult(raw_envelope=response)
