from __future__ import annotations

from typing import Any, Dict, Optional

from openai import OpenAI

from prdsmith.errors import ProviderNotConfiguredError
from prdsmith.gates.normalizer import flattened_text
from prdsmith.utils.audit_log import AuditLog

from .llm_base import LLMAdapter, Provider, ProviderCall, ProviderResult


class OpenAIAdapter(LLMAdapter):
    """Responses API adapter; structured output goes through ``text.format``."""

    provider = Provider.OPENAI

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Any = None,
        audit: Optional[AuditLog] = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ProviderNotConfiguredError(self.provider.value, "OPENAI_API_KEY")
            client = OpenAI(api_key=api_key)
        self.client = client
        self.audit = audit or AuditLog()

    def build_request(self, call: ProviderCall) -> Dict[str, Any]:
        request_data: Dict[str, Any] = {
            "model": call.model,
            "input": [
                {"role": "developer", "content": call.system_text},
                {"role": "user", "content": call.user_text},
            ],
            "store": True,
        }
        text_options: Dict[str, Any] = {}
        if call.schema is not None:
            text_options["format"] = call.schema
        if call.options.verbosity:
            text_options["verbosity"] = call.options.verbosity
        if text_options:
            request_data["text"] = text_options
        if call.options.reasoning_effort:
            request_data["reasoning"] = {"effort": call.options.reasoning_effort}
        return request_data

    def complete(self, call: ProviderCall) -> ProviderResult:
        request_data = self.build_request(call)
        self.audit.record(call.purpose.value, "REQUEST", self.provider.value, call.model, request_data)
        response = self.client.responses.create(**request_data)
        self.audit.record(call.purpose.value, "RESPONSE", self.provider.value, call.model, response)

        usage = getattr(response, "usage", None)
        if usage is not None:
            print(
                f"[openai] model={call.model} "
                f"input_tokens={getattr(usage, 'input_tokens', None)} "
                f"output_tokens={getattr(usage, 'output_tokens', None)}"
            )
        return ProviderResult(raw_envelope=response, extracted_text=flattened_text(response))
