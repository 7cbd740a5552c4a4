from __future__ import annotations

from typing import Any, Dict, Optional

from google import genai
from google.genai import types

from prdsmith.errors import ProviderNotConfiguredError
from prdsmith.gates.normalizer import flattened_text
from prdsmith.utils.audit_log import AuditLog

from .llm_base import LLMAdapter, Provider, ProviderCall, ProviderResult


class GeminiAdapter(LLMAdapter):
    provider = Provider.GEMINI

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Any = None,
        audit: Optional[AuditLog] = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ProviderNotConfiguredError(self.provider.value, "GEMINI_API_KEY")
            client = genai.Client(api_key=api_key)
        self.client = client
        self.audit = audit or AuditLog()

    def build_config(self, call: ProviderCall) -> Dict[str, Any]:
        config: Dict[str, Any] = {}
        if call.system_text:
            config["system_instruction"] = call.system_text
        if call.schema is not None:
            config["response_mime_type"] = "application/json"
            config["response_schema"] = call.schema
        return config

    def complete(self, call: ProviderCall) -> ProviderResult:
        config = self.build_config(call)
        self.audit.record(
            call.purpose.value,
            "REQUEST",
            self.provider.value,
            call.model,
            {"model": call.model, "contents": call.user_text, "config": config},
        )
        print(f"[gemini] model={call.model} purpose={call.purpose.value}")
        response = self.client.models.generate_content(
            model=call.model,
            contents=call.user_text,
            config=types.GenerateContentConfig(**config) if config else None,
        )
        self.audit.record(call.purpose.value, "RESPONSE", self.provider.value, call.model, response)
        return ProviderResult(raw_envelope=response, extracted_text=flattened_text(response))
