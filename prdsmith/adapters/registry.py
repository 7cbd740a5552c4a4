from __future__ import annotations

from typing import Callable, Dict

from prdsmith.config import AppConfig
from prdsmith.utils.audit_log import AuditLog

from .anthropic_adapter import DEFAULT_MAX_TOKENS, AnthropicAdapter
from .gemini_adapter import GeminiAdapter
from .llm_base import LLMAdapter, Provider
from .mock_adapter import MockAdapter
from .openai_adapter import OpenAIAdapter

AdapterFactory = Callable[[AppConfig, AuditLog], LLMAdapter]


def _openai(config: AppConfig, audit: AuditLog) -> LLMAdapter:
    return OpenAIAdapter(api_key=config.api_key_for(Provider.OPENAI), audit=audit)


def _gemini(config: AppConfig, audit: AuditLog) -> LLMAdapter:
    return GeminiAdapter(api_key=config.api_key_for(Provider.GEMINI), audit=audit)


def _claude(config: AppConfig, audit: AuditLog) -> LLMAdapter:
    max_tokens = config.section(Provider.CLAUDE).get("max_tokens") or DEFAULT_MAX_TOKENS
    return AnthropicAdapter(
        api_key=config.api_key_for(Provider.CLAUDE),
        audit=audit,
        max_tokens=int(max_tokens),
    )


ADAPTERS: Dict[Provider, AdapterFactory] = {
    Provider.OPENAI: _openai,
    Provider.GEMINI: _gemini,
    Provider.CLAUDE: _claude,
}


def build_adapter(config: AppConfig, audit: AuditLog) -> LLMAdapter:
    return ADAPTERS[config.provider](config, audit)


def build_mock_adapter(config: AppConfig, audit: AuditLog) -> LLMAdapter:
    return MockAdapter(provider=config.provider, audit=audit)


def adapter_factory_for(mode: str) -> AdapterFactory:
    if mode == "mock":
        return build_mock_adapter
    return build_adapter
