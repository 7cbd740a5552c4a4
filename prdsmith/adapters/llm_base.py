from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple


class Purpose(str, Enum):
    QUESTION = "QUESTION"
    PRD = "PRD"
    TRD = "TRD"
    TODO = "TODO"


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Provider(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"
    CLAUDE = "claude"


@dataclass(frozen=True)
class Message:
    role: Role
    text: str


@dataclass(frozen=True)
class GenerationOptions:
    verbosity: Optional[str] = None
    reasoning_effort: Optional[str] = None


@dataclass(frozen=True)
class OutputSchema:
    """Canonical structured-output description shared by every provider."""

    name: str
    schema: Mapping[str, Any]
    strict: bool = True


@dataclass(frozen=True)
class LLMRequest:
    purpose: Purpose
    model: str
    messages: Tuple[Message, ...]
    output_schema: Optional[OutputSchema] = None
    generation_options: GenerationOptions = field(default_factory=GenerationOptions)

    @property
    def system_text(self) -> str:
        return "\n\n".join(m.text for m in self.messages if m.role is Role.SYSTEM)

    @property
    def user_text(self) -> str:
        """Non-system turns in order; assistant turns are tagged so they read as prior replies."""
        parts = []
        for message in self.messages:
            if message.role is Role.ASSISTANT:
                parts.append(f"<assistant>\n{message.text}\n</assistant>")
            elif message.role is Role.USER:
                parts.append(message.text)
        return "\n\n".join(parts)


@dataclass(frozen=True)
class ProviderCall:
    """What a single adapter invocation receives, schema already translated."""

    purpose: Purpose
    model: str
    system_text: str
    user_text: str
    schema: Optional[Dict[str, Any]] = None
    options: GenerationOptions = field(default_factory=GenerationOptions)

    @property
    def structured(self) -> bool:
        return self.schema is not None


@dataclass
class ProviderResult:
    raw_envelope: Any
    extracted_text: Optional[str] = None


class LLMAdapter(Protocol):
    provider: Provider

    def complete(self, call: ProviderCall) -> ProviderResult:
        raise NotImplementedError
