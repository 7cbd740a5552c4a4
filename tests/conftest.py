from __future__ import annotations

from typing import Any, Iterable, List, Sequence

import pytest

from prdsmith.adapters.llm_base import Provider, ProviderCall, ProviderResult
from prdsmith.config import AppConfig, config_from_dict


class RateLimited(Exception):
    status_code = 429


class ScriptedAdapter:
    """Replays envelopes (or raises exceptions) in order, one per call."""

    def __init__(self, script: Iterable[Any], provider: Provider = Provider.OPENAI) -> None:
        self.script: List[Any] = list(script)
        self.provider = provider
        self.calls: List[ProviderCall] = []

    def complete(self, call: ProviderCall) -> ProviderResult:
        self.calls.append(call)
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return ProviderResult(raw_envelope=item)

    def factory(self, config: AppConfig, audit: Any) -> "ScriptedAdapter":
        return self


class FakeOperator:
    def __init__(self, confirmations: Sequence[bool] = (), answers: Sequence[str] = ()) -> None:
        self.confirmations = list(confirmations)
        self.answers = list(answers)
        self.prompts: List[str] = []
        self.questions: List[str] = []

    def confirm(self, message: str, default: bool = False) -> bool:
        self.prompts.append(message)
        return self.confirmations.pop(0)

    def choose(self, question: str, choices: Sequence[str]) -> str:
        self.questions.append(question)
        if self.answers:
            return self.answers.pop(0)
        return choices[0]


class FakeStatus:
    def __init__(self, text: str) -> None:
        self.text = text
        self.updates: List[str] = []
        self.started = 0

    def start(self) -> None:
        self.started += 1

    def update(self, text: str) -> None:
        self.updates.append(text)

    def stop(self) -> None:
        pass


class StatusRecorder:
    def __init__(self) -> None:
        self.instances: List[FakeStatus] = []

    def __call__(self, text: str) -> FakeStatus:
        status = FakeStatus(text)
        self.instances.append(status)
        return status


@pytest.fixture
def make_config(tmp_path):
    def _make(provider: str = "openai", **app: Any) -> AppConfig:
        app_section = {"output_dir": str(tmp_path / "out"), "log_dir": str(tmp_path / "logs")}
        app_section.update(app)
        return config_from_dict({"provider": provider, "app": app_section})

    return _make


@pytest.fixture
def sleeps() -> List[float]:
    return []
