"""Single entry point for every AI call.

``Dispatcher.invoke`` picks the adapter for the configured provider,
translates the structured-output schema into that provider's dialect,
normalizes the response, and runs the retry state machine:

* rate limits (HTTP 429) back off for a fixed delay and retry, up to a
  large ceiling;
* malformed output (unparsable, wrong shape) retries immediately a few times;
* anything else, or an exhausted budget, is escalated to the operator, who
  either resets the budget and keeps going or aborts the session.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from prdsmith.adapters.llm_base import LLMRequest, ProviderCall, Purpose
from prdsmith.adapters.registry import AdapterFactory, build_adapter
from prdsmith.adapters.schema_dialects import translate_schema
from prdsmith.config import AppConfig
from prdsmith.errors import SessionAborted
from prdsmith.gates.normalizer import (
    TEXT_MISSING,
    check_shape,
    describe_problems,
    dump_envelope,
    normalize,
)
from prdsmith.retry import (
    ERROR_DESCRIPTIONS,
    ErrorClass,
    RetryPolicy,
    RetryTracker,
    Transition,
)
from prdsmith.utils.audit_log import AuditLog
from prdsmith.utils.console import ConsoleOperator, ConsoleStatus, Operator, StatusReporter

RATE_LIMIT_STATUS = 429

DEFAULT_STATUS_TEXT: Dict[Purpose, str] = {
    Purpose.QUESTION: "Generating the next question...",
    Purpose.PRD: "Writing the PRD...",
    Purpose.TRD: "Writing the TRD...",
    Purpose.TODO: "Building the TODO list...",
}


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one adapter round-trip. ``kind`` is None on success."""

    kind: Optional[ErrorClass]
    value: Any = None
    message: str = ""
    problems: List[Dict[str, str]] = field(default_factory=list)
    raw: Any = None

    @property
    def ok(self) -> bool:
        return self.kind is None


def status_code_of(exc: BaseException) -> Optional[int]:
    """HTTP status attached by the provider SDKs (openai/anthropic ``status_code``, google ``code``)."""
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_exception(exc: Exception) -> AttemptOutcome:
    status = status_code_of(exc)
    kind = ErrorClass.RATE_LIMIT if status == RATE_LIMIT_STATUS else ErrorClass.OTHER
    raw = getattr(exc, "body", None) or getattr(exc, "details", None) or getattr(exc, "response", None)
    prefix = f"HTTP {status}: " if status is not None else ""
    return AttemptOutcome(
        kind=kind,
        message=f"{prefix}{type(exc).__name__}: {exc}",
        raw=raw if raw is not None else repr(exc),
    )


class Dispatcher:
    def __init__(
        self,
        adapter_factory: AdapterFactory = build_adapter,
        operator: Optional[Operator] = None,
        policy: Optional[RetryPolicy] = None,
        status_factory: Callable[[str], StatusReporter] = ConsoleStatus,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.adapter_factory = adapter_factory
        self.operator = operator or ConsoleOperator()
        self.policy = policy or RetryPolicy()
        self.status_factory = status_factory
        self.sleep = sleep

    def invoke(
        self,
        request: LLMRequest,
        config: AppConfig,
        status_text: Optional[str] = None,
    ) -> Any:
        """Return a str (free text) or dict (structured); only the operator can stop it."""
        tracker = RetryTracker(self.policy)
        status = self.status_factory(status_text or DEFAULT_STATUS_TEXT[request.purpose])
        status.start()
        try:
            while True:
                outcome = self._attempt(request, config)
                if outcome.ok:
                    tracker.record_success()
                    return outcome.value

                transition = tracker.register(outcome.kind)
                state = tracker.state
                description = ERROR_DESCRIPTIONS[outcome.kind]
                if config.app.verbose:
                    print(f"[{config.provider.value}] {outcome.kind.value}: {outcome.message}")

                if transition is Transition.RETRY_BACKOFF:
                    delay = self.policy.rate_limit_delay_seconds
                    status.update(
                        f"{description}, retrying in {delay:g}s "
                        f"{state.attempt}/{state.max_attempts}"
                    )
                    self.sleep(delay)
                    continue
                if transition is Transition.RETRY_IMMEDIATE:
                    status.update(f"{description}, retrying {state.attempt}/{state.max_attempts}")
                    continue

                status.stop()
                self._escalate(outcome, description)
                tracker.reset()
                status.start()
        finally:
            status.stop()

    def _escalate(self, outcome: AttemptOutcome, description: str) -> None:
        print(f"[prdsmith] {description}: {outcome.message}")
        if self.operator.confirm("The problem keeps happening. Keep trying?", default=False):
            return
        if outcome.raw is not None and self.operator.confirm(
            "Show the error details? You can share them with the maintainers.",
            default=False,
        ):
            print("\n=== Error details ===")
            print(dump_envelope(outcome.raw))
        raise SessionAborted(f"{Transition.ABORT.value}: {description}")

    def _attempt(self, request: LLMRequest, config: AppConfig) -> AttemptOutcome:
        schema = None
        if request.output_schema is not None:
            schema = translate_schema(request.output_schema, config.provider)
        call = ProviderCall(
            purpose=request.purpose,
            model=request.model,
            system_text=request.system_text,
            user_text=request.user_text,
            schema=schema,
            options=request.generation_options,
        )
        audit = AuditLog(log_dir=config.app.log_dir, enabled=config.app.log)
        try:
            adapter = self.adapter_factory(config, audit)
            result = adapter.complete(call)
        except Exception as exc:
            return classify_exception(exc)

        value, problems = normalize(result, structured=call.structured)
        if not problems and request.output_schema is not None:
            problems = check_shape(value, request.output_schema.schema)
        if not problems and (value is None or (isinstance(value, str) and not value.strip())):
            problems = [{"path": "$", "code": TEXT_MISSING, "message": "response is empty"}]
        if problems:
            return AttemptOutcome(
                kind=ErrorClass.MALFORMED_OUTPUT,
                message=describe_problems(problems),
                problems=problems,
                raw=result.raw_envelope,
            )
        return AttemptOutcome(kind=None, value=value)
