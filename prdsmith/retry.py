from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class ErrorClass(str, Enum):
    RATE_LIMIT = "RATE_LIMIT"
    MALFORMED_OUTPUT = "MALFORMED_OUTPUT"
    OTHER = "OTHER"


class Transition(str, Enum):
    SUCCESS = "SUCCESS"
    RETRY_BACKOFF = "RETRY_BACKOFF"
    RETRY_IMMEDIATE = "RETRY_IMMEDIATE"
    ESCALATE_TO_OPERATOR = "ESCALATE_TO_OPERATOR"
    ABORT = "ABORT"


ERROR_DESCRIPTIONS: Dict[ErrorClass, str] = {
    ErrorClass.RATE_LIMIT: "rate limit reached",
    ErrorClass.MALFORMED_OUTPUT: "response did not match the expected format",
    ErrorClass.OTHER: "request failed",
}


@dataclass(frozen=True)
class RetryPolicy:
    rate_limit_max_attempts: int = 1000
    rate_limit_delay_seconds: float = 10.0
    malformed_max_attempts: int = 2

    def max_attempts_for(self, error_class: ErrorClass) -> int:
        if error_class is ErrorClass.RATE_LIMIT:
            return self.rate_limit_max_attempts
        if error_class is ErrorClass.MALFORMED_OUTPUT:
            return self.malformed_max_attempts
        return 0


@dataclass(frozen=True)
class RetryState:
    error_class: ErrorClass
    attempt: int
    max_attempts: int


class RetryTracker:
    """Per-invocation retry bookkeeping.

    Each error class keeps its own counter. Switching to a different class
    starts that class from zero, so a rate-limit streak never eats into the
    malformed-output budget or the other way round.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self._attempts: Dict[ErrorClass, int] = {}
        self._active: Optional[ErrorClass] = None

    @property
    def state(self) -> Optional[RetryState]:
        if self._active is None:
            return None
        return RetryState(
            error_class=self._active,
            attempt=self._attempts[self._active],
            max_attempts=self.policy.max_attempts_for(self._active),
        )

    def register(self, error_class: ErrorClass) -> Transition:
        if error_class is not self._active:
            self._active = error_class
            self._attempts[error_class] = 0
        if self._attempts[error_class] >= self.policy.max_attempts_for(error_class):
            return Transition.ESCALATE_TO_OPERATOR
        self._attempts[error_class] += 1
        if error_class is ErrorClass.RATE_LIMIT:
            return Transition.RETRY_BACKOFF
        return Transition.RETRY_IMMEDIATE

    def record_success(self) -> Transition:
        self._active = None
        self._attempts.clear()
        return Transition.SUCCESS

    def reset(self) -> None:
        """Operator chose to keep going: the active class starts over."""
        if self._active is not None:
            self._attempts[self._active] = 0
