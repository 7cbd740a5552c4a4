from __future__ import annotations

from prdsmith.retry import ErrorClass, RetryPolicy, RetryTracker, Transition


def test_malformed_output_budget_then_escalation() -> None:
    tracker = RetryTracker(RetryPolicy(malformed_max_attempts=2))
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.RETRY_IMMEDIATE
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.RETRY_IMMEDIATE
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.ESCALATE_TO_OPERATOR
    state = tracker.state
    assert state.attempt == state.max_attempts == 2


def test_rate_limit_backs_off() -> None:
    tracker = RetryTracker(RetryPolicy(rate_limit_max_attempts=3))
    transitions = [tracker.register(ErrorClass.RATE_LIMIT) for _ in range(4)]
    assert transitions == [Transition.RETRY_BACKOFF] * 3 + [Transition.ESCALATE_TO_OPERATOR]


def test_other_errors_escalate_immediately() -> None:
    tracker = RetryTracker(RetryPolicy())
    assert tracker.register(ErrorClass.OTHER) is Transition.ESCALATE_TO_OPERATOR
    assert tracker.state.attempt == 0


def test_switching_class_starts_fresh_counter() -> None:
    tracker = RetryTracker(RetryPolicy(malformed_max_attempts=1, rate_limit_max_attempts=1))
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.RETRY_IMMEDIATE
    assert tracker.register(ErrorClass.RATE_LIMIT) is Transition.RETRY_BACKOFF
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.RETRY_IMMEDIATE
    assert tracker.state.error_class is ErrorClass.MALFORMED_OUTPUT
    assert tracker.state.attempt == 1


def test_reset_restores_budget_for_active_class() -> None:
    tracker = RetryTracker(RetryPolicy(malformed_max_attempts=1))
    tracker.register(ErrorClass.MALFORMED_OUTPUT)
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.ESCALATE_TO_OPERATOR
    tracker.reset()
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.RETRY_IMMEDIATE


def test_success_clears_every_counter() -> None:
    tracker = RetryTracker(RetryPolicy(malformed_max_attempts=1))
    tracker.register(ErrorClass.MALFORMED_OUTPUT)
    assert tracker.record_success() is Transition.SUCCESS
    assert tracker.state is None
    assert tracker.register(ErrorClass.MALFORMED_OUTPUT) is Transition.RETRY_IMMEDIATE
