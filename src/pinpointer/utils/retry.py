"""
Resilient call combinator shared by every external call site.

An attempt function returns a CallOutcome describing what happened; a
RetryPolicy decides which outcomes are retried, which abort immediately, and
how long to wait between attempts. tenacity drives the loop.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from ..core.logging import logger


class OutcomeKind(str, Enum):
    """Classification of a single external call attempt."""
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    TRANSIENT = "transient"
    MALFORMED = "malformed"
    TERMINAL = "terminal"
    FAILED = "failed"


@dataclass
class CallOutcome:
    kind: OutcomeKind
    value: Any = None
    status_code: Optional[int] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.OK


RETRYABLE_KINDS = frozenset({
    OutcomeKind.RATE_LIMITED,
    OutcomeKind.UNAVAILABLE,
    OutcomeKind.TRANSIENT,
    OutcomeKind.MALFORMED,
})


def _default_retryable(outcome: CallOutcome) -> bool:
    return outcome.kind in RETRYABLE_KINDS


def _default_terminal(outcome: CallOutcome) -> bool:
    return outcome.kind == OutcomeKind.TERMINAL


def exponential_backoff(base: float = 1.0, maximum: float = 60.0):
    """Backoff schedule: base * 2^(n-1), capped at maximum."""

    def schedule(attempt_number: int, outcome: Optional[CallOutcome]) -> float:
        return min(base * (2 ** (attempt_number - 1)), maximum)

    return schedule


@dataclass
class RetryPolicy:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    backoff: Callable[[int, Optional[CallOutcome]], float] = field(
        default_factory=exponential_backoff
    )
    is_retryable: Callable[[CallOutcome], bool] = _default_retryable
    is_terminal: Callable[[CallOutcome], bool] = _default_terminal
    retry_exceptions: Tuple[type, ...] = (Exception,)
    reraise: bool = False


async def resilient_call(
    attempt: Callable[[], Awaitable[CallOutcome]],
    policy: RetryPolicy,
    label: str = "call",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Optional[CallOutcome]:
    """
    Run attempt() until it produces a non-retryable outcome or attempts run out.

    Args:
        attempt: Coroutine factory performing one external call
        policy: Retry policy
        label: Name used in log lines
        sleep: Sleep coroutine (injectable for tests)

    Returns:
        The last CallOutcome, or None when every attempt raised and the
        policy does not re-raise.
    """

    def should_retry_outcome(outcome: CallOutcome) -> bool:
        if policy.is_terminal(outcome):
            logger.warning(f"{label}: terminal outcome {outcome.kind.value}, not retrying ({outcome.detail})")
            return False
        return policy.is_retryable(outcome)

    def wait(retry_state: RetryCallState) -> float:
        result = None
        if retry_state.outcome is not None and not retry_state.outcome.failed:
            result = retry_state.outcome.result()
        return max(0.0, policy.backoff(retry_state.attempt_number, result))

    def on_exhausted(retry_state: RetryCallState) -> Optional[CallOutcome]:
        outcome = retry_state.outcome
        if outcome.failed:
            exc = outcome.exception()
            logger.error(f"{label}: giving up after {retry_state.attempt_number} attempt(s): {exc}")
            if policy.reraise:
                raise exc
            return None
        result = outcome.result()
        logger.error(
            f"{label}: giving up after {retry_state.attempt_number} attempt(s), "
            f"last outcome {result.kind.value}"
        )
        return result

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait,
        retry=(
            retry_if_exception_type(policy.retry_exceptions)
            | retry_if_result(should_retry_outcome)
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=on_exhausted,
        sleep=sleep,
    )

    # tenacity awaits only callables that are themselves coroutine functions
    async def run() -> CallOutcome:
        return await attempt()

    return await retrying(run)
