"""Tests for the resilient call combinator and the call rate limiter."""

import asyncio

import pytest

from pinpointer.utils.rate_limit import CallRateLimiter
from pinpointer.utils.retry import (
    CallOutcome,
    OutcomeKind,
    RetryPolicy,
    exponential_backoff,
    resilient_call,
)


class ScriptedAttempt:
    """Attempt function replaying a list of outcomes (or exceptions)."""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.calls = 0

    async def __call__(self):
        step = self.steps[min(self.calls, len(self.steps) - 1)]
        self.calls += 1
        if isinstance(step, Exception):
            raise step
        return step


OK = CallOutcome(OutcomeKind.OK, value={"overall_score": 70})


class TestResilientCall:

    @pytest.mark.asyncio
    async def test_success_first_try(self, sleeper):
        attempt = ScriptedAttempt(OK)
        result = await resilient_call(attempt, RetryPolicy(max_attempts=3), sleep=sleeper)

        assert result is OK
        assert attempt.calls == 1
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_plain_factory_returning_coroutine(self, sleeper):
        attempt = ScriptedAttempt(CallOutcome(OutcomeKind.UNAVAILABLE), OK)
        result = await resilient_call(lambda: attempt(), RetryPolicy(max_attempts=3), sleep=sleeper)

        assert result is OK
        assert attempt.calls == 2

    @pytest.mark.asyncio
    async def test_retryable_outcomes_retried_with_backoff(self, sleeper):
        attempt = ScriptedAttempt(
            CallOutcome(OutcomeKind.TRANSIENT),
            CallOutcome(OutcomeKind.MALFORMED),
            OK,
        )
        policy = RetryPolicy(max_attempts=5, backoff=exponential_backoff(5, 45))
        result = await resilient_call(attempt, policy, sleep=sleeper)

        assert result.ok
        assert attempt.calls == 3
        assert sleeper.calls == [5.0, 10.0]

    @pytest.mark.asyncio
    async def test_terminal_outcome_not_retried(self, sleeper):
        blocked = CallOutcome(OutcomeKind.TERMINAL, detail="blocked: SAFETY")
        attempt = ScriptedAttempt(blocked, OK)
        result = await resilient_call(attempt, RetryPolicy(max_attempts=5), sleep=sleeper)

        assert result is blocked
        assert attempt.calls == 1

    @pytest.mark.asyncio
    async def test_failed_outcome_not_retried(self, sleeper):
        failed = CallOutcome(OutcomeKind.FAILED, status_code=400)
        attempt = ScriptedAttempt(failed, OK)
        result = await resilient_call(attempt, RetryPolicy(max_attempts=5), sleep=sleeper)

        assert result is failed
        assert attempt.calls == 1

    @pytest.mark.asyncio
    async def test_exhaustion_returns_last_outcome(self, sleeper):
        attempt = ScriptedAttempt(CallOutcome(OutcomeKind.UNAVAILABLE, status_code=503))
        result = await resilient_call(attempt, RetryPolicy(max_attempts=3), sleep=sleeper)

        assert result.kind == OutcomeKind.UNAVAILABLE
        assert attempt.calls == 3
        assert len(sleeper.calls) == 2

    @pytest.mark.asyncio
    async def test_outcome_aware_backoff(self, sleeper):
        def schedule(attempt_number, outcome):
            return 8.0 + 5.0 * (attempt_number - 1) if outcome.kind == OutcomeKind.RATE_LIMITED else 1.0

        attempt = ScriptedAttempt(
            CallOutcome(OutcomeKind.RATE_LIMITED),
            CallOutcome(OutcomeKind.RATE_LIMITED),
            OK,
        )
        await resilient_call(attempt, RetryPolicy(max_attempts=5, backoff=schedule), sleep=sleeper)

        assert sleeper.calls == [8.0, 13.0]

    @pytest.mark.asyncio
    async def test_exceptions_retried_then_absent(self, sleeper):
        attempt = ScriptedAttempt(ConnectionError("reset"))
        policy = RetryPolicy(max_attempts=2, retry_exceptions=(ConnectionError,))
        result = await resilient_call(attempt, policy, sleep=sleeper)

        assert result is None
        assert attempt.calls == 2

    @pytest.mark.asyncio
    async def test_exceptions_reraised_when_requested(self, sleeper):
        attempt = ScriptedAttempt(ConnectionError("reset"))
        policy = RetryPolicy(max_attempts=2, retry_exceptions=(ConnectionError,), reraise=True)

        with pytest.raises(ConnectionError):
            await resilient_call(attempt, policy, sleep=sleeper)
        assert attempt.calls == 2

    @pytest.mark.asyncio
    async def test_exception_recovers(self, sleeper):
        attempt = ScriptedAttempt(ConnectionError("reset"), OK)
        policy = RetryPolicy(max_attempts=3, retry_exceptions=(ConnectionError,))

        assert await resilient_call(attempt, policy, sleep=sleeper) is OK

    @pytest.mark.asyncio
    async def test_unlisted_exception_propagates(self, sleeper):
        attempt = ScriptedAttempt(KeyError("bug"))
        policy = RetryPolicy(max_attempts=3, retry_exceptions=(ConnectionError,))

        with pytest.raises(KeyError):
            await resilient_call(attempt, policy, sleep=sleeper)
        assert attempt.calls == 1


class FakeClock:

    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestCallRateLimiter:

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def limiter(self, clock):
        async def sleep(seconds):
            clock.now += seconds
        return CallRateLimiter(4.5, clock=clock, sleep=sleep)

    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self, limiter):
        assert await limiter.wait() == 0.0

    @pytest.mark.asyncio
    async def test_enforces_gap_between_calls(self, limiter, clock):
        await limiter.wait()
        clock.now += 1.0
        assert await limiter.wait() == pytest.approx(3.5)
        assert await limiter.wait() == pytest.approx(4.5)

    @pytest.mark.asyncio
    async def test_no_wait_after_gap_elapsed(self, limiter, clock):
        await limiter.wait()
        clock.now += 10.0
        assert await limiter.wait() == 0.0

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_spaced(self, clock):
        async def sleep(seconds):
            await asyncio.sleep(0)
            clock.now += seconds

        limiter = CallRateLimiter(4.5, clock=clock, sleep=sleep)
        issued = []

        async def caller():
            await limiter.wait()
            issued.append(clock())

        await asyncio.gather(*(caller() for _ in range(5)))

        gaps = [later - earlier for earlier, later in zip(issued, issued[1:])]
        assert len(issued) == 5
        assert gaps == pytest.approx([4.5] * 4)
