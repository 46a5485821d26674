"""Tests for per-attempt timeouts.

Covers the timeout race, cancel-vs-abandon handling of the losing attempt,
and cancellation of the caller's task.
"""

from __future__ import annotations

import asyncio

import pytest

from retryx import TIMEOUT_MESSAGE, RetryPolicy, RetryTimeoutError, execute, retry


class SlowOperation:
    """Async operation that sleeps before returning, tracking its fate."""

    def __init__(self, *durations: float, value: str = "late", fail_with: Exception | None = None) -> None:
        self._durations = list(durations)
        self._value = value
        self._fail_with = fail_with
        self.calls = 0
        self.cancelled = 0
        self.finished = 0

    async def __call__(self) -> str:
        self.calls += 1
        duration = self._durations[min(self.calls, len(self._durations)) - 1]
        try:
            await asyncio.sleep(duration)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        self.finished += 1
        if self._fail_with is not None:
            raise self._fail_with
        return self._value


class TestTimeoutRace:
    """Which side of the race wins."""

    @pytest.mark.asyncio
    async def test_timeout_fails_attempt(self) -> None:
        op = SlowOperation(0.5)

        with pytest.raises(RetryTimeoutError, match=TIMEOUT_MESSAGE) as exc_info:
            await retry(op, timeout=0.05, max_attempts=1)

        assert op.calls == 1
        assert exc_info.value.timeout == 0.05
        assert isinstance(exc_info.value, TimeoutError)

    @pytest.mark.asyncio
    async def test_fast_attempt_beats_timer(self) -> None:
        op = SlowOperation(0.0, value="fast")

        assert await retry(op, timeout=1.0) == "fast"
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_timed_out_attempt_is_retried(self) -> None:
        op = SlowOperation(0.5, 0.0, value="second")
        seen: list[tuple[Exception, int]] = []

        result = await retry(op, timeout=0.05, max_attempts=2, on_retry=lambda e, n: seen.append((e, n)))

        assert result == "second"
        assert op.calls == 2
        assert len(seen) == 1
        assert isinstance(seen[0][0], RetryTimeoutError)
        assert seen[0][1] == 1

    @pytest.mark.asyncio
    async def test_timeout_failure_goes_through_predicate(self) -> None:
        op = SlowOperation(0.5, 0.0)

        with pytest.raises(RetryTimeoutError):
            await retry(
                op, timeout=0.05, max_attempts=3,
                retry_on=lambda e: not isinstance(e, RetryTimeoutError),
            )
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_every_attempt_timing_out_propagates_timeout(self) -> None:
        op = SlowOperation(0.5)

        with pytest.raises(RetryTimeoutError):
            await retry(op, timeout=0.02, max_attempts=3)
        assert op.calls == 3


class TestLosingAttempt:
    """What happens to an attempt that lost the race."""

    @pytest.mark.asyncio
    async def test_cancelled_by_default(self) -> None:
        op = SlowOperation(0.5)

        with pytest.raises(RetryTimeoutError):
            await retry(op, timeout=0.02, max_attempts=1)

        assert op.cancelled == 1
        assert op.finished == 0

    @pytest.mark.asyncio
    async def test_abandoned_when_cancellation_disabled(self) -> None:
        op = SlowOperation(0.1)

        with pytest.raises(RetryTimeoutError):
            await retry(op, timeout=0.02, max_attempts=1, cancel_on_timeout=False)
        await asyncio.sleep(0.2)

        assert op.cancelled == 0
        assert op.finished == 1

    @pytest.mark.asyncio
    async def test_abandoned_failure_is_retrieved(self, caplog: pytest.LogCaptureFixture) -> None:
        op = SlowOperation(0.05, fail_with=ValueError("too late"))
        policy = RetryPolicy(timeout=0.01, max_attempts=1, cancel_on_timeout=False)

        with caplog.at_level("DEBUG", logger="retryx.executor"):
            with pytest.raises(RetryTimeoutError):
                await execute(op, policy)
            await asyncio.sleep(0.15)

        assert op.finished == 1
        assert any("Timed-out attempt failed" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_cancelled_attempt_unwinds_before_next_attempt(self) -> None:
        events: list[str] = []
        calls = 0

        async def slow_cleanup() -> str:
            nonlocal calls
            calls += 1
            n = calls
            events.append(f"start{n}")
            if n > 1:
                return "ok"
            try:
                await asyncio.sleep(1.0)
            except asyncio.CancelledError:
                await asyncio.sleep(0.05)
                events.append(f"cleanup_done{n}")
                raise
            return "late"

        assert await retry(slow_cleanup, timeout=0.02, max_attempts=2) == "ok"
        assert events == ["start1", "cleanup_done1", "start2"]

    @pytest.mark.asyncio
    async def test_cancelled_attempt_cleanup_failure_is_retrieved(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        async def broken_cleanup() -> str:
            try:
                await asyncio.sleep(1.0)
            except asyncio.CancelledError:
                raise RuntimeError("cleanup broke") from None
            return "late"

        with caplog.at_level("DEBUG"):
            with pytest.raises(RetryTimeoutError):
                await retry(broken_cleanup, timeout=0.02, max_attempts=1)

        messages = [r.getMessage() for r in caplog.records]
        assert any("Timed-out attempt failed" in m and "cleanup broke" in m for m in messages)
        assert not any("never retrieved" in m for m in messages)


class TestCallerCancellation:
    """Cancelling the task that runs the retry sequence."""

    @pytest.mark.asyncio
    async def test_cancelling_caller_cancels_running_attempt(self) -> None:
        op = SlowOperation(5.0)
        runner = asyncio.create_task(retry(op, timeout=10.0, max_attempts=3))
        await asyncio.sleep(0.02)

        runner.cancel()
        with pytest.raises(asyncio.CancelledError):
            await runner
        await asyncio.sleep(0.01)

        assert op.calls == 1
        assert op.cancelled == 1

    @pytest.mark.asyncio
    async def test_cancelling_caller_during_wait_stops_sequence(self) -> None:
        calls = 0

        async def failing() -> None:
            nonlocal calls
            calls += 1
            raise ConnectionError("down")

        runner = asyncio.create_task(retry(failing, delay=5.0, max_attempts=3))
        await asyncio.sleep(0.02)

        runner.cancel()
        with pytest.raises(asyncio.CancelledError):
            await runner
        assert calls == 1
