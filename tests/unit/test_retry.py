"""Tests for the retry-with-backoff combinator."""
import pytest

from docchat.retry import retry_with_backoff


class Flaky:
    """Fails a fixed number of times, then returns a value."""

    def __init__(self, failures: int, error: Exception = None):
        self.failures = failures
        self.error = error or RuntimeError("transient")
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


async def test_succeeds_on_third_attempt_with_doubling_delays(sleep_recorder):
    fn = Flaky(failures=2)

    result = await retry_with_backoff(fn, max_attempts=3, base_delay=1.0, sleep=sleep_recorder)

    assert result == "ok"
    assert fn.calls == 3
    assert sleep_recorder.delays == [1.0, 2.0]
    assert sum(sleep_recorder.delays) >= 3.0


async def test_first_success_does_not_sleep(sleep_recorder):
    fn = Flaky(failures=0)

    assert await retry_with_backoff(fn, sleep=sleep_recorder) == "ok"
    assert sleep_recorder.delays == []


async def test_exhausted_attempts_raise_last_error(sleep_recorder):
    error = RuntimeError("still failing")
    fn = Flaky(failures=5, error=error)

    with pytest.raises(RuntimeError) as exc_info:
        await retry_with_backoff(fn, max_attempts=3, base_delay=1.0, sleep=sleep_recorder)

    assert exc_info.value is error
    assert fn.calls == 3
    assert sleep_recorder.delays == [1.0, 2.0]


async def test_terminal_error_is_not_retried(sleep_recorder):
    fn = Flaky(failures=5, error=PermissionError("quota"))

    with pytest.raises(PermissionError):
        await retry_with_backoff(
            fn,
            is_retryable=lambda e: not isinstance(e, PermissionError),
            sleep=sleep_recorder,
        )

    assert fn.calls == 1
    assert sleep_recorder.delays == []
