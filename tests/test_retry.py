"""Tests for retry utilities."""

import pytest

from lyryc.exceptions import RequestCancelled
from lyryc.utils.retry import (
    DEFAULT_MAX_DELAY,
    exponential_backoff,
    linear_backoff,
    retry_request,
)


class TestBackoff:
    def test_linear(self):
        delay_for = linear_backoff(1.0)
        assert [delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]

    def test_exponential(self):
        delay_for = exponential_backoff(1.0, 2.0)
        assert [delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_exponential_is_capped(self):
        delay_for = exponential_backoff(10.0, 2.0, max_delay=5.0)
        assert delay_for(1) == 5.0
        assert exponential_backoff()(50) == DEFAULT_MAX_DELAY


class TestRetryRequest:
    def test_success_on_first_attempt(self):
        """Function succeeds immediately, no retries needed."""
        sleeps = []
        assert retry_request(lambda x: x * 2, 21, sleep=sleeps.append) == 42
        assert sleeps == []

    def test_success_after_retries(self):
        """Function fails twice then succeeds."""
        attempts = []
        sleeps = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("reset")
            return "ok"

        result = retry_request(
            flaky, delay_for=linear_backoff(0.5), exceptions=(ConnectionError,),
            sleep=sleeps.append,
        )
        assert result == "ok"
        assert sleeps == [0.5, 1.0]

    def test_all_retries_exhausted(self):
        """The last exception is re-raised once retries run out."""
        sleeps = []

        def always_fails():
            raise TimeoutError("slow")

        with pytest.raises(TimeoutError):
            retry_request(always_fails, max_retries=2, sleep=sleeps.append)
        assert len(sleeps) == 2

    def test_cancelled_before_backoff(self):
        """A cancellation seen after a failure stops further attempts."""
        attempts = []
        sleeps = []

        def fails():
            attempts.append(1)
            raise ConnectionError("reset")

        with pytest.raises(RequestCancelled):
            retry_request(
                fails, max_retries=3, exceptions=(ConnectionError,),
                sleep=sleeps.append, should_cancel=lambda: len(attempts) >= 2,
            )
        assert len(attempts) == 2
        assert sleeps == [1.0]

    def test_cancelled_before_first_attempt(self):
        calls = []
        with pytest.raises(RequestCancelled):
            retry_request(calls.append, 1, should_cancel=lambda: True)
        assert calls == []

    def test_unlisted_exception_not_retried(self):
        """Exceptions outside the retry list propagate immediately."""
        sleeps = []

        def wrong_kind():
            raise KeyError("nope")

        with pytest.raises(KeyError):
            retry_request(wrong_kind, exceptions=(ValueError,), sleep=sleeps.append)
        assert sleeps == []
