"""Tests for the retry decorator."""

import pytest

from defi_credit_ledger.core.errors import PriceUnavailable
from defi_credit_ledger.core.retry import RetryConfig, with_retry


class TestRetry:
    """Tests for the retry decorator."""

    def test_retries_until_success(self):
        """Test retryable failures are retried."""
        calls = []

        @with_retry(RetryConfig(max_retries=3, base_delay=0, retry_on=(PriceUnavailable,)))
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise PriceUnavailable("try again")
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3

    def test_gives_up_after_max_retries(self):
        """Test the last failure propagates."""
        calls = []

        @with_retry(RetryConfig(max_retries=2, base_delay=0, retry_on=(PriceUnavailable,)))
        def always_fails():
            calls.append(1)
            raise PriceUnavailable("down")

        with pytest.raises(PriceUnavailable):
            always_fails()
        assert len(calls) == 3

    def test_other_errors_propagate_immediately(self):
        """Test exceptions outside retry_on are not retried."""
        calls = []

        @with_retry(RetryConfig(max_retries=5, base_delay=0, retry_on=(PriceUnavailable,)))
        def broken():
            calls.append(1)
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            broken()
        assert len(calls) == 1

    def test_backoff_delay(self):
        """Test exponential backoff is capped."""
        config = RetryConfig(base_delay=1.0, max_delay=5.0, exponential_base=2.0)

        assert [config.get_delay(attempt) for attempt in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]
