"""Tests for the retry engine — attempts, classification, and backoff."""

from __future__ import annotations

import asyncio
import time

import pytest
from structlog.testing import capture_logs

from parafetch.core.errors import (
    ConfigError,
    ErrorCategory,
    NetworkError,
    ParafetchError,
    TransientError,
)
from parafetch.core.models import FetchResult, Source
from parafetch.core.settings import FetchSettings
from parafetch.execution.outcome import (
    AttemptOtherFailure,
    AttemptSuccess,
    AttemptTimeout,
    AttemptTransientFailure,
)
from parafetch.execution.retry import ExponentialBackoff, RetryEngine, RetryPolicy
from tests._support.fetch_doubles import api_from, hang, make_api

FAST_TIMEOUT = 0.05


# ── ExponentialBackoff ───────────────────────────────────────────────────


class TestExponentialBackoff:
    """Tests for the backoff delay calculation."""

    def test_default_configuration(self):
        backoff = ExponentialBackoff()
        assert backoff.base_delay == 0.1
        assert backoff.multiplier == 2.0
        assert backoff.max_delay is None
        assert backoff.jitter is False

    def test_doubles_per_attempt(self):
        backoff = ExponentialBackoff(base_delay=0.1)
        assert backoff.next_delay(0) == pytest.approx(0.1)
        assert backoff.next_delay(1) == pytest.approx(0.2)
        assert backoff.next_delay(2) == pytest.approx(0.4)
        assert backoff.next_delay(3) == pytest.approx(0.8)

    def test_delay_capped_at_max(self):
        backoff = ExponentialBackoff(base_delay=10.0, max_delay=30.0)
        assert backoff.next_delay(1) == 20.0
        assert backoff.next_delay(2) == 30.0
        assert backoff.next_delay(5) == 30.0

    def test_jitter_stays_in_range(self):
        backoff = ExponentialBackoff(base_delay=1.0, jitter=True, jitter_range=0.5)
        delays = [backoff.next_delay(1) for _ in range(20)]
        assert all(1.0 <= d <= 3.0 for d in delays)

    @pytest.mark.parametrize("kwargs", [{"base_delay": -1.0}, {"max_delay": -0.5}])
    def test_rejects_negative_delays(self, kwargs):
        with pytest.raises(ConfigError):
            ExponentialBackoff(**kwargs)


# ── RetryPolicy ──────────────────────────────────────────────────────────


class TestRetryPolicy:
    """Tests for policy validation and construction."""

    def test_defaults_match_constants(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.attempt_timeout == 5.0
        assert policy.backoff.base_delay == 0.1

    def test_rejects_zero_attempts(self):
        with pytest.raises(ConfigError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ConfigError, match="attempt_timeout"):
            RetryPolicy(attempt_timeout=0)

    def test_from_settings(self):
        settings = FetchSettings(max_attempts=5, attempt_timeout=1.5, backoff_base=0.25)
        policy = RetryPolicy.from_settings(settings)
        assert policy.max_attempts == 5
        assert policy.attempt_timeout == 1.5
        assert policy.backoff.base_delay == 0.25

    def test_with_max_attempts_keeps_other_fields(self):
        policy = RetryPolicy(attempt_timeout=2.0).with_max_attempts(7)
        assert policy.max_attempts == 7
        assert policy.attempt_timeout == 2.0


# ── Single attempt ───────────────────────────────────────────────────────


class TestAttempt:
    """Tests for RetryEngine.attempt classification."""

    @pytest.mark.asyncio
    async def test_success(self, source):
        engine = RetryEngine(make_api(return_value="payload"))
        outcome = await engine.attempt(source, 0)
        assert outcome == AttemptSuccess("payload")

    @pytest.mark.asyncio
    async def test_deadline_is_timeout(self, source):
        engine = RetryEngine(api_from(hang), RetryPolicy(attempt_timeout=FAST_TIMEOUT))
        outcome = await engine.attempt(source, 0)
        assert isinstance(outcome, AttemptTimeout)

    @pytest.mark.asyncio
    async def test_io_error_is_transient(self, source):
        engine = RetryEngine(make_api(side_effect=ConnectionError("Network error")))
        outcome = await engine.attempt(source, 0)
        assert isinstance(outcome, AttemptTransientFailure)

    @pytest.mark.asyncio
    async def test_unknown_error_is_other(self, source):
        engine = RetryEngine(make_api(side_effect=KeyError("boom")))
        outcome = await engine.attempt(source, 0)
        assert isinstance(outcome, AttemptOtherFailure)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, b"bytes", 42])
    async def test_non_str_payload_is_other(self, source, payload):
        engine = RetryEngine(make_api(return_value=payload))
        outcome = await engine.attempt(source, 0)
        assert isinstance(outcome, AttemptOtherFailure)
        assert isinstance(outcome.error, TypeError)


# ── fetch_with_retry ─────────────────────────────────────────────────────


class TestFetchWithRetry:
    """Tests for the full per-source state machine."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, source, recording_sleep):
        api = make_api(return_value="Data from url1")
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result == FetchResult("Source1", "Data from url1", True, 1)
        assert api.fetch.await_count == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retry_on_io_error_with_exponential_backoff(self, source, recording_sleep):
        api = make_api(side_effect=[
            ConnectionError("Network error"),
            ConnectionError("Network error"),
            "Success on third try",
        ])
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result.success
        assert result.data == "Success on third try"
        assert api.fetch.await_count == 3
        assert recording_sleep.delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_success_on_second_attempt(self, source, recording_sleep):
        api = make_api(side_effect=[OSError("reset"), "second"])
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result.data == "second"
        assert api.fetch.await_count == 2
        assert recording_sleep.delays == pytest.approx([0.1])

    @pytest.mark.asyncio
    async def test_fail_after_max_io_errors(self, source, recording_sleep):
        api = make_api(side_effect=ConnectionError("Network error"))
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result == FetchResult("Source1", None, False, 1)
        assert api.fetch.await_count == 3
        # No wait after the final attempt
        assert recording_sleep.delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_transient_error_subclass_backs_off(self, source, recording_sleep):
        api = make_api(side_effect=NetworkError("upstream overloaded"))
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert not result.success
        assert api.fetch.await_count == 3
        assert recording_sleep.delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_timeouts_retry_without_delay(self, source, recording_sleep):
        api = api_from(hang)
        engine = RetryEngine(api, RetryPolicy(attempt_timeout=FAST_TIMEOUT), sleep=recording_sleep)

        start = time.monotonic()
        result = await engine.fetch_with_retry(source)
        elapsed = time.monotonic() - start

        assert not result.success
        assert result.data is None
        assert api.fetch.await_count == 3
        assert recording_sleep.delays == []
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_capability_timeout_error_counts_as_timeout(self, source, recording_sleep):
        api = make_api(side_effect=[TimeoutError("upstream stalled"), "late but fine"])
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result.data == "late but fine"
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_timeout_then_io_error_uses_attempt_index(self, source, recording_sleep):
        calls = 0

        async def flaky(url: str) -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(3600)
            if calls == 2:
                raise ConnectionError("Network error")
            return "third time lucky"

        engine = RetryEngine(
            api_from(flaky), RetryPolicy(attempt_timeout=FAST_TIMEOUT), sleep=recording_sleep
        )

        result = await engine.fetch_with_retry(source)

        assert result.data == "third time lucky"
        # Timeout after attempt 0 waits nothing; I/O error after attempt 1 waits base * 2**1
        assert recording_sleep.delays == pytest.approx([0.2])

    @pytest.mark.asyncio
    async def test_unclassified_error_is_terminal(self, source, recording_sleep):
        api = make_api(side_effect=ValueError("malformed payload"))
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result == FetchResult("Source1", None, False, 1)
        assert api.fetch.await_count == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_max_attempts_override(self, source, recording_sleep):
        api = make_api(side_effect=ConnectionError("Network error"))
        engine = RetryEngine(api, sleep=recording_sleep)

        await engine.fetch_with_retry(source, max_attempts=5)

        assert api.fetch.await_count == 5
        assert recording_sleep.delays == pytest.approx([0.1, 0.2, 0.4, 0.8])

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self, source, recording_sleep):
        api = make_api(side_effect=ConnectionError("Network error"))
        engine = RetryEngine(api, RetryPolicy(max_attempts=1), sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert not result.success
        assert api.fetch.await_count == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_priority_copied_from_source(self, recording_sleep):
        engine = RetryEngine(make_api(return_value="x"), sleep=recording_sleep)
        result = await engine.fetch_with_retry(Source("neg", "u", -7))
        assert result.priority == -7
        assert result.source == "neg"

    @pytest.mark.asyncio
    async def test_on_retry_called_before_each_retry(self, source, recording_sleep):
        seen = []
        api = make_api(side_effect=ConnectionError("Network error"))
        engine = RetryEngine(
            api,
            sleep=recording_sleep,
            on_retry=lambda src, attempt, outcome, delay: seen.append((src.name, attempt, type(outcome), delay)),
        )

        await engine.fetch_with_retry(source)

        assert [s[:3] for s in seen] == [
            ("Source1", 0, AttemptTransientFailure),
            ("Source1", 1, AttemptTransientFailure),
        ]
        assert [s[3] for s in seen] == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff_propagates(self, source):
        api = make_api(side_effect=ConnectionError("Network error"))
        engine = RetryEngine(api, RetryPolicy(backoff=ExponentialBackoff(base_delay=60.0)))

        task = asyncio.create_task(engine.fetch_with_retry(source))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert api.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_cancellation_during_fetch_is_not_a_timeout(self, source):
        cancelled = asyncio.Event()

        async def slow(url: str) -> str:
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return "never"

        api = api_from(slow)
        engine = RetryEngine(api, RetryPolicy(attempt_timeout=30.0))

        task = asyncio.create_task(engine.fetch_with_retry(source))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert cancelled.is_set()
        assert api.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_none_payload_is_a_failed_result(self, source, recording_sleep):
        api = make_api(return_value=None)
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result == FetchResult("Source1", None, False, 1)
        assert api.fetch.await_count == 1


# ── Retryable flag on ParafetchError ─────────────────────────────────────


class TestRetryableFlag:
    """The engine honours ParafetchError.retryable and its category."""

    @pytest.mark.asyncio
    async def test_retryable_base_error_backs_off(self, source, recording_sleep):
        api = make_api(side_effect=[ParafetchError("rate limited", retryable=True), "ok"])
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert result.data == "ok"
        assert api.fetch.await_count == 2
        assert recording_sleep.delays == pytest.approx([0.1])

    @pytest.mark.asyncio
    async def test_non_retryable_transient_error_stops(self, source, recording_sleep):
        api = make_api(side_effect=TransientError("account closed", retryable=False))
        engine = RetryEngine(api, sleep=recording_sleep)

        result = await engine.fetch_with_retry(source)

        assert not result.success
        assert api.fetch.await_count == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retryable_timeout_category_retries_without_delay(self, source, recording_sleep):
        error = ParafetchError("upstream deadline", category=ErrorCategory.TIMEOUT, retryable=True)
        api = make_api(side_effect=error)
        engine = RetryEngine(api, sleep=recording_sleep)

        await engine.fetch_with_retry(source)

        assert api.fetch.await_count == 3
        assert recording_sleep.delays == []


# ── Failure logging ──────────────────────────────────────────────────────


class TestFailureLogging:
    """Structured fields on attempt failure and exhaustion events."""

    @pytest.mark.asyncio
    async def test_exhausted_event_carries_last_error(self, source, recording_sleep):
        engine = RetryEngine(make_api(side_effect=ConnectionError("Network error")), sleep=recording_sleep)

        with capture_logs() as logs:
            await engine.fetch_with_retry(source)

        [exhausted] = [e for e in logs if e["event"] == "fetch.exhausted"]
        assert exhausted["attempts"] == 3
        assert exhausted["attempt"] == 2
        assert exhausted["error"] == "Network error"
        assert exhausted["error_type"] == "ConnectionError"
        assert exhausted["category"] == "NETWORK"
        assert exhausted["url"] == "url1"

    @pytest.mark.asyncio
    async def test_attempt_events_per_failure_kind(self, source, recording_sleep):
        engine = RetryEngine(
            make_api(side_effect=[OSError("reset"), ValueError("malformed")]),
            sleep=recording_sleep,
        )

        with capture_logs() as logs:
            await engine.fetch_with_retry(source)

        events = [(e["event"], e.get("category"), e.get("attempt")) for e in logs]
        assert events == [
            ("fetch.attempt_io_error", "NETWORK", 0),
            ("fetch.attempt_failed", "UNKNOWN", 1),
        ]

    @pytest.mark.asyncio
    async def test_parafetch_error_annotated_with_attempt_context(self, source, recording_sleep):
        error = NetworkError("reset")
        error.context.metadata["status"] = 503
        engine = RetryEngine(make_api(side_effect=error), RetryPolicy(max_attempts=1), sleep=recording_sleep)

        with capture_logs() as logs:
            await engine.fetch_with_retry(source)

        assert error.context.url == "url1"
        assert error.context.attempt == 0
        io_error = next(e for e in logs if e["event"] == "fetch.attempt_io_error")
        assert io_error["status"] == 503
        assert io_error["attempt"] == 0
