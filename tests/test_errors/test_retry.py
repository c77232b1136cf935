"""Tests for the retry policy, classification, and tenacity wiring."""

import random

import httpx
import pydantic
import pytest

from paperless_ocr.errors.exceptions import (
    AuthenticationError,
    ConfigurationError,
    NetworkError,
    PaperlessOcrError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from paperless_ocr.errors.retry import (
    GiveUp,
    Retry,
    RetryPolicy,
    build_retrying,
    classify_status,
    classify_transport_error,
    error_from_response,
    extract_error_message,
)
from paperless_ocr.types import ErrorKind


class TestRetryPolicyConstruction:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay == 1.0
        assert policy.max_delay == 10.0
        assert policy.exponential_backoff is True
        assert policy.jitter_factor == 0.1
        assert policy.max_attempts == 4

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_delay": 5.0, "max_delay": 1.0},
            {"base_delay": -1.0},
            {"jitter_factor": 1.5},
            {"jitter_factor": -0.1},
            {"max_retries": -1},
            {"max_retries": 21},
        ],
    )
    def test_invalid_bounds_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            RetryPolicy(**kwargs)

    def test_immutable(self):
        policy = RetryPolicy()
        with pytest.raises(pydantic.ValidationError):
            policy.max_retries = 5


class TestBaseWait:
    def test_exponential(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=10.0, jitter_factor=0.0)
        assert [policy.base_wait(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 10.0]

    def test_constant(self):
        policy = RetryPolicy(exponential_backoff=False, base_delay=2.0, jitter_factor=0.0)
        assert policy.base_wait(1) == 2.0
        assert policy.base_wait(7) == 2.0

    def test_large_attempt_numbers_capped(self):
        policy = RetryPolicy(max_retries=20, jitter_factor=0.0)
        assert policy.base_wait(10_000) == policy.max_delay


class TestComputeWait:
    def test_no_jitter_is_deterministic(self):
        policy = RetryPolicy(jitter_factor=0.0)
        assert policy.compute_wait(2) == 2.0

    def test_jitter_bounds(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=10.0, jitter_factor=0.1)
        rng = random.Random(42)
        for n in range(1, 5):
            base = policy.base_wait(n)
            for _ in range(200):
                wait = policy.compute_wait(n, rng)
                assert base * 0.9 - 1e-9 <= wait <= min(base * 1.1, policy.max_delay) + 1e-9

    def test_never_exceeds_max_delay(self):
        policy = RetryPolicy(base_delay=10.0, max_delay=10.0, jitter_factor=1.0)
        rng = random.Random(0)
        assert all(0.0 <= policy.compute_wait(3, rng) <= 10.0 for _ in range(200))

    def test_seeded_rng_reproducible(self):
        policy = RetryPolicy()
        a = [policy.compute_wait(n, random.Random(7)) for n in range(1, 4)]
        b = [policy.compute_wait(n, random.Random(7)) for n in range(1, 4)]
        assert a == b


class TestDecide:
    def test_retry_for_transient(self):
        policy = RetryPolicy(jitter_factor=0.0)
        assert policy.decide(1, ErrorKind.SERVER) == Retry(1.0)
        assert policy.decide(2, ErrorKind.RATE_LIMIT) == Retry(2.0)
        assert policy.decide(3, ErrorKind.NETWORK) == Retry(4.0)

    def test_give_up_after_max_retries(self):
        policy = RetryPolicy(max_retries=3)
        assert isinstance(policy.decide(4, ErrorKind.SERVER), GiveUp)

    @pytest.mark.parametrize(
        "kind",
        [
            ErrorKind.VALIDATION,
            ErrorKind.AUTHENTICATION,
            ErrorKind.CONFIGURATION,
            ErrorKind.FILE_IO,
            ErrorKind.CACHE,
            ErrorKind.INTERNAL,
        ],
    )
    def test_never_retried(self, kind):
        assert isinstance(RetryPolicy().decide(1, kind), GiveUp)

    def test_zero_retries(self):
        assert isinstance(RetryPolicy(max_retries=0).decide(1, ErrorKind.SERVER), GiveUp)


class TestClassifyStatus:
    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (401, ErrorKind.AUTHENTICATION),
            (403, ErrorKind.AUTHENTICATION),
            (429, ErrorKind.RATE_LIMIT),
            (408, ErrorKind.NETWORK),
            (400, ErrorKind.VALIDATION),
            (413, ErrorKind.VALIDATION),
            (500, ErrorKind.SERVER),
            (503, ErrorKind.SERVER),
            (302, ErrorKind.INTERNAL),
        ],
    )
    def test_mapping(self, status, kind):
        assert classify_status(status) is kind


class TestErrorFromResponse:
    def test_nested_error_message(self):
        err = error_from_response(429, '{"error": {"message": "Too many requests"}}')
        assert isinstance(err, RateLimitError)
        assert err.message == "HTTP 429: Too many requests"
        assert err.http_status == 429

    def test_plain_text_body(self):
        err = error_from_response(502, "Bad Gateway")
        assert isinstance(err, ServerError)
        assert "Bad Gateway" in err.message

    def test_auth(self):
        assert isinstance(error_from_response(401, '{"message": "no"}'), AuthenticationError)

    def test_validation(self):
        err = error_from_response(422, '{"detail": "bad model"}')
        assert isinstance(err, ValidationError)
        assert "bad model" in err.message

    def test_extract_error_message_fallbacks(self):
        assert extract_error_message('{"error": "boom"}') == "boom"
        assert extract_error_message("") == "Unknown error"
        assert extract_error_message("[1, 2]") == "[1, 2]"


class TestClassifyTransportError:
    def test_timeout(self):
        request = httpx.Request("POST", "https://api.mistral.ai/v1/ocr")
        err = classify_transport_error(httpx.ReadTimeout("slow", request=request))
        assert isinstance(err, NetworkError)
        assert "timed out" in err.message

    def test_connect_error(self):
        request = httpx.Request("POST", "https://api.mistral.ai/v1/ocr")
        err = classify_transport_error(httpx.ConnectError("refused", request=request))
        assert isinstance(err, NetworkError)
        assert err.retryable

    def test_decoding_error(self):
        request = httpx.Request("POST", "https://api.mistral.ai/v1/ocr")
        err = classify_transport_error(httpx.DecodingError("bad gzip", request=request))
        assert isinstance(err, NetworkError)
        assert "decode" in err.message


class TestBuildRetrying:
    async def test_waits_follow_policy(self):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        retried = []
        retrying = build_retrying(
            RetryPolicy(jitter_factor=0.0),
            sleep=fake_sleep,
            on_retry=lambda exc, attempt, wait: retried.append((attempt, wait)),
        )
        calls = 0
        async for attempt in retrying:
            with attempt:
                calls += 1
                if calls < 4:
                    raise ServerError("HTTP 503: down")

        assert calls == 4
        assert sleeps == [1.0, 2.0, 4.0]
        assert retried == [(1, 1.0), (2, 2.0), (3, 4.0)]

    async def test_reraises_last_error(self):
        async def fake_sleep(seconds):
            pass

        retrying = build_retrying(RetryPolicy(max_retries=2), sleep=fake_sleep)
        calls = 0
        with pytest.raises(NetworkError):
            async for attempt in retrying:
                with attempt:
                    calls += 1
                    raise NetworkError("down")
        assert calls == 3

    async def test_non_retryable_stops_immediately(self):
        async def fake_sleep(seconds):
            raise AssertionError("should not sleep")

        retrying = build_retrying(RetryPolicy(), sleep=fake_sleep)
        calls = 0
        with pytest.raises(AuthenticationError):
            async for attempt in retrying:
                with attempt:
                    calls += 1
                    raise AuthenticationError("HTTP 401")
        assert calls == 1

    async def test_foreign_exceptions_not_retried(self):
        async def fake_sleep(seconds):
            raise AssertionError("should not sleep")

        retrying = build_retrying(RetryPolicy(), sleep=fake_sleep)
        with pytest.raises(KeyError):
            async for attempt in retrying:
                with attempt:
                    raise KeyError("x")

    def test_base_error_is_not_retryable(self):
        assert not PaperlessOcrError("x").retryable
