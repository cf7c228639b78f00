"""
Unit tests for the nonce retry policy and error classification.
"""

import pytest
from unittest.mock import AsyncMock, patch

from bfx.exchange.auth import NonceGenerator
from bfx.exchange.errors import (
    ExchangeError,
    InvalidCurrency,
    InvalidKeyDigest,
    NonceTooSmall,
    OfferLimitExceeded,
    OtherExchangeError,
    RateLimited,
    RetriesExhausted,
    TemporarilyUnavailable,
    TransportFailure,
)
from bfx.exchange.retry import (
    RetryPolicy,
    classify_failure,
    extract_observed_nonce,
    is_nonce_too_small,
)
from bfx.exchange.transport import RawResponse, parse_error


def nonce_error(message="nonce: small"):
    return RawResponse(status_code=500, error=ExchangeError(10114, message))


def scripted(*responses):
    """Build an attempt function that replays ``responses`` and records nonces."""
    seen = []
    queue = list(responses)

    async def attempt(nonce):
        seen.append(nonce)
        return queue.pop(0) if len(queue) > 1 else queue[0]

    return attempt, seen


class TestNoncePredicate:
    """Tests for recognizing nonce rejections."""

    def test_literal_api_payload(self):
        """The exact payload the API sends on a stale nonce is recognized."""
        error = parse_error(["error", 10114, "nonce: small"])

        assert error is not None
        assert is_nonce_too_small(error)

    @pytest.mark.parametrize(
        "message", ["nonce: small", "Nonce too small", "NONCE: TOO SMALL", "nonce small"]
    )
    def test_message_variants(self, message):
        assert is_nonce_too_small(ExchangeError(None, message))

    @pytest.mark.parametrize(
        "code, message",
        [
            (10001, "invalid order size"),
            (10100, "apikey: digest invalid"),
            (None, "nonce: invalid"),
        ],
    )
    def test_other_errors(self, code, message):
        assert not is_nonce_too_small(ExchangeError(code, message))

    def test_extract_observed_nonce(self):
        assert extract_observed_nonce("nonce: small (1700000000000123 <= 1700000000000999)") == 1700000000000999
        assert extract_observed_nonce("nonce: small") is None
        assert extract_observed_nonce("code 10114") is None


class TestClassifyFailure:
    """Tests for mapping exchange errors onto the error taxonomy."""

    @pytest.mark.parametrize(
        "code, message, expected",
        [
            (10114, "nonce: small", NonceTooSmall),
            (10020, "currency: invalid", InvalidCurrency),
            (10100, "apikey: digest invalid", InvalidKeyDigest),
            (11000, "ready: temporarily unavailable", TemporarilyUnavailable),
            (11010, "ratelimit: error", RateLimited),
            (10001, "Invalid offer: too many active offers", OfferLimitExceeded),
            (10001, "invalid order size", OtherExchangeError),
            (None, "something else", OtherExchangeError),
        ],
    )
    def test_mapping(self, code, message, expected):
        classified = classify_failure(ExchangeError(code, message))

        assert type(classified) is expected
        assert classified.code == code
        assert classified.message == message

    def test_transport_failure_passes_through(self):
        failure = TransportFailure("timeout: read")

        assert classify_failure(failure) is failure

    def test_classified_error_passes_through(self):
        error = RateLimited(11010, "ratelimit: error")

        assert classify_failure(error) is error


class TestRetryPolicy:
    """Tests for the nonce-only retry policy."""

    @pytest.fixture
    def generator(self):
        return NonceGenerator(seed=1000)

    def test_rejects_zero_attempts(self, generator):
        with pytest.raises(ValueError):
            RetryPolicy(generator, max_attempts=0)

    @pytest.mark.asyncio
    async def test_success_first_try(self, generator):
        policy = RetryPolicy(generator, retry_delay=0)
        attempt, seen = scripted(RawResponse(status_code=200, payload=[1]))

        outcome = await policy.execute(attempt)

        assert outcome.ok
        assert outcome.payload == [1]
        assert outcome.attempts == 1
        assert outcome.nonces == seen

    @pytest.mark.asyncio
    async def test_bounded_by_max_attempts(self, generator):
        """A stale nonce every time ends after exactly max_attempts tries."""
        policy = RetryPolicy(generator, max_attempts=3, retry_delay=0)
        attempt, seen = scripted(nonce_error())

        outcome = await policy.execute(attempt)

        assert len(seen) == 3
        assert outcome.attempts == 3
        assert isinstance(outcome.error, RetriesExhausted)
        assert outcome.error.attempts == 3
        assert isinstance(outcome.error.last_error, NonceTooSmall)
        assert "gave up after 3 attempts" in outcome.error.message
        with pytest.raises(RetriesExhausted):
            outcome.unwrap()

    @pytest.mark.asyncio
    async def test_recovers_with_fresh_nonce(self, generator):
        policy = RetryPolicy(generator, retry_delay=0)
        attempt, seen = scripted(nonce_error(), RawResponse(status_code=200, payload=["ok"]))

        outcome = await policy.execute(attempt)

        assert outcome.ok
        assert outcome.payload == ["ok"]
        assert outcome.attempts == 2
        assert len(seen) == 2
        assert seen[1] > seen[0]

    @pytest.mark.asyncio
    async def test_other_exchange_errors_not_retried(self, generator):
        policy = RetryPolicy(generator, retry_delay=0)
        attempt, seen = scripted(
            RawResponse(status_code=500, error=ExchangeError(10001, "invalid order size"))
        )

        outcome = await policy.execute(attempt)

        assert len(seen) == 1
        assert type(outcome.error) is OtherExchangeError
        assert outcome.error.kind == "ExchangeError"

    @pytest.mark.asyncio
    async def test_transport_failures_not_retried(self, generator):
        policy = RetryPolicy(generator, retry_delay=0)
        failure = TransportFailure("timeout: read timed out")
        attempt, seen = scripted(RawResponse(error=failure))

        outcome = await policy.execute(attempt)

        assert len(seen) == 1
        assert outcome.error is failure

    @pytest.mark.asyncio
    async def test_skips_past_nonce_reported_by_exchange(self, generator):
        policy = RetryPolicy(generator, retry_delay=0)
        attempt, seen = scripted(
            nonce_error("nonce: small (last 1700000000000000)"),
            RawResponse(status_code=200, payload=[]),
        )

        await policy.execute(attempt)

        assert seen[0] < 1700000000000000 < seen[1]

    @pytest.mark.asyncio
    async def test_sleeps_between_attempts(self, generator):
        policy = RetryPolicy(generator, max_attempts=4, retry_delay=1.0)
        attempt, _ = scripted(nonce_error())

        with patch("bfx.exchange.retry.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            await policy.execute(attempt)

        assert mock_sleep.await_count == 3
        mock_sleep.assert_awaited_with(1.0)

    @pytest.mark.asyncio
    async def test_custom_predicate(self, generator):
        policy = RetryPolicy(
            generator, max_attempts=2, retry_delay=0, is_retryable=lambda e: e.code == 20060
        )
        attempt, seen = scripted(
            RawResponse(status_code=500, error=ExchangeError(20060, "maintenance"))
        )

        outcome = await policy.execute(attempt)

        assert len(seen) == 2
        assert isinstance(outcome.error, RetriesExhausted)
