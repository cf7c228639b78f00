"""
Unit tests for request signing and nonce generation.
"""

import asyncio
import hashlib
import hmac
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from bfx.exchange.auth import (
    API_KEY_HEADER,
    NONCE_HEADER,
    SIGNATURE_HEADER,
    NonceGenerator,
    build_auth_headers,
    sign_request,
)


class TestSignRequest:
    """Tests for the HMAC signature."""

    def test_signature_matches_hmac_sha384(self):
        """The signature covers the prefixed path, the nonce and the body bytes."""
        body = b'{"type":"EXCHANGE LIMIT"}'
        signature = sign_request("secret", "auth/w/order/submit", 1700000000000000, body)

        expected = hmac.new(
            b"secret",
            b"/api/v2/auth/w/order/submit1700000000000000" + body,
            hashlib.sha384,
        ).hexdigest()

        assert signature == expected
        assert len(signature) == 96
        assert all(c in "0123456789abcdef" for c in signature)

    def test_signature_is_deterministic(self):
        first = sign_request("secret", "auth/r/wallets", 42, b"")
        second = sign_request("secret", "auth/r/wallets", 42, b"")

        assert first == second

    @pytest.mark.parametrize(
        "secret, path, nonce, body",
        [
            ("other", "auth/r/wallets", 42, b""),
            ("secret", "auth/r/orders", 42, b""),
            ("secret", "auth/r/wallets", 43, b""),
            ("secret", "auth/r/wallets", 42, b"{}"),
        ],
    )
    def test_signature_changes_with_each_input(self, secret, path, nonce, body):
        baseline = sign_request("secret", "auth/r/wallets", 42, b"")

        assert sign_request(secret, path, nonce, body) != baseline

    def test_build_auth_headers(self):
        """Test the header set of an authenticated request."""
        signature, headers = build_auth_headers("key", "secret", "auth/r/wallets", 42, b"")

        assert headers[API_KEY_HEADER] == "key"
        assert headers[NONCE_HEADER] == "42"
        assert headers[SIGNATURE_HEADER] == signature
        assert headers["Content-Type"] == "application/json"
        assert signature == sign_request("secret", "auth/r/wallets", 42, b"")


class TestNonceGenerator:
    """Tests for the nonce generator."""

    def test_defaults_to_current_microseconds(self):
        generator = NonceGenerator()

        # 2020-01-01 in microseconds
        assert generator.next() > 1_577_836_800_000_000

    def test_sequential_values_strictly_increase(self):
        generator = NonceGenerator(seed=1000)
        values = [generator.next() for _ in range(10_000)]

        assert values[0] >= 1000
        assert all(b > a for a, b in zip(values, values[1:]))

    @pytest.mark.asyncio
    async def test_unique_across_concurrent_tasks(self):
        generator = NonceGenerator()

        async def take():
            return generator.next()

        values = await asyncio.gather(*(take() for _ in range(10_000)))

        assert len(set(values)) == 10_000

    def test_unique_across_threads(self):
        generator = NonceGenerator()

        def take_many(_):
            return [generator.next() for _ in range(1250)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            batches = list(pool.map(take_many, range(8)))

        values = [value for batch in batches for value in batch]
        assert len(values) == 10_000
        assert len(set(values)) == 10_000
        for batch in batches:
            assert all(b > a for a, b in zip(batch, batch[1:]))

    def test_clock_going_backwards(self):
        """A clock reading earlier than the last one still yields a larger nonce."""
        readings = [10_000_000, 20_000_000, 5_000_000, 5_000_000]
        with patch("bfx.exchange.auth.time.monotonic_ns", side_effect=readings):
            generator = NonceGenerator(seed=1000)
            first = generator.next()
            second = generator.next()
            third = generator.next()

        assert first == 1000 + 10_000
        assert second == first + 1
        assert third == second + 1

    def test_advance_past(self):
        generator = NonceGenerator(seed=1000)
        generator.next()

        generator.advance_past(1_700_000_000_000_000)

        assert generator.next() > 1_700_000_000_000_000

    def test_advance_past_never_moves_backwards(self):
        generator = NonceGenerator(seed=5_000_000)
        issued = generator.next()

        generator.advance_past(10)

        assert generator.last == issued
        assert generator.next() > issued
