"""
Pytest configuration file.

This module contains fixtures that can be used across all test files.
"""

import pytest
import httpx
from typer.testing import CliRunner

from bfx.exchange.auth import NonceGenerator
from bfx.exchange.client import BitfinexClient

API_KEY = "test_key"
API_SECRET = "test_secret"


class MockExchange:
    """
    Scripted stand-in for the Bitfinex API.

    Responses are served in the order they were queued; the last one keeps
    being served once the queue is down to a single entry. Every request is
    recorded in ``requests``.
    """

    def __init__(self):
        self.requests = []
        self._responses = []
        self.transport = httpx.MockTransport(self._handle)

    def queue(self, payload=None, status_code=200, content=None, raises=None):
        self._responses.append((payload, status_code, content, raises))
        return self

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if not self._responses:
            return httpx.Response(500, json=["error", 99999, "no response queued"])

        if len(self._responses) > 1:
            payload, status_code, content, raises = self._responses.pop(0)
        else:
            payload, status_code, content, raises = self._responses[0]

        if raises is not None:
            raise raises(f"mock {raises.__name__}", request=request)
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=payload)


@pytest.fixture
def exchange():
    """Create a scripted exchange."""
    return MockExchange()


@pytest.fixture
def nonce_generator():
    """Create a nonce generator with a small, predictable seed."""
    return NonceGenerator(seed=1_000_000)


@pytest.fixture
def client(exchange, nonce_generator):
    """Create a BitfinexClient wired to the scripted exchange."""
    return BitfinexClient(
        api_key=API_KEY,
        api_secret=API_SECRET,
        request_timeout=1.0,
        max_attempts=5,
        retry_delay=0,
        transport=exchange.transport,
        nonce_generator=nonce_generator,
    )


@pytest.fixture
def runner():
    """Create a CLI runner for testing."""
    return CliRunner()
