"""
Unit tests for the HTTP dispatcher and wire-level error parsing.
"""

import httpx
import pytest

from bfx.exchange.errors import ExchangeError, TransportFailure
from bfx.exchange.transport import USER_AGENT, Dispatcher, parse_error


class TestParseError:
    """Tests for recognizing error envelopes."""

    def test_array_envelope(self):
        error = parse_error(["error", 10020, "currency: invalid"])

        assert type(error) is ExchangeError
        assert error.code == 10020
        assert error.message == "currency: invalid"

    def test_array_envelope_without_message(self):
        error = parse_error(["error", 10114])

        assert error.code == 10114
        assert error.message == ""

    def test_array_envelope_with_non_numeric_code(self):
        error = parse_error(["error", "ERR_RATE_LIMIT", "slow down"])

        assert error.code is None
        assert error.message == "ERR_RATE_LIMIT slow down"

    def test_dict_envelope(self):
        error = parse_error({"error": "ERR_RATE_LIMIT"})

        assert error.code is None
        assert error.message == "ERR_RATE_LIMIT"

    @pytest.mark.parametrize("payload", [[1], [], [["error"]], {"result": 1}, "error", None])
    def test_non_error_payloads(self, payload):
        assert parse_error(payload) is None


class TestDispatcher:
    """Tests for sending one request and classifying the response."""

    @pytest.fixture
    def dispatcher(self, exchange):
        return Dispatcher(request_timeout=1.0, transport=exchange.transport)

    @pytest.mark.asyncio
    async def test_success(self, dispatcher, exchange):
        exchange.queue([[1, 2, 3]])

        response = await dispatcher.send(
            "GET", "https://api-pub.bitfinex.com/v2/book/tBTCUSD/P0", params={"len": 25}
        )

        assert response.ok
        assert response.status_code == 200
        assert response.payload == [[1, 2, 3]]

        request = exchange.requests[0]
        assert request.method == "GET"
        assert request.url.params["len"] == "25"
        assert request.headers["User-Agent"] == USER_AGENT
        assert request.content == b""

    @pytest.mark.asyncio
    async def test_sends_exact_body_bytes(self, dispatcher, exchange):
        exchange.queue([])
        body = b'{"b":1,"a":2}'

        await dispatcher.send(
            "POST",
            "https://api.bitfinex.com/v2/auth/r/wallets",
            headers={"bfx-nonce": "1"},
            body=body,
        )

        request = exchange.requests[0]
        assert request.content == body
        assert request.headers["bfx-nonce"] == "1"

    @pytest.mark.asyncio
    async def test_error_envelope(self, dispatcher, exchange):
        exchange.queue(["error", 10114, "nonce: small"], status_code=500)

        response = await dispatcher.send("POST", "https://api.bitfinex.com/v2/auth/r/wallets")

        assert not response.ok
        assert response.status_code == 500
        assert response.error.code == 10114
        assert response.error.message == "nonce: small"

    @pytest.mark.asyncio
    async def test_error_envelope_with_ok_status(self, dispatcher, exchange):
        exchange.queue(["error", 10020, "currency: invalid"])

        response = await dispatcher.send("GET", "https://api-pub.bitfinex.com/v2/ticker/fXYZ")

        assert response.error.code == 10020

    @pytest.mark.asyncio
    async def test_http_error_without_envelope(self, dispatcher, exchange):
        exchange.queue({"message": "not found"}, status_code=404)

        response = await dispatcher.send("GET", "https://api-pub.bitfinex.com/v2/nope")

        assert type(response.error) is ExchangeError
        assert response.error.code == 404

    @pytest.mark.asyncio
    async def test_unparseable_body(self, dispatcher, exchange):
        exchange.queue(content=b"<html>502 Bad Gateway</html>", status_code=502)

        response = await dispatcher.send("GET", "https://api-pub.bitfinex.com/v2/platform/status")

        assert isinstance(response.error, TransportFailure)
        assert "HTTP 502" in response.error.message

    @pytest.mark.asyncio
    async def test_connection_error(self, dispatcher, exchange):
        exchange.queue(raises=httpx.ConnectError)

        response = await dispatcher.send("GET", "https://api-pub.bitfinex.com/v2/platform/status")

        assert isinstance(response.error, TransportFailure)
        assert response.status_code is None
        assert "ConnectError" in response.error.message

    @pytest.mark.asyncio
    async def test_timeout(self, dispatcher, exchange):
        exchange.queue(raises=httpx.ReadTimeout)

        response = await dispatcher.send("GET", "https://api-pub.bitfinex.com/v2/platform/status")

        assert isinstance(response.error, TransportFailure)
        assert response.error.message.startswith("timeout:")
