"""
HTTP transport for the Bitfinex API.

The dispatcher sends a single HTTP exchange and classifies what came back.
It knows how Bitfinex reports errors on the wire, but not what any
particular error means.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .errors import BitfinexError, ExchangeError, TransportFailure

logger = logging.getLogger(__name__)

USER_AGENT = "bfx-python"


@dataclass
class RawResponse:
    """Result of one HTTP attempt."""

    status_code: Optional[int] = None
    payload: Any = None
    error: Optional[BitfinexError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_error(payload: Any) -> Optional[ExchangeError]:
    """
    Extract an error from a decoded Bitfinex response body.

    Bitfinex reports errors as ``["error", <code>, "<message>"]``; some
    endpoints use ``{"error": "<message>"}`` instead.

    Args:
        payload: Decoded JSON body

    Returns:
        ExchangeError if the body is an error envelope, otherwise None
    """
    if isinstance(payload, list) and payload and payload[0] == "error":
        code = payload[1] if len(payload) > 1 else None
        message = payload[2] if len(payload) > 2 else ""
        try:
            code = int(code) if code is not None else None
        except (TypeError, ValueError):
            message = f"{code} {message}".strip()
            code = None
        return ExchangeError(code, str(message))

    if isinstance(payload, dict) and "error" in payload:
        message = payload.get("message") or payload["error"]
        code = payload.get("code")
        return ExchangeError(code if isinstance(code, int) else None, str(message))

    return None


class Dispatcher:
    """
    Sends HTTP requests and classifies the responses.

    A new ``httpx.AsyncClient`` is opened per attempt, so the timeout applies
    to each attempt separately.
    """

    def __init__(
        self,
        request_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            request_timeout: Timeout for each HTTP attempt in seconds
            transport: Optional httpx transport (used to stub the network in tests)
        """
        self.request_timeout = request_timeout
        self._transport = transport

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> RawResponse:
        """
        Send one HTTP request.

        Args:
            method: HTTP method (GET or POST)
            url: Absolute URL
            headers: Request headers
            body: Exact body bytes to transmit
            params: Query parameters

        Returns:
            Classified response; never raises for network or protocol errors
        """
        request_headers = {"User-Agent": USER_AGENT}
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {url} params={params}")

        try:
            async with httpx.AsyncClient(
                timeout=self.request_timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method,
                    url,
                    content=body or None,
                    params=params or None,
                    headers=request_headers,
                )
        except httpx.TimeoutException as e:
            logger.error(f"Request to {url} timed out: {str(e)}")
            return RawResponse(error=TransportFailure(f"timeout: {str(e) or url}"))
        except httpx.HTTPError as e:
            logger.error(f"Request error for {url}: {str(e)}")
            return RawResponse(
                error=TransportFailure(f"{type(e).__name__}: {str(e) or url}")
            )

        return self._classify(response)

    def _classify(self, response: httpx.Response) -> RawResponse:
        status = response.status_code

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.error(f"Unparseable response (HTTP {status}): {response.text[:200]}")
            return RawResponse(
                status_code=status,
                error=TransportFailure(
                    f"HTTP {status}: unparseable response body {response.text[:200]!r}"
                ),
            )

        error = parse_error(payload)
        if error is None and status >= 400:
            error = ExchangeError(status, response.text)

        if error is not None:
            return RawResponse(status_code=status, payload=payload, error=error)

        return RawResponse(status_code=status, payload=payload)
