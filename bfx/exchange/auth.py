"""
Authentication utilities for the Bitfinex v2 API.

This module provides the nonce generator and the functions that produce the
signature headers required by Bitfinex authenticated endpoints.
"""

import hmac
import hashlib
import threading
import time
from typing import Dict, Optional, Tuple

SIGNATURE_PREFIX = "/api/v2/"

API_KEY_HEADER = "bfx-apikey"
SIGNATURE_HEADER = "bfx-signature"
NONCE_HEADER = "bfx-nonce"


class NonceGenerator:
    """
    Generate strictly increasing microsecond nonces.

    The generator is seeded from the wall clock once and then advanced by
    monotonic clock time, so a wall-clock step backwards cannot produce a
    smaller value. Every value is also forced above the previous one, so
    callers in the same clock tick still get distinct nonces. Safe to share
    between asyncio tasks and threads.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the nonce generator.

        Args:
            seed: Starting nonce in microseconds (defaults to the current time)
        """
        if seed is None:
            seed = time.time_ns() // 1000
        self._seed = seed
        self._origin_ns = time.monotonic_ns()
        self._last = seed - 1
        self._lock = threading.Lock()

    def next(self) -> int:
        """Return a nonce strictly greater than every one issued before."""
        elapsed_us = (time.monotonic_ns() - self._origin_ns) // 1000
        with self._lock:
            candidate = self._seed + elapsed_us
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate

    def advance_past(self, observed: int) -> None:
        """
        Make sure the next nonce is greater than ``observed``.

        Args:
            observed: A nonce the exchange reports having already accepted
        """
        with self._lock:
            if observed > self._last:
                self._last = observed

    @property
    def last(self) -> int:
        return self._last


def sign_request(api_secret: str, path: str, nonce: int, body: bytes) -> str:
    """
    Generate the HMAC SHA384 signature for a Bitfinex authenticated request.

    Args:
        api_secret: The API secret key
        path: API path relative to ``/api/v2/`` (e.g. "auth/r/wallets")
        nonce: Nonce sent with the request
        body: Exact request body bytes (empty when there is no body)

    Returns:
        Lowercase hexadecimal signature string
    """
    message = f"{SIGNATURE_PREFIX}{path}{nonce}".encode("utf-8") + body

    return hmac.new(
        api_secret.encode("utf-8"), message, hashlib.sha384
    ).hexdigest()


def build_auth_headers(
    api_key: str, api_secret: str, path: str, nonce: int, body: bytes
) -> Tuple[str, Dict[str, str]]:
    """
    Build the authentication headers for a request.

    Args:
        api_key: The API key
        api_secret: The API secret key
        path: API path relative to ``/api/v2/``
        nonce: Nonce for this attempt
        body: Exact request body bytes

    Returns:
        Tuple of (signature, headers to add to the request)
    """
    signature = sign_request(api_secret, path, nonce, body)

    return signature, {
        API_KEY_HEADER: api_key,
        SIGNATURE_HEADER: signature,
        NONCE_HEADER: str(nonce),
        "Content-Type": "application/json",
    }
