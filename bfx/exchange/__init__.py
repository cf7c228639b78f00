"""
Exchange module for interacting with the Bitfinex v2 REST API.

This module provides the request core (nonce generation, request signing,
dispatch and nonce retry) and the endpoint methods built on top of it.
"""

from .auth import NonceGenerator, build_auth_headers, sign_request
from .client import BitfinexClient
from .errors import (
    ApiOutcome,
    BitfinexError,
    ExchangeError,
    NonceTooSmall,
    OtherExchangeError,
    ResponseDecodeError,
    RetriesExhausted,
    TransportFailure,
)
from .retry import RetryPolicy, is_nonce_too_small

__all__ = [
    "ApiOutcome",
    "BitfinexClient",
    "BitfinexError",
    "ExchangeError",
    "NonceGenerator",
    "NonceTooSmall",
    "OtherExchangeError",
    "ResponseDecodeError",
    "RetriesExhausted",
    "RetryPolicy",
    "TransportFailure",
    "build_auth_headers",
    "is_nonce_too_small",
    "sign_request",
]
