"""
Error types and call outcomes for the Bitfinex API client.

Every failure the client can produce is a subclass of ``BitfinexError``.
The request core never raises these directly; it returns them inside an
``ApiOutcome`` so that callers can inspect a failure as a value. The
endpoint methods call ``ApiOutcome.unwrap()`` and raise.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


class BitfinexError(Exception):
    """Base class for every error surfaced by the client."""

    kind = "BitfinexError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class TransportFailure(BitfinexError):
    """Connection, DNS, TLS, timeout, or unparseable-response failure."""

    kind = "TransportFailure"


class ResponseDecodeError(TransportFailure):
    """The response was valid JSON but did not have the expected shape."""

    kind = "ResponseDecodeError"


class ExchangeError(BitfinexError):
    """
    A well-formed response carrying an application-level error.

    Args:
        code: Error code reported by the exchange (None if absent)
        message: Error message reported by the exchange
    """

    kind = "ExchangeError"

    def __init__(self, code: Optional[int], message: str):
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        if self.code is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind} ({self.code}): {self.message}"


class NonceTooSmall(ExchangeError):
    """The submitted nonce was not greater than the last accepted one."""

    kind = "NonceTooSmall"


class OtherExchangeError(ExchangeError):
    """Any exchange error other than a nonce rejection."""

    kind = "ExchangeError"


class InvalidCurrency(OtherExchangeError):
    kind = "InvalidCurrency"


class InvalidKeyDigest(OtherExchangeError):
    kind = "InvalidKeyDigest"


class TemporarilyUnavailable(OtherExchangeError):
    kind = "TemporarilyUnavailable"


class RateLimited(OtherExchangeError):
    kind = "RateLimited"


class OfferLimitExceeded(OtherExchangeError):
    kind = "OfferLimitExceeded"


class RetriesExhausted(BitfinexError):
    """
    The nonce retry budget was used up without a successful attempt.

    Args:
        attempts: Number of attempts made
        last_error: The nonce rejection returned by the final attempt
    """

    kind = "RetriesExhausted"

    def __init__(self, attempts: int, last_error: ExchangeError):
        super().__init__(
            f"gave up after {attempts} attempts: {last_error.message}"
        )
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class ApiOutcome:
    """
    Result of one logical API call.

    Exactly one of ``payload`` and ``error`` is meaningful: ``error`` is None
    on success.
    """

    payload: Any = None
    error: Optional[BitfinexError] = None
    attempts: int = 1
    nonces: List[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the payload, or raise the failure."""
        if self.error is not None:
            raise self.error
        return self.payload
