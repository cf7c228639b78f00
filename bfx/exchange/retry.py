"""
Retry policy for authenticated Bitfinex requests.

Only one failure is ever retried: the exchange rejecting a nonce as not
greater than the last one it accepted. Every other failure is final, so an
order submission is never sent twice because of an unrelated error.
"""

import asyncio
import logging
import re
from typing import Awaitable, Callable, List, Optional

from .auth import NonceGenerator
from .errors import (
    ApiOutcome,
    BitfinexError,
    ExchangeError,
    InvalidCurrency,
    InvalidKeyDigest,
    NonceTooSmall,
    OfferLimitExceeded,
    OtherExchangeError,
    RateLimited,
    RetriesExhausted,
    TemporarilyUnavailable,
)
from .transport import RawResponse

logger = logging.getLogger(__name__)

# Literal payload observed from the API: ["error",10114,"nonce: small"]
NONCE_TOO_SMALL_CODE = 10114
NONCE_TOO_SMALL_PATTERN = re.compile(r"nonce\s*:?\s*(too\s+)?small", re.IGNORECASE)

_OBSERVED_NONCE_PATTERN = re.compile(r"(\d{13,})")

_CODE_CLASSES = {
    10020: InvalidCurrency,
    10100: InvalidKeyDigest,
    11000: TemporarilyUnavailable,
    11010: RateLimited,
}


def is_nonce_too_small(error: ExchangeError) -> bool:
    """Return True if the exchange rejected the request's nonce as too small."""
    if error.code == NONCE_TOO_SMALL_CODE:
        return True
    return bool(NONCE_TOO_SMALL_PATTERN.search(error.message))


def extract_observed_nonce(message: str) -> Optional[int]:
    """Return the largest nonce-sized integer mentioned in an error message."""
    found = [int(m) for m in _OBSERVED_NONCE_PATTERN.findall(message)]
    return max(found) if found else None


def classify_failure(
    error: BitfinexError,
    is_retryable: Callable[[ExchangeError], bool] = is_nonce_too_small,
) -> BitfinexError:
    """
    Map a raw exchange error onto the client's error taxonomy.

    Transport failures and errors that are already classified pass through.

    Args:
        error: Failure produced by the dispatcher
        is_retryable: Predicate that recognizes nonce rejections

    Returns:
        NonceTooSmall, a specific OtherExchangeError subclass, or ``error``
    """
    if type(error) is not ExchangeError:
        return error

    if is_retryable(error):
        return NonceTooSmall(error.code, error.message)

    if error.code == 10001 and "too many active offers" in error.message:
        return OfferLimitExceeded(error.code, error.message)

    error_class = _CODE_CLASSES.get(error.code, OtherExchangeError)
    return error_class(error.code, error.message)


class RetryPolicy:
    """
    Re-issues an authenticated request with a fresh nonce on nonce rejection.

    Each attempt signs with a new nonce and dispatches. A nonce rejection
    starts another attempt; any other result ends the call.
    """

    def __init__(
        self,
        nonce_generator: NonceGenerator,
        max_attempts: int = 5,
        retry_delay: float = 1.0,
        is_retryable: Callable[[ExchangeError], bool] = is_nonce_too_small,
    ):
        """
        Initialize the retry policy.

        Args:
            nonce_generator: Source of nonces shared by every call on a client
            max_attempts: Maximum number of attempts per logical call
            retry_delay: Delay between nonce retries in seconds
            is_retryable: Predicate that recognizes nonce rejections
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.nonce_generator = nonce_generator
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.is_retryable = is_retryable

    async def execute(
        self, attempt: Callable[[int], Awaitable[RawResponse]]
    ) -> ApiOutcome:
        """
        Run ``attempt`` until it succeeds, fails for good, or runs out of tries.

        Args:
            attempt: Coroutine function that signs and sends the request
                with the given nonce

        Returns:
            Final outcome of the call
        """
        nonces: List[int] = []

        for attempt_number in range(1, self.max_attempts + 1):
            nonce = self.nonce_generator.next()
            nonces.append(nonce)

            response = await attempt(nonce)

            if response.ok:
                return ApiOutcome(
                    payload=response.payload, attempts=attempt_number, nonces=nonces
                )

            error = classify_failure(response.error, self.is_retryable)

            if not isinstance(error, NonceTooSmall):
                logger.error(f"Request failed: {error}")
                return ApiOutcome(error=error, attempts=attempt_number, nonces=nonces)

            observed = extract_observed_nonce(error.message)
            if observed is not None:
                self.nonce_generator.advance_past(observed)

            if attempt_number == self.max_attempts:
                break

            logger.warning(
                f"Nonce {nonce} rejected as too small "
                f"(attempt {attempt_number}/{self.max_attempts}), retrying"
            )
            if self.retry_delay > 0:
                await asyncio.sleep(self.retry_delay)

        logger.error(f"Nonce retries exhausted after {self.max_attempts} attempts")
        return ApiOutcome(
            error=RetriesExhausted(self.max_attempts, error),
            attempts=self.max_attempts,
            nonces=nonces,
        )
