"""
Bitfinex v2 API client implementation.

This module provides the request core shared by every endpoint: public calls
go straight to the dispatcher, authenticated calls are signed with a fresh
nonce per attempt and run under the nonce retry policy.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from .account import AccountEndpointsMixin
from .auth import NonceGenerator, build_auth_headers
from .errors import ApiOutcome, ResponseDecodeError
from .funding import FundingEndpointsMixin
from .models import ArrayModel, Notification
from .public import PublicEndpointsMixin
from .retry import RetryPolicy, classify_failure
from .trading import TradingEndpointsMixin
from .transport import Dispatcher, RawResponse

logger = logging.getLogger(__name__)

Body = Union[None, bytes, str, Dict[str, Any], Callable[[], Any]]

M = TypeVar("M", bound=ArrayModel)


def serialize_body(body: Body) -> bytes:
    """
    Serialize a request body to the exact bytes that will be signed and sent.

    Args:
        body: None, raw bytes, a JSON string, a JSON-serializable dict, or a
            zero-argument callable returning one of those

    Returns:
        Body bytes (empty when there is no body)
    """
    if callable(body):
        body = body()
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


class BitfinexClient(
    PublicEndpointsMixin,
    TradingEndpointsMixin,
    FundingEndpointsMixin,
    AccountEndpointsMixin,
):
    """
    Client for interacting with the Bitfinex v2 REST API.
    """

    PUBLIC_URL = "https://api-pub.bitfinex.com/v2"
    AUTH_URL = "https://api.bitfinex.com/v2"

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        request_timeout: float = 10.0,
        max_attempts: int = 5,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        nonce_generator: Optional[NonceGenerator] = None,
    ):
        """
        Initialize the Bitfinex client.

        Args:
            api_key: API key for authentication (may be empty for public calls)
            api_secret: API secret for authentication
            request_timeout: Timeout for each HTTP attempt in seconds
            max_attempts: Maximum attempts per authenticated call on nonce rejection
            retry_delay: Delay between nonce retries in seconds
            transport: Optional httpx transport, used to stub the network in tests
            nonce_generator: Nonce source (defaults to a new generator per client)
        """
        self._api_key = api_key
        self._api_secret = api_secret

        self.nonce_generator = nonce_generator or NonceGenerator()
        self.dispatcher = Dispatcher(request_timeout=request_timeout, transport=transport)
        self.retry_policy = RetryPolicy(
            self.nonce_generator, max_attempts=max_attempts, retry_delay=retry_delay
        )

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key and self._api_secret)

    async def execute_public(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        body: Body = None,
    ) -> ApiOutcome:
        """
        Call an unauthenticated endpoint.

        No nonce is issued, nothing is signed and nothing is retried.

        Args:
            path: API path relative to ``/v2/`` (e.g. "platform/status")
            params: Query parameters
            method: HTTP method
            body: Optional JSON body (only a few public endpoints take one)

        Returns:
            Outcome of the call
        """
        data = serialize_body(body)
        headers = {"Content-Type": "application/json"} if data else None

        response = await self.dispatcher.send(
            method, f"{self.PUBLIC_URL}/{path}", headers=headers, body=data, params=params
        )
        return self._outcome(response)

    async def execute_authenticated(
        self,
        path: str,
        body: Body = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiOutcome:
        """
        Call an authenticated endpoint.

        The body is serialized once. Every attempt signs and sends those same
        bytes with its own nonce.

        Args:
            path: API path relative to ``/v2/`` (e.g. "auth/r/wallets")
            body: Request body (see ``serialize_body``)
            params: Query parameters (not covered by the signature)

        Returns:
            Outcome of the call
        """
        data = serialize_body(body)
        url = f"{self.AUTH_URL}/{path}"

        async def attempt(nonce: int) -> RawResponse:
            _, headers = build_auth_headers(
                self._api_key, self._api_secret, path, nonce, data
            )
            return await self.dispatcher.send(
                "POST", url, headers=headers, body=data, params=params
            )

        return await self.retry_policy.execute(attempt)

    def _outcome(self, response: RawResponse) -> ApiOutcome:
        if response.ok:
            return ApiOutcome(payload=response.payload)

        error = classify_failure(response.error, self.retry_policy.is_retryable)
        logger.error(f"Request failed: {error}")
        return ApiOutcome(error=error)

    @staticmethod
    def _decode(model: Type[M], row: Any) -> M:
        try:
            return model.from_row(row)
        except (TypeError, ValidationError) as e:
            raise ResponseDecodeError(f"unexpected {model.__name__} payload: {e}") from e

    @classmethod
    def _decode_list(cls, model: Type[M], rows: Any) -> list:
        if not isinstance(rows, list):
            raise ResponseDecodeError(
                f"expected a list of {model.__name__} rows, got {type(rows).__name__}"
            )
        return [cls._decode(model, row) for row in rows]

    def _notification_data(self, data: Any) -> Any:
        """Unwrap the notification Bitfinex returns from write endpoints."""
        notification = self._decode(Notification, data)
        if notification.status not in ("SUCCESS", "INFO"):
            logger.warning(
                f"{notification.type} returned {notification.status}: {notification.text}"
            )
        if notification.data is None:
            raise ResponseDecodeError(f"{notification.type} notification carried no data")
        return notification.data
