"""
Public Bitfinex endpoints that are not specific to trading or funding.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from .errors import ResponseDecodeError
from .models import DerivativesStatus, FundingStats, PlatformStatus, Stat, StatKey
from .utils import history_params, require_funding_symbol, require_trading_symbol

logger = logging.getLogger(__name__)


class PublicEndpointsMixin:
    """Public endpoints; mixed into ``BitfinexClient``."""

    async def get_exchange_rate(self, ccy1: str, ccy2: str) -> float:
        """
        Get the foreign exchange rate between two currencies.

        Args:
            ccy1: Base currency (e.g. "BTC")
            ccy2: Quote currency (e.g. "USD")

        Returns:
            Price of one unit of ``ccy1`` in ``ccy2``
        """
        outcome = await self.execute_public(
            "calc/fx", method="POST", body={"ccy1": ccy1, "ccy2": ccy2}
        )
        data = outcome.unwrap()
        try:
            return float(data[0])
        except (TypeError, ValueError, IndexError, KeyError) as e:
            raise ResponseDecodeError(f"unexpected exchange rate payload: {data!r}") from e

    async def get_exchange_pairs(self) -> List[str]:
        """Get all trading pairs available on the exchange."""
        return await self._get_conf_list("conf/pub:list:pair:exchange")

    async def get_currencies(self) -> List[str]:
        """Get all currencies available on the exchange."""
        return await self._get_conf_list("conf/pub:list:currency")

    async def _get_conf_list(self, path: str) -> List[str]:
        data = (await self.execute_public(path)).unwrap()
        if not isinstance(data, list) or not data or not isinstance(data[0], list):
            raise ResponseDecodeError(f"unexpected {path} payload")
        return [str(item) for item in data[0]]

    async def get_stats(
        self,
        symbol: str,
        key: Union[StatKey, str] = StatKey.POS_SIZE,
        side_pair: Optional[str] = None,
        use_short: bool = False,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Stat]:
        """
        Get statistics for a trading pair or funding currency.

        ``funding.size``, ``credits.size`` and ``credits.size.sym`` need a
        funding symbol; ``pos.size`` needs a trading pair. The ``vol.*``
        keys are platform-wide and ignore ``symbol``.

        Args:
            symbol: Trading pair or funding symbol
            key: Statistic to fetch
            side_pair: Trading pair for ``credits.size.sym`` (default tBTCUSD)
            use_short: Use the short side for ``pos.size``
            limit: Number of records to return (max 10000)
            start: Earliest record time
            end: Latest record time

        Returns:
            Statistic records, newest first
        """
        key = StatKey(key)

        if key in (StatKey.FUNDING_SIZE, StatKey.CREDITS_SIZE):
            require_funding_symbol(symbol, f"{key.value} stat")
            section = f"1m:{symbol}"
        elif key == StatKey.CREDITS_SIZE_SYM:
            require_funding_symbol(symbol, f"{key.value} stat")
            if side_pair is None:
                logger.info("No side pair given for credits.size.sym, using tBTCUSD")
                side_pair = "tBTCUSD"
            section = f"1m:{symbol}:{side_pair}"
        elif key == StatKey.POS_SIZE:
            require_trading_symbol(symbol, f"{key.value} stat")
            section = f"1m:{symbol}:{'short' if use_short else 'long'}"
        elif key == StatKey.VWAP:
            section = f"1d:{symbol}"
        else:
            section = "30m:BFX"

        params = history_params(limit, start, end, sort=-1)
        data = (await self.execute_public(f"stats1/{key.value}:{section}/hist", params)).unwrap()
        return self._decode_list(Stat, data)

    async def get_platform_status(self) -> PlatformStatus:
        """Get whether the platform is operative (True) or in maintenance (False)."""
        data = (await self.execute_public("platform/status")).unwrap()
        return self._decode(PlatformStatus, data)

    async def get_funding_stats(
        self,
        symbol: str,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[FundingStats]:
        """
        Get recent funding statistics for a currency.

        Args:
            symbol: Funding symbol (e.g. "fUSD")
            limit: Number of records to return (max 250)
            start: Earliest record time
            end: Latest record time

        Returns:
            Funding statistics records
        """
        require_funding_symbol(symbol, "funding stats")
        params = history_params(limit, start, end)
        data = (await self.execute_public(f"funding/stats/{symbol}/hist", params)).unwrap()
        return self._decode_list(FundingStats, data)

    async def get_derivatives_status(self, keys: str = "ALL") -> List[DerivativesStatus]:
        """
        Get the status of derivative pairs.

        Args:
            keys: Comma separated pairs (e.g. "tBTCF0:USTF0,tETHF0:USTF0") or "ALL"

        Returns:
            Status of each requested pair
        """
        data = (await self.execute_public("status/deriv", {"keys": keys})).unwrap()
        return self._decode_list(DerivativesStatus, data)
