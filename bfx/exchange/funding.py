"""
Funding endpoints of the Bitfinex v2 API.

Covers the public market data of funding currencies (fUSD, fBTC, ...) and
the authenticated funding offer and credit calls.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from .models import (
    BookPrecision,
    Candle,
    CandleAggPeriod,
    CandleTimeFrame,
    FundingBookEntry,
    FundingCredit,
    FundingOffer,
    FundingOfferType,
    FundingRawBookEntry,
    FundingTicker,
    FundingTrade,
    Notification,
)
from .utils import history_params, parse_ccy_from_symbol, require_funding_symbol

logger = logging.getLogger(__name__)

BOOK_LENGTH = 250
MIN_OFFER_PERIOD = 2
MAX_OFFER_PERIOD = 120


def funding_candle_key(
    symbol: str,
    period: int,
    agg_period: CandleAggPeriod,
    time_frame: CandleTimeFrame,
) -> str:
    """
    Build the candle key of a funding currency.

    Without aggregation the key is ``trade:30m:fUSD:p30``. With aggregation
    it covers periods from just above ``period - agg_period`` up to
    ``period``, e.g. ``trade:30m:fUSD:a30:p2:p30``.
    """
    parts = ["trade", time_frame.value, symbol]
    if agg_period != CandleAggPeriod.NONE:
        agg = int(agg_period)
        start_period = max(1, max(period, agg) - agg) + 1
        parts.append(f"a{agg}")
        parts.append(f"p{start_period}")
    parts.append(f"p{period}")
    return ":".join(parts)


class FundingEndpointsMixin:
    """Funding endpoints; mixed into ``BitfinexClient``."""

    # --- Public endpoints --- #

    async def get_funding_book(
        self, symbol: str, precision: Union[BookPrecision, int] = BookPrecision.P2
    ) -> List[FundingBookEntry]:
        """
        Get the aggregated funding book of a currency.

        Args:
            symbol: Funding symbol (e.g. "fUSD")
            precision: Rate aggregation level, P0 (most precise) to P4

        Returns:
            Book levels; positive amounts are asks, negative amounts bids
        """
        require_funding_symbol(symbol, "funding book")
        precision = BookPrecision(precision)
        data = (
            await self.execute_public(
                f"book/{symbol}/P{precision.value}", {"len": BOOK_LENGTH}
            )
        ).unwrap()
        return self._decode_list(FundingBookEntry, data)

    async def get_funding_book_raw(self, symbol: str) -> List[FundingRawBookEntry]:
        """Get the raw (per offer) funding book of a currency."""
        require_funding_symbol(symbol, "raw funding book")
        data = (
            await self.execute_public(f"book/{symbol}/R0", {"len": BOOK_LENGTH})
        ).unwrap()
        return self._decode_list(FundingRawBookEntry, data)

    async def get_funding_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[FundingTrade]:
        """Get public funding trades of a currency, newest first."""
        require_funding_symbol(symbol, "funding trades")
        params = history_params(limit, start, end, sort=-1)
        data = (await self.execute_public(f"trades/{symbol}/hist", params)).unwrap()
        return self._decode_list(FundingTrade, data)

    async def get_funding_ticker(self, symbol: str) -> FundingTicker:
        """Get the current funding ticker of a currency."""
        require_funding_symbol(symbol, "funding ticker")
        data = (await self.execute_public(f"ticker/{symbol}")).unwrap()
        return self._decode(FundingTicker, data)

    async def get_funding_candles(
        self,
        symbol: str,
        period: int = 30,
        agg_period: Union[CandleAggPeriod, int] = CandleAggPeriod.A30,
        time_frame: Union[CandleTimeFrame, str] = CandleTimeFrame.MIN_30,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Candle]:
        """
        Get funding candles of a currency, newest first.

        ``period`` must be a multiple of ``agg_period`` when aggregating;
        other combinations make the exchange return an empty list. The
        defaults match the exchange UI (30 day offers, aggregated by 30,
        30 minute candles).

        Args:
            symbol: Funding symbol (e.g. "fUSD")
            period: Offer period in days
            agg_period: Aggregation period (0 disables aggregation)
            time_frame: Candle width
            limit: Number of candles to return (max 10000)
            start: Earliest candle time
            end: Latest candle time

        Returns:
            Candles
        """
        require_funding_symbol(symbol, "funding candles")
        key = funding_candle_key(
            symbol,
            period,
            CandleAggPeriod(agg_period),
            CandleTimeFrame.parse(time_frame),
        )
        params = history_params(limit, start, end, sort=-1)
        data = (await self.execute_public(f"candles/{key}/hist", params)).unwrap()
        return self._decode_list(Candle, data)

    # --- Authenticated endpoints --- #

    async def get_funding_offers(self, symbol: str) -> List[FundingOffer]:
        """Get the user's active funding offers of a currency."""
        data = (
            await self.execute_authenticated(f"auth/r/funding/offers/{symbol}")
        ).unwrap()
        return self._decode_list(FundingOffer, data)

    async def get_funding_offers_history(
        self,
        symbol: str,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[FundingOffer]:
        """
        Get the user's past, inactive funding offers.

        Args:
            symbol: Funding symbol (e.g. "fUSD")
            limit: Number of offers to return (max 500)
            start: Earliest offer time
            end: Latest offer time

        Returns:
            Past funding offers
        """
        params = history_params(limit, start, end)
        data = (
            await self.execute_authenticated(
                f"auth/r/funding/offers/{symbol}/hist", params=params
            )
        ).unwrap()
        return self._decode_list(FundingOffer, data)

    async def get_funding_credits(self, symbol: str) -> List[FundingCredit]:
        """Get the funds of a currency currently used in positions."""
        data = (
            await self.execute_authenticated(f"auth/r/funding/credits/{symbol}")
        ).unwrap()
        return self._decode_list(FundingCredit, data)

    async def get_funding_credits_history(
        self,
        symbol: str,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[FundingCredit]:
        """Get inactive funds of a currency that were used in positions."""
        params = history_params(limit, start, end)
        data = (
            await self.execute_authenticated(
                f"auth/r/funding/credits/{symbol}/hist", params=params
            )
        ).unwrap()
        return self._decode_list(FundingCredit, data)

    async def submit_funding_offer(
        self,
        symbol: str,
        amount: float,
        rate: float,
        period: int,
        offer_type: Union[FundingOfferType, str] = FundingOfferType.LIMIT,
    ) -> FundingOffer:
        """
        Submit a funding offer.

        Args:
            symbol: Funding symbol (e.g. "fUSD")
            amount: Amount to offer
            rate: Daily rate
            period: Offer period in days (2-120)
            offer_type: Offer type

        Returns:
            The created offer
        """
        if not MIN_OFFER_PERIOD <= period <= MAX_OFFER_PERIOD:
            raise ValueError(
                f"period must be between {MIN_OFFER_PERIOD} and {MAX_OFFER_PERIOD} days, got {period}"
            )
        offer_type = FundingOfferType(str(getattr(offer_type, "value", offer_type)).upper())

        body = {
            "type": offer_type.value,
            "symbol": symbol,
            "amount": str(amount),
            "rate": str(rate),
            "period": period,
        }

        data = (
            await self.execute_authenticated("auth/w/funding/offer/submit", body)
        ).unwrap()
        logger.info(f"Submitted funding offer {amount} {symbol} at {rate} for {period} days")
        return self._decode(FundingOffer, self._notification_data(data))

    async def cancel_funding_offer(self, offer_id: int) -> FundingOffer:
        """Cancel a funding offer by ID."""
        data = (
            await self.execute_authenticated(
                "auth/w/funding/offer/cancel", {"id": offer_id}
            )
        ).unwrap()
        return self._decode(FundingOffer, self._notification_data(data))

    async def cancel_all_funding_offers(self, symbol: str) -> Notification:
        """
        Cancel all funding offers of a currency.

        Args:
            symbol: Funding symbol or currency (e.g. "fUSD" or "USD")

        Returns:
            The exchange's notification for the request
        """
        currency = parse_ccy_from_symbol(symbol)
        data = (
            await self.execute_authenticated(
                "auth/w/funding/offer/cancel/all", {"currency": currency}
            )
        ).unwrap()
        return self._decode(Notification, data)
