"""
Trading endpoints of the Bitfinex v2 API.

Covers the public market data of trading pairs (tBTCUSD, tETH:USDT, ...)
and the authenticated order management calls.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .models import (
    BookPrecision,
    Candle,
    CandleTimeFrame,
    Order,
    OrderType,
    TradingBookEntry,
    TradingRawBookEntry,
    TradingTicker,
    TradingTrade,
)
from .utils import history_params, require_trading_symbol

logger = logging.getLogger(__name__)

BOOK_LENGTH = 250


def _put_optional(data: Dict[str, Any], **values: Any) -> Dict[str, Any]:
    for key, value in values.items():
        if value is not None:
            data[key] = value
    return data


class TradingEndpointsMixin:
    """Trading endpoints; mixed into ``BitfinexClient``."""

    # --- Public endpoints --- #

    async def get_trading_book(
        self, symbol: str, precision: Union[BookPrecision, int] = BookPrecision.P2
    ) -> List[TradingBookEntry]:
        """
        Get the aggregated order book of a trading pair.

        Args:
            symbol: Trading pair (e.g. "tBTCUSD")
            precision: Price aggregation level, P0 (most precise) to P4

        Returns:
            Book levels; positive amounts are bids, negative amounts asks
        """
        require_trading_symbol(symbol, "trading book")
        precision = BookPrecision(precision)
        data = (
            await self.execute_public(
                f"book/{symbol}/P{precision.value}", {"len": BOOK_LENGTH}
            )
        ).unwrap()
        return self._decode_list(TradingBookEntry, data)

    async def get_trading_book_raw(self, symbol: str) -> List[TradingRawBookEntry]:
        """Get the raw (per order) book of a trading pair."""
        require_trading_symbol(symbol, "raw trading book")
        data = (
            await self.execute_public(f"book/{symbol}/R0", {"len": BOOK_LENGTH})
        ).unwrap()
        return self._decode_list(TradingRawBookEntry, data)

    async def get_trading_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TradingTrade]:
        """
        Get public trades of a trading pair, newest first.

        Args:
            symbol: Trading pair (e.g. "tBTCUSD")
            limit: Number of trades to return (max 10000)
            start: Earliest trade time
            end: Latest trade time

        Returns:
            Trades
        """
        require_trading_symbol(symbol, "trading trades")
        params = history_params(limit, start, end, sort=-1)
        data = (await self.execute_public(f"trades/{symbol}/hist", params)).unwrap()
        return self._decode_list(TradingTrade, data)

    async def get_trading_ticker(self, symbol: str) -> TradingTicker:
        """Get the current ticker of a trading pair."""
        require_trading_symbol(symbol, "trading ticker")
        data = (await self.execute_public(f"ticker/{symbol}")).unwrap()
        return self._decode(TradingTicker, data)

    async def get_trading_candles(
        self,
        symbol: str,
        time_frame: Union[CandleTimeFrame, str] = CandleTimeFrame.MIN_30,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Candle]:
        """
        Get candles of a trading pair, newest first.

        Args:
            symbol: Trading pair (e.g. "tBTCUSD")
            time_frame: Candle width
            limit: Number of candles to return (max 10000)
            start: Earliest candle time
            end: Latest candle time

        Returns:
            Candles
        """
        require_trading_symbol(symbol, "trading candles")
        time_frame = CandleTimeFrame.parse(time_frame)
        params = history_params(limit, start, end, sort=-1)
        data = (
            await self.execute_public(
                f"candles/trade:{time_frame.value}:{symbol}/hist", params
            )
        ).unwrap()
        return self._decode_list(Candle, data)

    # --- Authenticated endpoints --- #

    async def get_orders(
        self,
        symbol: Optional[str] = None,
        group_id: Optional[int] = None,
        client_id: Optional[int] = None,
        client_id_date: Optional[str] = None,
    ) -> List[Order]:
        """
        Get the user's active orders.

        Args:
            symbol: Only return orders of this trading pair
            group_id: Only return orders of this group
            client_id: Only return the order with this client order ID
            client_id_date: Date of ``client_id`` (YYYY-MM-DD); required with it

        Returns:
            Active orders
        """
        if client_id is not None and client_id_date is None:
            raise ValueError("client_id_date is required when client_id is given")

        path = f"auth/r/orders/{symbol}" if symbol else "auth/r/orders"
        body = _put_optional({}, gid=group_id, cid=client_id, cid_date=client_id_date)

        data = (await self.execute_authenticated(path, body)).unwrap()
        return self._decode_list(Order, data)

    async def get_orders_history(
        self,
        symbol: Optional[str] = None,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Order]:
        """
        Get closed and cancelled orders of the last two weeks.

        Args:
            symbol: Only return orders of this trading pair
            limit: Number of orders to return (max 2500)
            start: Earliest order time
            end: Latest order time

        Returns:
            Past orders
        """
        path = f"auth/r/orders/{symbol}/hist" if symbol else "auth/r/orders/hist"
        body = history_params(limit, start, end)

        data = (await self.execute_authenticated(path, body)).unwrap()
        return self._decode_list(Order, data)

    async def submit_order(
        self,
        symbol: str,
        order_type: Union[OrderType, str],
        amount: str,
        price: str,
        lev: Optional[int] = None,
        price_trailing: Optional[str] = None,
        price_aux_limit: Optional[str] = None,
        price_oco_stop: Optional[str] = None,
        gid: Optional[int] = None,
        cid: Optional[int] = None,
        flags: Optional[int] = None,
        time_in_force: Optional[str] = None,
    ) -> List[Order]:
        """
        Submit an order on a trading pair.

        Args:
            symbol: Trading pair (e.g. "tBTCUSD")
            order_type: Order type
            amount: Amount as a decimal string; positive buys, negative sells
            price: Price as a decimal string
            lev: Leverage for derivative orders (1-100)
            price_trailing: Trailing price for trailing stop orders
            price_aux_limit: Auxiliary limit price for stop limit orders
            price_oco_stop: One-cancels-other stop price
            gid: Group ID
            cid: Client order ID, unique within the day (UTC)
            flags: Sum of the order flags
            time_in_force: Automatic cancellation time ("YYYY-MM-DD hh:mm:ss")

        Returns:
            Orders created by the submission
        """
        require_trading_symbol(symbol, "order submission")
        if isinstance(order_type, str) and not isinstance(order_type, OrderType):
            order_type = OrderType.parse(order_type)

        body = {
            "symbol": symbol,
            "type": order_type.value,
            "amount": amount,
            "price": price,
        }
        _put_optional(
            body,
            lev=lev,
            price_trailing=price_trailing,
            price_aux_limit=price_aux_limit,
            price_oco_stop=price_oco_stop,
            gid=gid,
            cid=cid,
            flags=flags,
            tif=time_in_force,
        )

        data = (await self.execute_authenticated("auth/w/order/submit", body)).unwrap()
        logger.info(f"Submitted {order_type.value} order {amount} {symbol} @ {price}")
        return self._decode_list(Order, self._notification_data(data))

    async def update_order(
        self,
        order_id: int,
        amount: Optional[str] = None,
        price: Optional[str] = None,
        delta: Optional[str] = None,
        lev: Optional[int] = None,
        price_trailing: Optional[str] = None,
        price_aux_limit: Optional[str] = None,
        gid: Optional[int] = None,
        cid: Optional[int] = None,
        cid_date: Optional[str] = None,
        flags: Optional[int] = None,
        time_in_force: Optional[str] = None,
    ) -> Order:
        """
        Update an existing margin, exchange or derivative order.

        Args:
            order_id: ID of the order
            amount: New amount
            price: New price
            delta: Change to apply to the amount
            lev: Leverage for derivative orders
            price_trailing: Trailing price for trailing stop orders
            price_aux_limit: Auxiliary limit price for stop limit orders
            gid: Group ID
            cid: Client order ID
            cid_date: Date of ``cid`` (YYYY-MM-DD)
            flags: Sum of the order flags
            time_in_force: Automatic cancellation time ("YYYY-MM-DD hh:mm:ss")

        Returns:
            The updated order
        """
        body = _put_optional(
            {"id": order_id},
            amount=amount,
            price=price,
            delta=delta,
            lev=lev,
            price_trailing=price_trailing,
            price_aux_limit=price_aux_limit,
            gid=gid,
            cid=cid,
            cid_date=cid_date,
            flags=flags,
            tif=time_in_force,
        )

        data = (await self.execute_authenticated("auth/w/order/update", body)).unwrap()
        return self._decode(Order, self._notification_data(data))

    async def cancel_order(
        self,
        order_id: Optional[int] = None,
        cid: Optional[int] = None,
        cid_date: Optional[str] = None,
    ) -> Order:
        """
        Cancel an order by ID, or by client order ID and date.

        Args:
            order_id: ID of the order
            cid: Client order ID
            cid_date: Date of ``cid`` (YYYY-MM-DD); required with it

        Returns:
            The cancelled order
        """
        if order_id is None and cid is None:
            raise ValueError("Either order_id or cid is required to cancel an order")
        if cid is not None and cid_date is None:
            raise ValueError("cid_date is required when cid is given")

        body = _put_optional({}, id=order_id, cid=cid, cid_date=cid_date)

        data = (await self.execute_authenticated("auth/w/order/cancel", body)).unwrap()
        return self._decode(Order, self._notification_data(data))

    async def cancel_all_orders(self) -> List[Order]:
        """Cancel all of the user's orders, including derivative orders."""
        data = (
            await self.execute_authenticated("auth/w/order/cancel/multi", {"all": 1})
        ).unwrap()
        return self._decode_list(Order, self._notification_data(data))

