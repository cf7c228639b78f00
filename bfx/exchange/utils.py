"""
Helpers shared by the endpoint modules.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from .models import to_millis


def require_trading_symbol(symbol: str, what: str) -> None:
    if not symbol.startswith("t"):
        raise ValueError(f"{what} requires a trading pair symbol (e.g. tBTCUSD), got {symbol!r}")


def require_funding_symbol(symbol: str, what: str) -> None:
    if not symbol.startswith("f"):
        raise ValueError(f"{what} requires a funding symbol (e.g. fUSD), got {symbol!r}")


def parse_ccy_from_symbol(symbol: str) -> str:
    """
    Return the currency part of a symbol.

    ``fUSD`` -> ``USD``; ``tBTCUSD`` -> ``USD``; ``tETH:USDT`` -> ``USDT``.
    Anything without a t/f prefix is returned unchanged.
    """
    if symbol.startswith("f"):
        return symbol[1:]
    if symbol.startswith("t"):
        if ":" in symbol:
            return symbol.split(":", 1)[1]
        return symbol[4:]
    return symbol


def history_params(
    limit: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build the limit/start/end parameters used by Bitfinex history endpoints."""
    params: Dict[str, Any] = dict(extra)
    if limit is not None:
        params["limit"] = limit
    if start is not None:
        params["start"] = to_millis(start)
    if end is not None:
        params["end"] = to_millis(end)
    return params
