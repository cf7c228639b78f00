"""
Request enums and response models for the Bitfinex v2 API.

Bitfinex answers with positional JSON arrays rather than objects. Each model
lists its columns in ``COLUMNS`` (``None`` marks a placeholder column the
API reserves) and is built from a row with ``from_row``.
"""

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Annotated, Any, ClassVar, List, Optional, Sequence, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict


def _from_millis(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return value


def _to_bool(value: Any) -> Any:
    if value is None:
        return False
    if isinstance(value, str) and value.isdigit():
        return value != "0"
    return value


Timestamp = Annotated[datetime, BeforeValidator(_from_millis)]
Flag = Annotated[bool, BeforeValidator(_to_bool)]


def to_millis(value: datetime) -> int:
    """Convert a datetime to Bitfinex milliseconds (naive values are local time)."""
    return int(value.timestamp() * 1000)


# --- Enums --- #


class BookPrecision(IntEnum):
    P0 = 0
    P1 = 1
    P2 = 2
    P3 = 3
    P4 = 4


class CandleTimeFrame(str, Enum):
    MIN_1 = "1m"
    MIN_5 = "5m"
    MIN_15 = "15m"
    MIN_30 = "30m"
    HOUR_1 = "1h"
    HOUR_3 = "3h"
    HOUR_4 = "4h"
    HOUR_6 = "6h"
    HOUR_12 = "12h"
    DAY_1 = "1D"
    WEEK_1 = "1W"
    WEEK_2 = "14D"
    MONTH_1 = "1M"

    @classmethod
    def parse(cls, value: str) -> "CandleTimeFrame":
        """Accept both the API spelling and the lowercase CLI spelling (1d, 1w, 2w)."""
        aliases = {"1d": cls.DAY_1, "1w": cls.WEEK_1, "2w": cls.WEEK_2}
        if value in aliases:
            return aliases[value]
        return cls(value)


class CandleAggPeriod(IntEnum):
    NONE = 0
    A10 = 10
    A30 = 30
    A120 = 120


class StatKey(str, Enum):
    POS_SIZE = "pos.size"
    FUNDING_SIZE = "funding.size"
    CREDITS_SIZE = "credits.size"
    CREDITS_SIZE_SYM = "credits.size.sym"
    VOL_1D = "vol.1d"
    VOL_7D = "vol.7d"
    VOL_30D = "vol.30d"
    VWAP = "vwap"


class LedgerCategory(IntEnum):
    EXCHANGE = 5
    INTEREST = 28
    TRANSFER = 51
    TRADING_FEE = 201

    @classmethod
    def parse(cls, value: str) -> "LedgerCategory":
        """Parse names such as "Interest", "TradingFee" or "trading-fee"."""
        key = value.replace("-", "").replace("_", "").upper()
        for member in cls:
            if member.name.replace("_", "") == key:
                return member
        raise ValueError(f"Unknown ledger category: {value}")


class WalletType(str, Enum):
    EXCHANGE = "exchange"
    MARGIN = "margin"
    FUNDING = "funding"


class DepositMethod(str, Enum):
    BITCOIN = "bitcoin"
    LITECOIN = "litecoin"
    ETHEREUM = "ethereum"
    TETHERUSO = "tetheruso"
    TETHERUSL = "tetherusl"
    TETHERUSX = "tetherusx"
    TETHERUSS = "tetheruss"
    ETHEREUMC = "ethereumc"
    ZCASH = "zcash"
    MONERO = "monero"
    IOTA = "iota"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    EXCHANGE_LIMIT = "EXCHANGE LIMIT"
    MARKET = "MARKET"
    EXCHANGE_MARKET = "EXCHANGE MARKET"
    STOP = "STOP"
    EXCHANGE_STOP = "EXCHANGE STOP"
    STOP_LIMIT = "STOP LIMIT"
    EXCHANGE_STOP_LIMIT = "EXCHANGE STOP LIMIT"
    TRAILING_STOP = "TRAILING STOP"
    EXCHANGE_TRAILING_STOP = "EXCHANGE TRAILING STOP"
    FOK = "FOK"
    EXCHANGE_FOK = "EXCHANGE FOK"
    IOC = "IOC"
    EXCHANGE_IOC = "EXCHANGE IOC"

    @classmethod
    def parse(cls, value: str) -> "OrderType":
        """Parse "exchange-limit", "EXCHANGE LIMIT", "exchange_limit", ..."""
        return cls(value.upper().replace("-", " ").replace("_", " "))


class FundingOfferType(str, Enum):
    LIMIT = "LIMIT"
    FRRDELTAVAR = "FRRDELTAVAR"
    FRRDELTAFIX = "FRRDELTAFIX"


# --- Models --- #


class ArrayModel(BaseModel):
    """Base for models decoded from Bitfinex positional arrays."""

    model_config = ConfigDict(extra="ignore")

    COLUMNS: ClassVar[Tuple[Optional[str], ...]] = ()

    @classmethod
    def from_row(cls, row: Sequence[Any]):
        if not isinstance(row, (list, tuple)):
            raise TypeError(f"{cls.__name__} expects an array row, got {type(row).__name__}")
        values = {
            name: value
            for name, value in zip(cls.COLUMNS, row)
            if name is not None and value is not None
        }
        return cls(**values)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]]) -> list:
        return [cls.from_row(row) for row in rows]


class Stat(ArrayModel):
    COLUMNS = ("time", "value")

    time: Timestamp
    value: float


class PlatformStatus(ArrayModel):
    COLUMNS = ("operative",)

    operative: Flag


class FundingStats(ArrayModel):
    COLUMNS = (
        "time", None, None, "frr", "avg_period", None, None,
        "funding_amount", "funding_amount_used", None, None,
        "funding_below_threshold",
    )

    time: Timestamp
    frr: float
    avg_period: float
    funding_amount: float
    funding_amount_used: float
    funding_below_threshold: float = 0.0


class DerivativesStatus(ArrayModel):
    COLUMNS = (
        "key", "time", None, "deriv_price", "spot_price", None,
        "insurance_fund_balance", None, "next_funding_time",
        "next_funding_accrued", "next_funding_step", None, "current_funding",
        None, None, "mark_price", None, None, "open_interest", None, None,
        None, "clamp_min", "clamp_max",
    )

    key: str
    time: Timestamp
    deriv_price: Optional[float] = None
    spot_price: Optional[float] = None
    insurance_fund_balance: Optional[float] = None
    next_funding_time: Optional[Timestamp] = None
    next_funding_accrued: Optional[float] = None
    next_funding_step: Optional[int] = None
    current_funding: Optional[float] = None
    mark_price: Optional[float] = None
    open_interest: Optional[float] = None
    clamp_min: Optional[float] = None
    clamp_max: Optional[float] = None


class Candle(ArrayModel):
    COLUMNS = ("time", "open", "close", "high", "low", "volume")

    time: Timestamp
    open: float
    close: float
    high: float
    low: float
    volume: float


class TradingTicker(ArrayModel):
    COLUMNS = (
        "bid", "bid_size", "ask", "ask_size", "daily_change",
        "daily_change_relative", "last_price", "volume", "high", "low",
    )

    bid: float
    bid_size: float
    ask: float
    ask_size: float
    daily_change: float
    daily_change_relative: float
    last_price: float
    volume: float
    high: float
    low: float


class TradingTrade(ArrayModel):
    COLUMNS = ("id", "time", "amount", "price")

    id: int
    time: Timestamp
    amount: float
    price: float


class TradingBookEntry(ArrayModel):
    COLUMNS = ("price", "count", "amount")

    price: float
    count: int
    amount: float


class TradingRawBookEntry(ArrayModel):
    COLUMNS = ("order_id", "price", "amount")

    order_id: int
    price: float
    amount: float


class FundingTicker(ArrayModel):
    COLUMNS = (
        "frr", "bid", "bid_period", "bid_size", "ask", "ask_period",
        "ask_size", "daily_change", "daily_change_perc", "last_price",
        "volume", "high", "low", None, None, "frr_amount_available",
    )

    frr: float
    bid: float
    bid_period: int
    bid_size: float
    ask: float
    ask_period: int
    ask_size: float
    daily_change: float
    daily_change_perc: float
    last_price: float
    volume: float
    high: float
    low: float
    frr_amount_available: Optional[float] = None


class FundingTrade(ArrayModel):
    COLUMNS = ("id", "time", "amount", "rate", "period")

    id: int
    time: Timestamp
    amount: float
    rate: float
    period: int


class FundingBookEntry(ArrayModel):
    """Aggregated funding book level; amount > 0 is an ask, < 0 a bid."""

    COLUMNS = ("rate", "period", "count", "amount")

    rate: float
    period: int
    count: int
    amount: float


class FundingRawBookEntry(ArrayModel):
    COLUMNS = ("offer_id", "period", "rate", "amount")

    offer_id: int
    period: int
    rate: float
    amount: float


class Order(ArrayModel):
    COLUMNS = (
        "id", "group_id", "client_order_id", "symbol", "created", "updated",
        "amount", "amount_orig", "order_type", "type_prev", "time_in_force",
        None, "flags", "status", None, None, "price", "price_avg",
        "price_trailing", "price_aux_limit", None, None, None, "notify",
        "hidden", "placed_id", None, None, "routing", None, None, "meta",
    )

    id: int
    group_id: Optional[int] = None
    client_order_id: Optional[int] = None
    symbol: str
    created: Timestamp
    updated: Timestamp
    amount: float
    amount_orig: float
    order_type: str
    type_prev: Optional[str] = None
    time_in_force: Optional[Timestamp] = None
    flags: Optional[int] = None
    status: str
    price: Optional[float] = None
    price_avg: Optional[float] = None
    price_trailing: Optional[float] = None
    price_aux_limit: Optional[float] = None
    notify: Flag = False
    hidden: Flag = False
    placed_id: Optional[int] = None
    routing: Optional[str] = None
    meta: Optional[Any] = None


class Notification(ArrayModel):
    """Envelope Bitfinex wraps around the result of write operations."""

    COLUMNS = (
        "time", "type", "message_id", None, "data", "code", "status", "text",
    )

    time: Timestamp
    type: str
    message_id: Optional[int] = None
    data: Any = None
    code: Optional[int] = None
    status: str
    text: Optional[str] = None


class FundingOffer(ArrayModel):
    COLUMNS = (
        "id", "symbol", "created", "updated", "amount", "amount_orig",
        "offer_type", None, None, "flags", "status", None, None, None,
        "rate", "period", "notify", "hidden", None, "renew",
    )

    id: int
    symbol: str
    created: Timestamp
    updated: Timestamp
    amount: float
    amount_orig: float
    offer_type: str
    flags: Optional[int] = None
    status: str
    rate: float
    period: int
    notify: Flag = False
    hidden: Flag = False
    renew: Flag = False


class FundingCredit(ArrayModel):
    COLUMNS = (
        "id", "symbol", "side", "created", "updated", "amount", "flags",
        "status", "rate_type", None, None, "rate", "period", "opened",
        "last_payout", "notify", "hidden", None, "renew", None, "no_close",
        "pair",
    )

    id: int
    symbol: str
    side: int
    created: Timestamp
    updated: Timestamp
    amount: float
    flags: Optional[int] = None
    status: str
    rate_type: str
    rate: float
    period: int
    opened: Optional[Timestamp] = None
    last_payout: Optional[Timestamp] = None
    notify: Flag = False
    hidden: Flag = False
    renew: Flag = False
    no_close: Flag = False
    pair: Optional[str] = None


class Wallet(ArrayModel):
    COLUMNS = (
        "wallet_type", "currency", "balance", "unsettled_interest",
        "available_balance",
    )

    wallet_type: str
    currency: str
    balance: float
    unsettled_interest: float = 0.0
    available_balance: Optional[float] = None


class LedgerEntry(ArrayModel):
    COLUMNS = (
        "id", "currency", "wallet", "time", None, "amount", "balance", None,
        "description",
    )

    id: int
    currency: str
    wallet: Optional[str] = None
    time: Timestamp
    amount: float
    balance: float
    description: Optional[str] = None


class UserInfo(ArrayModel):
    COLUMNS = (
        "id", "email", "username", "created", "verified", "verification_level",
        None, "timezone", "locale", "company", "email_verified", None,
        "subaccount_type", None, "master_account_created", "group_id",
        "master_account_id", "inherit_master_account_verification",
        "is_group_master", "group_withdraw_enabled", None, "ppt_enabled",
        "merchant_enabled", "competition_enabled", None, None,
        "two_factor_modes", None, "is_securities_master",
        "securities_enabled",
    )

    id: int
    email: str
    username: str
    created: Timestamp
    verified: Flag = False
    verification_level: Optional[int] = None
    timezone: Optional[str] = None
    locale: Optional[str] = None
    company: Optional[str] = None
    email_verified: Flag = False
    subaccount_type: Optional[str] = None
    master_account_created: Optional[Timestamp] = None
    group_id: Optional[int] = None
    master_account_id: Optional[int] = None
    inherit_master_account_verification: Flag = False
    is_group_master: Flag = False
    group_withdraw_enabled: Flag = False
    ppt_enabled: Flag = False
    merchant_enabled: Flag = False
    competition_enabled: Flag = False
    two_factor_modes: List[str] = []
    is_securities_master: Flag = False
    securities_enabled: Flag = False


class Permission(ArrayModel):
    COLUMNS = ("scope", "read", "write")

    scope: str
    read: Flag
    write: Flag


class DepositAddress(ArrayModel):
    COLUMNS = (None, "method", "currency", None, "address", "pool_address")

    method: str
    currency: str
    address: str
    pool_address: Optional[str] = None
