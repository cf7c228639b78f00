"""
Command-line interface for the Bitfinex API.

This module provides the ``bfx`` command with ``public``, ``trading``,
``funding`` and ``auth`` command groups.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from bfx import __version__
from bfx.cli import render
from bfx.config import Credentials, default_env_path, load_credentials, save_credentials
from bfx.exchange.client import BitfinexClient
from bfx.exchange.errors import BitfinexError
from bfx.exchange.models import (
    CandleAggPeriod,
    CandleTimeFrame,
    DepositMethod,
    FundingOfferType,
    LedgerCategory,
    OrderType,
    StatKey,
    WalletType,
)

# Set up logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)],
)

logger = logging.getLogger("bfx")

# Create Typer app
app = typer.Typer(help="A convenient CLI tool for Bitfinex")
public_app = typer.Typer(help="Public endpoints not related to trading nor funding")
trading_app = typer.Typer(help="Trading/exchange related utilities")
funding_app = typer.Typer(help="Funding-related utilities")
auth_app = typer.Typer(help="User-related utilities")

app.add_typer(public_app, name="public")
app.add_typer(trading_app, name="trading")
app.add_typer(funding_app, name="funding")
app.add_typer(auth_app, name="auth")

console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S%z"]
TIME_FRAMES = [tf.value for tf in CandleTimeFrame] + ["1d", "1w", "2w"]

ORDER_COLUMNS = ["id", "symbol", "price", "amount_orig", "order_type", "status", "created", "updated"]
OFFER_COLUMNS = ["id", "symbol", "amount", "rate", "period", "status", "created", "updated"]
CREDIT_COLUMNS = ["id", "symbol", "amount", "rate", "period", "status", "opened", "pair"]
CANDLE_COLUMNS = ["time", "open", "close", "high", "low", "volume"]


def _start_option() -> Any:
    return typer.Option(None, "--start", formats=DATE_FORMATS, help="Start time (e.g. 2025-01-01T00:00:00)")


def _end_option() -> Any:
    return typer.Option(None, "--end", formats=DATE_FORMATS, help="End time (e.g. 2025-01-31T00:00:00)")


def _run(call: Awaitable[Any]) -> Any:
    """Run an API call, turning client errors into a message and exit code 1."""
    try:
        return asyncio.run(call)
    except BitfinexError as e:
        console.print(f"[red]{e.kind}: {escape(e.message)}[/red]")
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[red]Invalid argument: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def public_client() -> BitfinexClient:
    return BitfinexClient()


def auth_client() -> BitfinexClient:
    """Build a client with credentials, prompting for them on first use."""
    credentials = load_credentials()
    if credentials is None:
        console.print("[yellow]No API credentials found.[/yellow]")
        credentials = Credentials(
            typer.prompt("Please enter your Bitfinex API key"),
            typer.prompt("Please enter your Bitfinex API secret", hide_input=True),
        )
        path = save_credentials(credentials)
        console.print(f"[green]Credentials saved to {path}[/green]")

    return BitfinexClient(credentials.api_key, credentials.api_secret)


def _version_callback(value: bool):
    if value:
        console.print(f"bfx {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
):
    """
    A convenient CLI tool for Bitfinex.
    """
    if verbose:
        logger.setLevel(logging.DEBUG)


@app.command()
def init(
    api_key: str = typer.Option(None, "--api-key", "-k", help="Bitfinex API key"),
    api_secret: str = typer.Option(None, "--api-secret", "-s", help="Bitfinex API secret"),
    env_path: Path = typer.Option(
        None, "--path", "-p", help="Where to write the credentials file (default ~/.bfx_cli.env)"
    ),
):
    """
    Store API credentials for the authenticated commands.
    """
    if not api_key:
        api_key = typer.prompt("Enter your Bitfinex API key")

    if not api_secret:
        api_secret = typer.prompt("Enter your Bitfinex API secret", hide_input=True)

    path = save_credentials(Credentials(api_key, api_secret), env_path or default_env_path())
    console.print(f"[green]Credentials saved to {path}[/green]")


# --- Public --- #


@public_app.command("stat")
def public_stat(
    symbol: str = typer.Argument(..., help="Trading pair or funding symbol"),
    key: StatKey = typer.Option(StatKey.POS_SIZE, "--key", "-k", help="Stat type to return"),
    side_pair: str = typer.Option(
        "tBTCUSD", "--side-pair", help="Trading pair, only used by the credits.size.sym key"
    ),
    use_short: bool = typer.Option(False, "--use-short", help="Short side for the pos.size key"),
    limit: int = typer.Option(10, "--limit", min=1, max=10000, help="Number of records (max 10000)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get statistics of a trading pair or funding currency.
    """
    stats = _run(
        public_client().get_stats(symbol, key, side_pair, use_short, limit, start, end)
    )
    render.print_models(console, stats, ["time", "value"], title=f"{key.value} {symbol}")


@public_app.command("ex-rate")
def public_exchange_rate(
    from_ccy: str = typer.Argument(..., help="Currency to convert from"),
    to_ccy: str = typer.Argument(..., help="Currency to convert to"),
):
    """
    Get the exchange rate of a currency pair.
    """
    rate = _run(public_client().get_exchange_rate(from_ccy, to_ccy))
    render.print_json(console, rate)


@public_app.command("avail-pairs")
def public_avail_pairs():
    """
    List all trading pairs available on Bitfinex.
    """
    render.print_json(console, _run(public_client().get_exchange_pairs()))


@public_app.command("avail-currencies")
def public_avail_currencies():
    """
    List all currencies available on Bitfinex.
    """
    render.print_json(console, _run(public_client().get_currencies()))


@public_app.command("platform-status")
def public_platform_status():
    """
    Get whether the platform is operative or in maintenance.
    """
    status = _run(public_client().get_platform_status())
    render.print_json(console, status)


@public_app.command("deriv-status")
def public_deriv_status(
    keys: str = typer.Argument(..., help="Comma separated pairs (e.g. tBTCF0:USTF0) or ALL"),
):
    """
    Get the status of derivative pairs.
    """
    render.print_json(console, _run(public_client().get_derivatives_status(keys)))


@public_app.command("funding-stats")
def public_funding_stats(
    symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)"),
    limit: int = typer.Option(10, "--limit", "-l", min=1, max=250, help="Number of records (max 250)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get the most recent funding statistics of a currency.
    """
    stats = _run(public_client().get_funding_stats(symbol, limit, start, end))
    render.print_models(
        console,
        stats,
        ["time", "frr", "avg_period", "funding_amount", "funding_amount_used", "funding_below_threshold"],
        title=f"{symbol} funding stats",
    )


# --- Trading --- #


@trading_app.command("book")
def trading_book(
    symbol: str = typer.Argument(..., help="Trading pair (e.g. tBTCUSD)"),
    precision: int = typer.Option(2, "--precision", "-p", min=0, max=4, help="Price precision level"),
):
    """
    Get the aggregated order book.
    """
    book = _run(public_client().get_trading_book(symbol, precision))
    render.print_models(console, book, ["price", "count", "amount"], title=f"{symbol} book")


@trading_app.command("raw-book")
def trading_raw_book(symbol: str = typer.Argument(..., help="Trading pair (e.g. tBTCUSD)")):
    """
    Get the raw order book.
    """
    book = _run(public_client().get_trading_book_raw(symbol))
    render.print_models(console, book, ["order_id", "price", "amount"], title=f"{symbol} raw book")


@trading_app.command("ticker")
def trading_ticker(symbol: str = typer.Argument(..., help="Trading pair (e.g. tBTCUSD)")):
    """
    Get the current ticker of a trading pair.
    """
    ticker = _run(public_client().get_trading_ticker(symbol))
    render.print_record(console, ticker, title=f"{symbol} ticker")


@trading_app.command("candles")
def trading_candles(
    symbol: str = typer.Argument(..., help="Trading pair (e.g. tBTCUSD)"),
    time_frame: str = typer.Option("30m", "--time-frame", "-t", help=f"One of {', '.join(TIME_FRAMES)}"),
    limit: int = typer.Option(20, "--limit", min=1, max=10000, help="Number of candles (max 10000)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get candles of a trading pair.
    """
    candles = _run(public_client().get_trading_candles(symbol, time_frame, limit, start, end))
    render.print_models(console, candles, CANDLE_COLUMNS, title=f"{symbol} {time_frame} candles")


@trading_app.command("trades")
def trading_trades(
    symbol: str = typer.Argument(..., help="Trading pair (e.g. tBTCUSD)"),
    limit: int = typer.Option(100, "--limit", "-l", min=1, max=10000, help="Number of trades (max 10000)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get public trades of a trading pair.
    """
    trades = _run(public_client().get_trading_trades(symbol, limit, start, end))
    render.print_models(console, trades, ["id", "time", "amount", "price"], title=f"{symbol} trades")


@trading_app.command("orders")
def trading_orders(
    symbol: str = typer.Option(None, "--symbol", "-s", help="Only orders of this trading pair"),
    group_id: int = typer.Option(None, "--group-id", "-g", help="Group ID of target orders"),
    client_id: int = typer.Option(None, "--client-id", "-c", help="Client order ID (needs --client-id-date)"),
    client_id_date: str = typer.Option(None, "--client-id-date", "-d", help="Date of --client-id (YYYY-MM-DD)"),
):
    """
    Get all active orders.
    """
    orders = _run(auth_client().get_orders(symbol, group_id, client_id, client_id_date))
    render.print_models(console, orders, ORDER_COLUMNS, title="Active orders")


@trading_app.command("hist-orders")
def trading_hist_orders(
    symbol: str = typer.Option(None, "--symbol", "-s", help="Only orders of this trading pair"),
    limit: int = typer.Option(10, "--limit", "-l", min=1, max=2500, help="Number of orders (max 2500)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get closed and cancelled orders of the last two weeks.
    """
    orders = _run(auth_client().get_orders_history(symbol, limit, start, end))
    render.print_models(console, orders, ORDER_COLUMNS, title="Order history")


@trading_app.command("submit")
def trading_submit(
    symbol: str = typer.Argument(..., help="Trading pair (e.g. tBTCUSD)"),
    amount: str = typer.Option(..., "--amount", "-a", help="Amount; positive buys, negative sells"),
    price: str = typer.Option(..., "--price", "-p", help="Price for each unit"),
    order_type: str = typer.Option("exchange-limit", "--order-type", "-o", help="Order type (e.g. exchange-limit, market)"),
    lev: int = typer.Option(None, "--lev", min=1, max=100, help="Leverage for derivative orders"),
    price_trailing: str = typer.Option(None, "--price-trailing", help="Trailing price for trailing stop orders"),
    price_aux_limit: str = typer.Option(None, "--price-aux-limit", help="Auxiliary limit price (stop limit only)"),
    price_oco_stop: str = typer.Option(None, "--price-oco-stop", help="One-cancels-other stop price"),
    gid: int = typer.Option(None, "--gid", "-g", help="Group ID"),
    cid: int = typer.Option(None, "--cid", "-c", help="Client order ID, unique within the day (UTC)"),
    flags: int = typer.Option(None, "--flags", help="Sum of the order flags"),
    time_in_force: str = typer.Option(None, "--time-in-force", help="Automatic cancellation time (YYYY-MM-DD hh:mm:ss)"),
):
    """
    Submit an order on a trading pair.
    """
    try:
        parsed_type = OrderType.parse(order_type)
    except ValueError:
        raise typer.BadParameter(f"unknown order type {order_type!r}", param_hint="--order-type")

    orders = _run(
        auth_client().submit_order(
            symbol,
            parsed_type,
            amount,
            price,
            lev=lev,
            price_trailing=price_trailing,
            price_aux_limit=price_aux_limit,
            price_oco_stop=price_oco_stop,
            gid=gid,
            cid=cid,
            flags=flags,
            time_in_force=time_in_force,
        )
    )
    render.print_models(console, orders, ORDER_COLUMNS, title="Submitted orders")


@trading_app.command("update")
def trading_update(
    order_id: int = typer.Argument(..., help="ID of the order"),
    amount: str = typer.Option(None, "--amount", "-a", help="New amount"),
    price: str = typer.Option(None, "--price", "-p", help="New price"),
    delta: str = typer.Option(None, "--delta", help="Change to apply to the amount"),
    lev: int = typer.Option(None, "--lev", min=1, max=100, help="Leverage for derivative orders"),
    price_trailing: str = typer.Option(None, "--price-trailing", help="Trailing price for trailing stop orders"),
    price_aux_limit: str = typer.Option(None, "--price-aux-limit", help="Auxiliary limit price (stop limit only)"),
    gid: int = typer.Option(None, "--gid", "-g", help="Group ID"),
    cid: int = typer.Option(None, "--cid", "-c", help="Client order ID"),
    cid_date: str = typer.Option(None, "--cid-date", help="Date of the client order ID (YYYY-MM-DD)"),
    flags: int = typer.Option(None, "--flags", help="Sum of the order flags"),
    time_in_force: str = typer.Option(None, "--time-in-force", help="Automatic cancellation time (YYYY-MM-DD hh:mm:ss)"),
):
    """
    Update an existing order.
    """
    order = _run(
        auth_client().update_order(
            order_id,
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
            time_in_force=time_in_force,
        )
    )
    render.print_json(console, order)


@trading_app.command("cancel")
def trading_cancel(
    order_id: int = typer.Option(None, "--id", "-i", help="ID of the order"),
    cid: int = typer.Option(None, "--cid", "-c", help="Client order ID"),
    cid_date: str = typer.Option(None, "--cid-date", help="Date of the client order ID (YYYY-MM-DD)"),
):
    """
    Cancel one order.
    """
    order = _run(auth_client().cancel_order(order_id, cid, cid_date))
    render.print_json(console, order)


@trading_app.command("cancel-all")
def trading_cancel_all():
    """
    Cancel all orders, including derivative orders.
    """
    orders = _run(auth_client().cancel_all_orders())
    render.print_models(console, orders, ORDER_COLUMNS, title="Cancelled orders")


# --- Funding --- #


@funding_app.command("book")
def funding_book(
    symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)"),
    precision: int = typer.Option(2, "--precision", "-p", min=0, max=4, help="Rate precision level"),
):
    """
    Get the aggregated funding book.
    """
    book = _run(public_client().get_funding_book(symbol, precision))
    render.print_models(console, book, ["rate", "period", "count", "amount"], title=f"{symbol} book")


@funding_app.command("raw-book")
def funding_raw_book(symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)")):
    """
    Get the raw funding book.
    """
    book = _run(public_client().get_funding_book_raw(symbol))
    render.print_models(console, book, ["offer_id", "period", "rate", "amount"], title=f"{symbol} raw book")


@funding_app.command("ticker")
def funding_ticker(symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)")):
    """
    Get the current funding ticker.
    """
    ticker = _run(public_client().get_funding_ticker(symbol))
    render.print_record(console, ticker, title=f"{symbol} ticker")


@funding_app.command("candles")
def funding_candles(
    symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)"),
    period: int = typer.Option(30, "--period", "-p", min=2, max=120, help="Offer period in days"),
    agg_period: int = typer.Option(30, "--agg-period", "-a", help="Aggregation period: 0, 10, 30 or 120"),
    time_frame: str = typer.Option("30m", "--time-frame", "-t", help=f"One of {', '.join(TIME_FRAMES)}"),
    limit: int = typer.Option(20, "--limit", min=1, max=10000, help="Number of candles (max 10000)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get funding candles.
    """
    try:
        aggregation = CandleAggPeriod(agg_period)
    except ValueError:
        raise typer.BadParameter("must be one of 0, 10, 30, 120", param_hint="--agg-period")

    candles = _run(
        public_client().get_funding_candles(
            symbol, period, aggregation, time_frame, limit, start, end
        )
    )
    render.print_models(console, candles, CANDLE_COLUMNS, title=f"{symbol} p{period} candles")


@funding_app.command("trades")
def funding_trades(
    symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)"),
    limit: int = typer.Option(100, "--limit", "-l", min=1, max=10000, help="Number of trades (max 10000)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get public funding trades.
    """
    trades = _run(public_client().get_funding_trades(symbol, limit, start, end))
    render.print_models(console, trades, ["id", "time", "amount", "rate", "period"], title=f"{symbol} trades")


@funding_app.command("submit")
def funding_submit(
    symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)"),
    amount: float = typer.Option(..., "--amount", "-a", help="Amount to offer"),
    rate: float = typer.Option(..., "--rate", "-r", help="Daily rate"),
    period: int = typer.Option(..., "--period", "-p", min=2, max=120, help="Offer period in days (2-120)"),
    offer_type: FundingOfferType = typer.Option(FundingOfferType.LIMIT, "--offer-type", help="Offer type"),
):
    """
    Submit a funding offer.
    """
    offer = _run(auth_client().submit_funding_offer(symbol, amount, rate, period, offer_type))
    render.print_models(console, [offer], OFFER_COLUMNS, title="Submitted offer")


@funding_app.command("cancel")
def funding_cancel(offer_id: int = typer.Argument(..., help="ID of the funding offer")):
    """
    Cancel a funding offer.
    """
    offer = _run(auth_client().cancel_funding_offer(offer_id))
    render.print_models(console, [offer], OFFER_COLUMNS, title="Cancelled offer")


@funding_app.command("cancel-all")
def funding_cancel_all(symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)")):
    """
    Cancel all funding offers of a currency.
    """
    notification = _run(auth_client().cancel_all_funding_offers(symbol))
    console.print(f"{notification.status}: {notification.text or ''}")


@funding_app.command("offers")
def funding_offers(symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)")):
    """
    Get active funding offers.
    """
    offers = _run(auth_client().get_funding_offers(symbol))
    render.print_models(console, offers, OFFER_COLUMNS, title=f"{symbol} offers")


@funding_app.command("credits")
def funding_credits(symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)")):
    """
    Get funds used in active positions.
    """
    credits = _run(auth_client().get_funding_credits(symbol))
    render.print_models(console, credits, CREDIT_COLUMNS, title=f"{symbol} credits")


@funding_app.command("hist-offers")
def funding_hist_offers(
    symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)"),
    limit: int = typer.Option(20, "--limit", min=1, max=500, help="Number of offers (max 500)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get past inactive funding offers.
    """
    offers = _run(auth_client().get_funding_offers_history(symbol, limit, start, end))
    render.print_models(console, offers, OFFER_COLUMNS, title=f"{symbol} offer history")


@funding_app.command("hist-credits")
def funding_hist_credits(
    symbol: str = typer.Argument(..., help="Funding symbol (e.g. fUSD)"),
    limit: int = typer.Option(20, "--limit", min=1, max=500, help="Number of records (max 500)"),
    start: Optional[datetime] = _start_option(),
    end: Optional[datetime] = _end_option(),
):
    """
    Get inactive funds that were used in positions.
    """
    credits = _run(auth_client().get_funding_credits_history(symbol, limit, start, end))
    render.print_models(console, credits, CREDIT_COLUMNS, title=f"{symbol} credit history")


# --- Auth --- #


@auth_app.command("user-info")
def auth_user_info():
    """
    Get information about the current user.
    """
    user = _run(auth_client().get_user_info())
    render.print_record(console, user, title="User")


@auth_app.command("wallets")
def auth_wallets():
    """
    Get all wallets of the current user.
    """
    wallets = _run(auth_client().get_wallets())
    render.print_models(
        console,
        wallets,
        ["currency", "wallet_type", "available_balance", "balance", "unsettled_interest"],
        title="Wallets",
    )


@auth_app.command("key-permission")
def auth_key_permission():
    """
    Get the permissions of the current API key.
    """
    permissions = _run(auth_client().get_key_permissions())
    render.print_mapping(
        console,
        {
            scope: f"Read: {permission.read} / Write: {permission.write}"
            for scope, permission in permissions.items()
        },
        title="API key permissions",
    )


@auth_app.command("ledger")
def auth_ledger(
    ccy: str = typer.Argument(..., help="Currency of the ledger records"),
    limit: int = typer.Option(25, "--limit", "-l", min=1, max=2500, help="Number of records (max 2500)"),
    category: str = typer.Option("Interest", "--category", "-c", help="Interest, Exchange, Transfer or TradingFee"),
):
    """
    Get ledger records of the current user.
    """
    try:
        parsed_category = LedgerCategory.parse(category)
    except ValueError:
        raise typer.BadParameter(f"unknown category {category!r}", param_hint="--category")

    entries = _run(auth_client().get_ledgers(ccy, limit, parsed_category))
    render.print_models(
        console, entries, ["id", "amount", "balance", "currency", "time", "description"], title=f"{ccy} ledger"
    )


@auth_app.command("deposit-address")
def auth_deposit_address(
    wallet_type: WalletType = typer.Option(WalletType.EXCHANGE, "--wallet-type", "-w", help="Type of wallet"),
    method: DepositMethod = typer.Option(DepositMethod.TETHERUSL, "--method", "-m", help="Deposit method"),
):
    """
    Get wallet addresses for deposits.
    """
    addresses = _run(auth_client().get_deposit_addresses(wallet_type, method))
    render.print_json(console, addresses)


if __name__ == "__main__":
    app()
