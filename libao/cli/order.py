"""Order entry subcommands (buy/sell)."""

from decimal import Decimal
from typing import Optional

import click

from libao.cli.context import console, fail, load_state, money, mutate
from libao.lib.errors import LibaoError
from libao.lib.validators import parse_timestamp, to_decimal
from libao.models import Market, OrderAction, TradeOrder
from libao.services.fees import estimate_fees
from libao.services.portfolio_service import ExecuteOrder, find_category_index


@click.group()
def order() -> None:
    """Enter buy and sell orders."""
    pass


def order_options(func):  # type: ignore[no-untyped-def]
    """Options shared by buy and sell."""
    options = [
        click.option("--category", "category_id", required=True, help="Category id or name"),
        click.option("--symbol", required=True, help="Stock symbol (e.g., 2330, AAPL)"),
        click.option("--name", help="Display name (default: symbol)"),
        click.option("--price", required=True, help="Price per share in trade currency"),
        click.option("--shares", required=True, help="Number of shares"),
        click.option("--rate", help="Exchange rate (default: 1 for TW, settings rate for US)"),
        click.option("--fee", help="Fee in TWD (default: estimated)"),
        click.option("--tax", help="Tax in TWD (default: estimated)"),
        click.option("--date", help="Trade date (YYYY-MM-DD or ISO timestamp, default: now)"),
        click.option("--martingale", is_flag=True, help="Trade in the martingale portfolio"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _submit(
    ctx: click.Context,
    action: OrderAction,
    category_id: str,
    symbol: str,
    name: Optional[str],
    price: str,
    shares: str,
    rate: Optional[str],
    fee: Optional[str],
    tax: Optional[str],
    date: Optional[str],
    martingale: bool,
) -> None:
    state = load_state(ctx)
    assert state is not None

    try:
        category = state.collection(martingale)[
            find_category_index(state.collection(martingale), category_id)
        ]
        price_value = to_decimal(price, "price")
        shares_value = to_decimal(shares, "shares")

        if rate is not None:
            exchange_rate = to_decimal(rate, "exchange rate")
        elif category.market == Market.US:
            exchange_rate = state.settings.us_exchange_rate
        else:
            exchange_rate = Decimal("1")

        estimate = estimate_fees(
            category.market, action, price_value, shares_value, state.settings
        )
        trade = TradeOrder(
            symbol=symbol.strip().upper(),
            name=name or symbol.strip().upper(),
            action=action,
            price=price_value,
            shares=shares_value,
            exchange_rate=exchange_rate,
            fee=to_decimal(fee, "fee") if fee is not None else estimate.fee,
            tax=to_decimal(tax, "tax") if tax is not None else estimate.tax,
            transaction_date=parse_timestamp(date) if date else None,
        )
    except LibaoError as e:
        fail(e)

    new_state = mutate(
        ctx, ExecuteOrder(category_id=category.id, order=trade, martingale=martingale)
    )
    record = new_state.transactions[0]

    verb = "Bought" if action == OrderAction.BUY else "Sold"
    console.print(
        f"[green]{verb} {record.shares} {record.symbol} @ {record.price} "
        f"in '{record.category_name}'[/green]"
    )
    console.print(f"├─ Amount: {money(record.amount)}")
    console.print(f"├─ Fee: {money(record.fee)} | Tax: {money(record.tax)}")
    if action == OrderAction.SELL:
        console.print(f"├─ Realized P&L: {money(record.realized_pnl)}")
    console.print(f"└─ Portfolio ratio: {record.portfolio_ratio:.2f}%")


@order.command()
@order_options
@click.pass_context
def buy(ctx: click.Context, **kwargs: Optional[str]) -> None:
    """Buy shares into a category."""
    _submit(ctx, OrderAction.BUY, **kwargs)  # type: ignore[arg-type]


@order.command()
@order_options
@click.pass_context
def sell(ctx: click.Context, **kwargs: Optional[str]) -> None:
    """Sell shares from a category (oldest lots first)."""
    _submit(ctx, OrderAction.SELL, **kwargs)  # type: ignore[arg-type]
