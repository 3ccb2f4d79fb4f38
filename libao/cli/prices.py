"""Market price subcommands."""

import asyncio
from dataclasses import replace
from typing import Optional

import click
from rich.table import Table

from libao.cli.context import console, load_state, mutate
from libao.services.portfolio_service import UpdatePrices, UpdateSettings
from libao.services.price_service import PriceService


@click.group()
def prices() -> None:
    """Refresh market prices and the exchange rate."""
    pass


@prices.command()
@click.option("--category", "category_id", help="Only this category (id or name)")
@click.option("--symbol", help="Only this symbol")
@click.pass_context
def update(ctx: click.Context, category_id: Optional[str], symbol: Optional[str]) -> None:
    """Fetch current prices for held assets."""
    state = load_state(ctx)
    assert state is not None

    keys = [
        (asset.symbol, category.market)
        for category in [*state.categories, *state.martingale]
        if category_id is None or category_id in (category.id, category.name)
        for asset in category.assets
        if symbol is None or asset.symbol == symbol.strip().upper()
    ]
    if not keys:
        console.print("[yellow]No holdings to price.[/yellow]")
        return

    service = PriceService()
    with console.status(f"Fetching {len(set(keys))} prices..."):
        fetched = asyncio.run(service.get_prices(keys))

    if fetched:
        mutate(ctx, UpdatePrices(prices=fetched, category_id=category_id))

    table = Table(title="Prices")
    table.add_column("Symbol", style="cyan")
    table.add_column("Market", style="yellow")
    table.add_column("Price", justify="right")
    for key in dict.fromkeys(keys):
        symbol, market = key
        price = fetched.get(key)
        shown = f"{price:,.2f}" if price is not None else "[red]n/a[/red]"
        table.add_row(symbol, market.value, shown)
    console.print(table)

    missing = len(set(keys)) - len(fetched)
    if missing:
        console.print(f"[yellow]{missing} symbols kept their previous price.[/yellow]")


@prices.command()
@click.option("--save", is_flag=True, help="Store the rate in settings")
@click.pass_context
def rate(ctx: click.Context, save: bool) -> None:
    """Show the current USD/TWD exchange rate."""
    service = PriceService()
    with console.status("Fetching USD/TWD..."):
        usd_twd = asyncio.run(service.get_usd_twd_rate())

    if usd_twd is None:
        console.print("[red]Exchange rate unavailable.[/red]")
        raise click.exceptions.Exit(1)

    console.print(f"USD/TWD: [bold]{usd_twd:.4f}[/bold]")
    if save:
        state = load_state(ctx)
        assert state is not None
        mutate(ctx, UpdateSettings(settings=replace(state.settings, us_exchange_rate=usd_twd)))
        console.print("[green]Saved to settings.[/green]")
