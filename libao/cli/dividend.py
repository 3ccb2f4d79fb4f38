"""Dividend subcommands."""

import asyncio

import click
from rich.table import Table

from libao.cli.context import console, fail, get_role, load_state, money, mutate
from libao.lib.errors import LibaoError
from libao.services.access import require_martingale_edit
from libao.services.dividends import reset_dividends, scan_dividends
from libao.services.portfolio_service import ConfirmDividends, ResetDividends
from libao.services.price_service import PriceService


@click.group()
def dividend() -> None:
    """Find and record cash dividends."""
    pass


@dividend.command()
@click.option("--confirm", is_flag=True, help="Record the found dividends")
@click.option("--martingale", is_flag=True, help="Scan the martingale portfolio")
@click.pass_context
def scan(ctx: click.Context, confirm: bool, martingale: bool) -> None:
    """Look up dividends paid on your holdings since their first purchase."""
    state = load_state(ctx)
    assert state is not None
    if martingale:
        try:
            require_martingale_edit(get_role(ctx), "scan martingale dividends")
        except LibaoError as e:
            fail(e)

    with console.status("Scanning dividend history..."):
        found = asyncio.run(scan_dividends(state, PriceService(), martingale))

    if not found:
        console.print("[yellow]No new dividends found.[/yellow]")
        return

    table = Table(title="Dividends")
    table.add_column("Ex-date", style="cyan")
    table.add_column("Symbol")
    table.add_column("Category")
    table.add_column("Shares", justify="right")
    table.add_column("Per Share", justify="right")
    table.add_column("Gross (TWD)", justify="right", style="magenta")
    table.add_column("Tax Rate", justify="right")
    for item in found:
        table.add_row(
            item.ex_date.isoformat(),
            item.symbol,
            item.category_name,
            f"{item.shares:,}",
            f"{item.rate_per_share:.4f}",
            money(item.gross_twd),
            f"{item.tax_rate:.0%}",
        )
    console.print(table)

    if not confirm:
        console.print("[dim]Run again with --confirm to record them.[/dim]")
        return

    mutate(ctx, ConfirmDividends(dividends=tuple(found), martingale=martingale))
    console.print(f"[green]Recorded {len(found)} dividends.[/green]")


@dividend.command()
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.option("--martingale", is_flag=True, help="Reset the martingale dividends")
@click.pass_context
def reset(ctx: click.Context, yes: bool, martingale: bool) -> None:
    """Delete every recorded dividend."""
    state = load_state(ctx)
    assert state is not None
    _, count = reset_dividends(state, martingale)
    if not count:
        console.print("[yellow]No dividend records.[/yellow]")
        return

    if not yes and not click.confirm(f"Delete {count} dividend records?"):
        click.echo("Aborted.")
        return

    mutate(ctx, ResetDividends(martingale=martingale))
    console.print(f"[green]Deleted {count} dividend records.[/green]")
