"""Portfolio subcommands."""

from dataclasses import replace
from typing import Optional

import click
from rich.table import Table

from libao.cli.context import (
    console,
    fail,
    get_role,
    load_state,
    money,
    mutate,
    signed_color,
)
from libao.lib.errors import LibaoError
from libao.lib.validators import to_decimal, validate_exchange_rate
from libao.models import UsBroker
from libao.services.access import require_martingale_view
from libao.services.ledger_replay import repair_portfolio
from libao.services.portfolio_service import (
    MigrateLegacyDividends,
    RepairPortfolio,
    UpdateSettings,
)
from libao.services.transaction_classifier import migrate_legacy_dividends
from libao.services.valuation import SideView, build_portfolio_view


@click.group()
def portfolio() -> None:
    """View and maintain your portfolio."""
    pass


def _side(ctx: click.Context, martingale: bool) -> SideView:
    state = load_state(ctx)
    assert state is not None
    role = get_role(ctx)
    try:
        if martingale:
            require_martingale_view(role, "view the martingale portfolio")
        view = build_portfolio_view(state, role)
    except LibaoError as e:
        fail(e)

    side = view.martingale if martingale else view.personal
    assert side is not None
    return side


def _martingale_option(func):  # type: ignore[no-untyped-def]
    return click.option(
        "--martingale", is_flag=True, help="Use the martingale portfolio instead of yours"
    )(func)


@portfolio.command()
@_martingale_option
@click.pass_context
def show(ctx: click.Context, martingale: bool) -> None:
    """Show categories, holdings and totals."""
    side = _side(ctx, martingale)
    totals = side.totals

    title = "Martingale Portfolio" if martingale else "Portfolio"
    console.print(f"\n[bold cyan]{title}[/bold cyan]")
    console.print(f"├─ Total Capital: {money(totals.total_capital)}")
    console.print(
        f"├─ Invested: {money(totals.total_invested)} ({totals.invested_ratio:.1f}%)"
    )
    console.print(f"├─ Market Value: {money(totals.total_market_value)}")
    color = signed_color(totals.total_unrealized_pnl)
    console.print(
        f"├─ Unrealized P&L: [{color}]{money(totals.total_unrealized_pnl)}[/{color}] "
        f"({totals.unrealized_ratio:.2f}%)"
    )
    color = signed_color(totals.total_realized_pnl)
    console.print(f"├─ Realized P&L: [{color}]{money(totals.total_realized_pnl)}[/{color}]")
    console.print(f"└─ Net Worth: {money(totals.net_worth)}")

    for calc in side.categories:
        category = calc.category
        console.print(
            f"\n[bold]{category.name}[/bold] [dim]({category.market.value}, "
            f"{category.allocation_percent}%)[/dim]"
        )
        console.print(
            f"Budget {money(calc.projected_investment)} | "
            f"Invested {money(calc.invested_amount)} ({calc.investment_ratio:.1f}%) | "
            f"Cash {money(calc.remaining_cash)}"
        )
        if not calc.assets:
            console.print("[dim]No holdings[/dim]")
            continue

        table = Table()
        table.add_column("Symbol", style="cyan")
        table.add_column("Name")
        table.add_column("Shares", justify="right", style="yellow")
        table.add_column("Avg Cost", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Market Value", justify="right", style="magenta")
        table.add_column("Unrealized", justify="right")
        table.add_column("Return", justify="right")
        table.add_column("Weight", justify="right")

        for item in calc.assets:
            asset = item.asset
            color = signed_color(item.unrealized_pnl)
            table.add_row(
                asset.symbol,
                asset.name,
                f"{asset.shares:,}",
                f"{asset.avg_cost:,.2f}",
                f"{asset.current_price:,.2f}",
                money(item.market_value),
                f"[{color}]{money(item.unrealized_pnl)}[/{color}]",
                f"[{color}]{item.return_rate:.2f}%[/{color}]",
                f"{item.portfolio_ratio:.1f}%",
            )
        console.print(table)


@portfolio.command()
@_martingale_option
@click.pass_context
def monthly(ctx: click.Context, martingale: bool) -> None:
    """Show realized P&L by month."""
    side = _side(ctx, martingale)
    if not side.monthly_pnl:
        console.print("[yellow]No realized P&L yet.[/yellow]")
        return

    table = Table(title="Monthly Realized P&L")
    table.add_column("Month", style="cyan")
    table.add_column("Realized P&L", justify="right")
    for entry in side.monthly_pnl:
        color = signed_color(entry.value)
        table.add_row(entry.month, f"[{color}]{money(entry.value)}[/{color}]")
    console.print(table)


@portfolio.command()
@_martingale_option
@click.pass_context
def industry(ctx: click.Context, martingale: bool) -> None:
    """Show market value by industry."""
    side = _side(ctx, martingale)
    if not side.industries:
        console.print("[yellow]No holdings.[/yellow]")
        return

    table = Table(title="Industry Breakdown")
    table.add_column("Industry", style="cyan")
    table.add_column("Market Value", justify="right", style="magenta")
    table.add_column("Share", justify="right")
    for slice_ in side.industries:
        table.add_row(slice_.name, money(slice_.value), f"{slice_.percent:.1f}%")
    console.print(table)


@portfolio.command()
@_martingale_option
@click.pass_context
def repair(ctx: click.Context, martingale: bool) -> None:
    """Rebuild holdings and lots from the transaction history."""
    state = load_state(ctx)
    assert state is not None
    _, report = repair_portfolio(state, martingale)

    mutate(ctx, RepairPortfolio(martingale=martingale))

    console.print("[green]Portfolio repaired.[/green]")
    console.print(f"Replayed: {report.replayed}")
    console.print(f"Skipped: {report.skipped}")
    for record_id in report.oversold:
        console.print(f"[yellow]Warning: sell {record_id} exceeds the replayed holding[/yellow]")


@portfolio.command()
@click.option("--us-rate", type=str, help="TWD per USD used to value US holdings")
@click.option("--fees/--no-fees", default=None, help="Estimate fees and taxes on orders")
@click.option("--broker", type=click.Choice([b.value for b in UsBroker]), help="US broker")
@click.option("--tw-discount", type=str, help="TW commission discount in tenths (6 = 60%)")
@click.option(
    "--notifications/--no-notifications", default=None, help="Enable system notifications"
)
@click.pass_context
def settings(
    ctx: click.Context,
    us_rate: Optional[str],
    fees: Optional[bool],
    broker: Optional[str],
    tw_discount: Optional[str],
    notifications: Optional[bool],
) -> None:
    """Show or change settings."""
    state = load_state(ctx)
    assert state is not None
    current = state.settings

    changes = {}
    try:
        if us_rate is not None:
            changes["us_exchange_rate"] = validate_exchange_rate(us_rate)
        if tw_discount is not None:
            changes["tw_fee_discount"] = to_decimal(tw_discount, "TW fee discount")
    except LibaoError as e:
        fail(e)
    if fees is not None:
        changes["enable_fees"] = fees
    if broker is not None:
        changes["us_broker"] = UsBroker(broker)
    if notifications is not None:
        changes["enable_system_notifications"] = notifications

    if changes:
        current = replace(current, **changes)
        mutate(ctx, UpdateSettings(settings=current))
        console.print("[green]Settings updated.[/green]")

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("US exchange rate", str(current.us_exchange_rate))
    table.add_row("Fees enabled", "yes" if current.enable_fees else "no")
    table.add_row("US broker", current.us_broker.value)
    table.add_row("TW fee discount", str(current.tw_fee_discount))
    table.add_row("Notifications", "yes" if current.enable_system_notifications else "no")
    console.print(table)


@portfolio.command()
@click.pass_context
def migrate(ctx: click.Context) -> None:
    """Pin legacy martingale dividends to the martingale side."""
    state = load_state(ctx)
    assert state is not None
    _, count = migrate_legacy_dividends(state.transactions, state.martingale_category_names())
    if not count:
        console.print("[yellow]No legacy dividend records to migrate.[/yellow]")
        return

    mutate(ctx, MigrateLegacyDividends())
    console.print(f"[green]Migrated {count} dividend records.[/green]")
