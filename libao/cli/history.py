"""Transaction history subcommands."""

from typing import Optional

import click
from rich.table import Table

from libao.cli.context import console, fail, get_role, load_state, money, mutate, signed_color
from libao.lib.errors import LibaoError
from libao.models import TransactionType
from libao.services.access import require_martingale_view
from libao.services.portfolio_service import RevokeTransaction
from libao.services.transaction_classifier import filter_side
from libao.services.transaction_reverser import check_revocable

TYPE_COLORS = {
    TransactionType.BUY: "cyan",
    TransactionType.SELL: "yellow",
    TransactionType.DIVIDEND: "magenta",
}


@click.group()
def history() -> None:
    """Browse and revoke transactions."""
    pass


@history.command(name="list")
@click.option("--symbol", help="Only this symbol")
@click.option("--category", "category_name", help="Only this category name")
@click.option("--limit", type=int, default=50, show_default=True, help="Rows to show")
@click.option("--martingale", is_flag=True, help="Show martingale records")
@click.pass_context
def list_transactions(
    ctx: click.Context,
    symbol: Optional[str],
    category_name: Optional[str],
    limit: int,
    martingale: bool,
) -> None:
    """List transactions, newest first."""
    state = load_state(ctx)
    assert state is not None
    if martingale:
        try:
            require_martingale_view(get_role(ctx), "view the martingale portfolio")
        except LibaoError as e:
            fail(e)

    records = filter_side(state.transactions, state.martingale_category_names(), martingale)
    if symbol:
        records = [r for r in records if r.symbol == symbol.strip().upper()]
    if category_name:
        records = [r for r in records if r.category_name == category_name]

    if not records:
        console.print("[yellow]No transactions found.[/yellow]")
        return

    table = Table(title="Transactions")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Symbol", style="cyan")
    table.add_column("Category")
    table.add_column("Shares", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Amount", justify="right", style="magenta")
    table.add_column("Realized", justify="right")
    table.add_column("Revocable", justify="center")

    for record in records[:limit]:
        color = TYPE_COLORS.get(record.type, "white")
        pnl_color = signed_color(record.realized_pnl)
        revocable = check_revocable(record, state).allowed
        table.add_row(
            record.id,
            record.date.strftime("%Y-%m-%d %H:%M"),
            f"[{color}]{record.type.value}[/{color}]",
            record.symbol,
            record.category_name,
            f"{record.shares:,}",
            f"{record.price:,.2f}",
            money(record.amount),
            f"[{pnl_color}]{money(record.realized_pnl)}[/{pnl_color}]",
            "✓" if revocable else "",
        )
    console.print(table)
    if len(records) > limit:
        console.print(f"[dim]Showing {limit} of {len(records)} records[/dim]")


@history.command()
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def revoke(ctx: click.Context, transaction_id: str, yes: bool) -> None:
    """Undo a transaction and restore the holding it changed."""
    state = load_state(ctx)
    assert state is not None
    record = state.find_transaction(transaction_id)
    if record is not None and not yes:
        prompt = (
            f"Revoke {record.type.value} of {record.shares} {record.symbol} "
            f"on {record.date:%Y-%m-%d}?"
        )
        if not click.confirm(prompt):
            click.echo("Aborted.")
            return

    mutate(ctx, RevokeTransaction(transaction_id=transaction_id))
    console.print(f"[green]Transaction {transaction_id} revoked.[/green]")
