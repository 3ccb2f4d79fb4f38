"""Capital ledger subcommands."""

from typing import Optional

import click
from rich.table import Table

from libao.cli.context import console, fail, load_state, money, mutate
from libao.lib.errors import LibaoError
from libao.lib.validators import parse_timestamp, to_decimal
from libao.models import CapitalLogType
from libao.services.portfolio_service import AddCapitalLog, DeleteCapitalLog


@click.group()
def capital() -> None:
    """Record deposits and withdrawals."""
    pass


def _record(
    ctx: click.Context, log_type: CapitalLogType, amount: str, note: str, date: Optional[str]
) -> None:
    try:
        action = AddCapitalLog(
            log_type=log_type,
            amount=to_decimal(amount, "amount"),
            note=note,
            date=parse_timestamp(date) if date else None,
        )
    except LibaoError as e:
        fail(e)

    state = mutate(ctx, action)
    console.print(f"[green]{log_type.value.title()} of {money(action.amount)} recorded.[/green]")
    console.print(f"Total capital: {money(state.total_capital)}")


@capital.command()
@click.argument("amount")
@click.option("--note", default="", help="Note for this entry")
@click.option("--date", help="Entry date (YYYY-MM-DD)")
@click.pass_context
def deposit(ctx: click.Context, amount: str, note: str, date: Optional[str]) -> None:
    """Add capital (TWD)."""
    _record(ctx, CapitalLogType.DEPOSIT, amount, note, date)


@capital.command()
@click.argument("amount")
@click.option("--note", default="", help="Note for this entry")
@click.option("--date", help="Entry date (YYYY-MM-DD)")
@click.pass_context
def withdraw(ctx: click.Context, amount: str, note: str, date: Optional[str]) -> None:
    """Withdraw capital (TWD)."""
    _record(ctx, CapitalLogType.WITHDRAW, amount, note, date)


@capital.command(name="list")
@click.pass_context
def list_logs(ctx: click.Context) -> None:
    """List capital movements, newest first."""
    state = load_state(ctx)
    assert state is not None
    if not state.capital_logs:
        console.print("[yellow]No capital movements.[/yellow]")
        return

    table = Table(title="Capital Ledger")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Type")
    table.add_column("Amount", justify="right", style="magenta")
    table.add_column("Note")
    for log in state.capital_logs:
        color = "green" if log.type == CapitalLogType.DEPOSIT else "red"
        table.add_row(
            log.id,
            log.date.strftime("%Y-%m-%d"),
            f"[{color}]{log.type.value}[/{color}]",
            money(log.amount),
            log.note,
        )
    console.print(table)
    console.print(f"Total capital: {money(state.total_capital)}")


@capital.command()
@click.argument("log_id")
@click.pass_context
def delete(ctx: click.Context, log_id: str) -> None:
    """Delete a capital movement."""
    state = mutate(ctx, DeleteCapitalLog(log_id=log_id))
    console.print("[green]Capital entry deleted.[/green]")
    console.print(f"Total capital: {money(state.total_capital)}")
