"""Martingale portfolio sharing subcommands."""

import click

from libao.cli.context import console, fail, get_role, get_user, load_state, mutate
from libao.lib.errors import LibaoError
from libao.services.access import can_view_martingale
from libao.services.portfolio_service import (
    ClearMartingale,
    MergePublicMartingale,
    ResetMartingale,
)
from libao.services.snapshot_store import SnapshotStore


@click.group()
def martingale() -> None:
    """Share the martingale model portfolio."""
    pass


@martingale.command()
@click.pass_context
def publish(ctx: click.Context) -> None:
    """Publish your martingale portfolio to members (admin only)."""
    state = load_state(ctx)
    assert state is not None
    try:
        count = SnapshotStore().publish_martingale(state, get_role(ctx), get_user(ctx))
    except LibaoError as e:
        fail(e)
    console.print(f"[green]Published martingale portfolio ({count} records).[/green]")


@martingale.command()
@click.pass_context
def pull(ctx: click.Context) -> None:
    """Replace your martingale portfolio with the published one."""
    role = get_role(ctx)
    if not can_view_martingale(role):
        mutate(ctx, ClearMartingale())
        console.print("[yellow]Your role cannot view the martingale portfolio.[/yellow]")
        return

    try:
        published = SnapshotStore().load_public_martingale()
    except LibaoError as e:
        fail(e)

    if published is None:
        console.print("[yellow]Nothing has been published yet.[/yellow]")
        return

    categories, transactions = published
    mutate(
        ctx,
        MergePublicMartingale(categories=tuple(categories), transactions=tuple(transactions)),
    )
    console.print(
        f"[green]Pulled {len(categories)} categories and {len(transactions)} records.[/green]"
    )


@martingale.command()
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def reset(ctx: click.Context, yes: bool) -> None:
    """Empty the martingale holdings and history (admin only)."""
    if not yes and not click.confirm("Delete all martingale holdings and records?"):
        click.echo("Aborted.")
        return

    mutate(ctx, ResetMartingale())
    console.print("[green]Martingale portfolio reset.[/green]")
