"""
Database initialization CLI command.

Provides commands for initializing and resetting the libao database.
"""

import click

from libao.cli.context import console, fail, get_user, save_state
from libao.lib.config import INITIAL_CAPITAL, get_cache_dir, get_db_path
from libao.lib.db import init_db
from libao.lib.errors import LibaoError
from libao.lib.validators import validate_non_negative
from libao.models import new_portfolio_state
from libao.services.snapshot_store import SnapshotStore


@click.command()
@click.option("--reset", is_flag=True, help="Reset your portfolio (WARNING: deletes all data)")
@click.option(
    "--capital",
    type=str,
    default=str(INITIAL_CAPITAL),
    show_default=True,
    help="Opening capital in TWD",
)
@click.pass_context
def init(ctx: click.Context, reset: bool, capital: str) -> None:
    """Initialize the libao database and your portfolio."""
    init_db()
    store = SnapshotStore()
    user_id = get_user(ctx)

    try:
        existing = store.load(user_id)
    except LibaoError as e:
        if not reset:
            fail(e)
        existing = None

    if existing is not None and not reset:
        click.echo(f"Portfolio for '{user_id}' already exists in {get_db_path()}")
        click.echo("Use --reset to recreate (WARNING: this will delete all data)")
        return

    if reset:
        if not click.confirm("This will DELETE ALL DATA. Continue?"):
            click.echo("Aborted.")
            return
        store.reset(user_id)

    try:
        state = new_portfolio_state(validate_non_negative(capital, "capital"))
    except LibaoError as e:
        fail(e)

    save_state(ctx, state)
    console.print(f"[green]Portfolio initialized for '{user_id}'[/green]")
    click.echo(f"Database: {get_db_path()}")
    click.echo(f"Cache directory: {get_cache_dir()}")
