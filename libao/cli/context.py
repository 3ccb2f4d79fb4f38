"""Shared helpers for CLI commands: loading, mutating and saving the portfolio."""

from decimal import Decimal
from typing import Any, NoReturn, Optional

import click
from rich.console import Console

from libao.lib.config import DEFAULT_USER_ID
from libao.lib.db import init_db
from libao.lib.errors import LibaoError, format_error_message, get_error_color
from libao.models import PortfolioState, UserRole, new_portfolio_state
from libao.services.access import parse_role
from libao.services.portfolio_service import PortfolioAction, apply_mutation
from libao.services.snapshot_store import SnapshotStore

console = Console()


def get_user(ctx: click.Context) -> str:
    obj = ctx.find_root().obj or {}
    return obj.get("USER") or DEFAULT_USER_ID


def get_role(ctx: click.Context) -> UserRole:
    obj = ctx.find_root().obj or {}
    return parse_role(obj.get("ROLE"))


def fail(error: Exception) -> NoReturn:
    """Print a library error in its color and exit with status 1."""
    color = get_error_color(error)
    console.print(f"[{color}]Error: {format_error_message(error)}[/{color}]")
    raise click.exceptions.Exit(1)


def load_state(ctx: click.Context, create: bool = True) -> Optional[PortfolioState]:
    """
    Load the current user's portfolio, creating a fresh one when missing.

    Args:
        ctx: Click context
        create: Create and save a default portfolio if none exists

    Returns:
        PortfolioState, or None when missing and ``create`` is False
    """
    init_db()
    store = SnapshotStore()
    user_id = get_user(ctx)
    state = store.load(user_id)
    if state is None and create:
        state = new_portfolio_state()
        store.save(user_id, state)
        console.print(f"[dim]Created a new portfolio for '{user_id}'[/dim]")
    return state


def save_state(ctx: click.Context, state: PortfolioState) -> None:
    SnapshotStore().save(get_user(ctx), state)


def mutate(ctx: click.Context, action: PortfolioAction) -> PortfolioState:
    """Apply one action to the stored portfolio and save the result."""
    try:
        state = load_state(ctx)
        assert state is not None
        new_state = apply_mutation(state, action, get_role(ctx))
        save_state(ctx, new_state)
    except LibaoError as e:
        fail(e)
    return new_state


def money(value: Any, places: int = 0) -> str:
    """Format a TWD amount with thousands separators."""
    return f"{Decimal(value):,.{places}f}"


def signed_color(value: Decimal) -> str:
    """Taiwan convention: gains are red, losses are green."""
    if value > 0:
        return "red"
    if value < 0:
        return "green"
    return "white"
