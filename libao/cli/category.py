"""Category subcommands."""

import click
from rich.table import Table

from libao.cli.context import console, fail, get_role, load_state, money, mutate
from libao.lib.errors import LibaoError
from libao.lib.validators import to_decimal
from libao.models import Market
from libao.services.access import require_martingale_view
from libao.services.portfolio_service import (
    AddCategory,
    DeleteCategory,
    MoveCategory,
    UpdateAllocation,
)

martingale_option = click.option(
    "--martingale", is_flag=True, help="Work on the martingale categories"
)


@click.group()
def category() -> None:
    """Manage allocation categories."""
    pass


@category.command(name="list")
@martingale_option
@click.pass_context
def list_categories(ctx: click.Context, martingale: bool) -> None:
    """List categories with their allocation and budget."""
    state = load_state(ctx)
    assert state is not None
    if martingale:
        try:
            require_martingale_view(get_role(ctx), "view the martingale portfolio")
        except LibaoError as e:
            fail(e)

    categories = state.collection(martingale)
    if not categories:
        console.print("[yellow]No categories. Add one with 'category add'.[/yellow]")
        return

    table = Table(title="Categories")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Market", style="yellow")
    table.add_column("Allocation", justify="right")
    table.add_column("Budget", justify="right", style="magenta")
    table.add_column("Assets", justify="right")

    total_percent = sum(c.allocation_percent for c in categories)
    for c in categories:
        table.add_row(
            c.id,
            c.name,
            c.market.value,
            f"{c.allocation_percent}%",
            money(c.projected_investment(state.total_capital)),
            str(len(c.assets)),
        )
    console.print(table)
    if total_percent != 100:
        console.print(f"[yellow]Allocations add up to {total_percent}%[/yellow]")


@category.command()
@click.option("--name", required=True, help="Category name")
@click.option("--market", required=True, type=click.Choice([m.value for m in Market]))
@click.option("--percent", required=True, help="Share of total capital (0-100)")
@martingale_option
@click.pass_context
def add(ctx: click.Context, name: str, market: str, percent: str, martingale: bool) -> None:
    """Add an empty category."""
    try:
        allocation = to_decimal(percent, "percent")
    except LibaoError as e:
        fail(e)

    mutate(
        ctx,
        AddCategory(
            name=name, market=Market(market), allocation_percent=allocation, martingale=martingale
        ),
    )
    console.print(f"[green]Category '{name}' added.[/green]")


@category.command()
@click.argument("category_id")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@martingale_option
@click.pass_context
def delete(ctx: click.Context, category_id: str, yes: bool, martingale: bool) -> None:
    """Delete a category and its holdings (history is kept)."""
    if not yes and not click.confirm(f"Delete category '{category_id}' and its holdings?"):
        click.echo("Aborted.")
        return

    mutate(ctx, DeleteCategory(category_id=category_id, martingale=martingale))
    console.print(f"[green]Category '{category_id}' deleted.[/green]")


@category.command()
@click.argument("category_id")
@click.argument("percent")
@martingale_option
@click.pass_context
def allocate(ctx: click.Context, category_id: str, percent: str, martingale: bool) -> None:
    """Change a category's share of total capital."""
    try:
        allocation = to_decimal(percent, "percent")
    except LibaoError as e:
        fail(e)

    mutate(
        ctx,
        UpdateAllocation(
            category_id=category_id, allocation_percent=allocation, martingale=martingale
        ),
    )
    console.print(f"[green]Allocation of '{category_id}' set to {allocation}%.[/green]")


@category.command()
@click.argument("category_id")
@click.option("--up", "direction", flag_value=-1, default=True, help="Move up one place")
@click.option("--down", "direction", flag_value=1, help="Move down one place")
@martingale_option
@click.pass_context
def move(ctx: click.Context, category_id: str, direction: int, martingale: bool) -> None:
    """Reorder a category."""
    mutate(ctx, MoveCategory(category_id=category_id, offset=int(direction), martingale=martingale))
    console.print(f"[green]Category '{category_id}' moved.[/green]")
