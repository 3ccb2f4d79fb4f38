"""CLI entry point for libao."""

import logging
import sys
import traceback

import click
from rich.console import Console

from libao import __version__
from libao.cli import capital, category, dividend, history, martingale, order, portfolio, prices
from libao.cli import init as init_cmd
from libao.lib.config import ROLE_ENV, USER_ENV
from libao.lib.errors import LibaoError, format_error_message, get_error_color
from libao.lib.logging_config import get_logger, setup_logging
from libao.models import UserRole

console = Console()
logger = get_logger(__name__)


@click.group()  # type: ignore[misc]
@click.option("--debug", is_flag=True, help="Enable debug mode")  # type: ignore[misc]
@click.option(  # type: ignore[misc]
    "--user", envvar=USER_ENV, default=None, help="Portfolio owner (default: local)"
)
@click.option(  # type: ignore[misc]
    "--role",
    envvar=ROLE_ENV,
    type=click.Choice([r.value for r in UserRole]),
    default=UserRole.VIEWER.value,
    help="Role of the current user",
)
@click.pass_context  # type: ignore[misc]
def main(ctx: click.Context, debug: bool, user: str | None, role: str) -> None:
    """Libao - Allocation-bucket portfolio tracker for Taiwan and US stocks."""
    setup_logging(logging.DEBUG if debug else logging.INFO)
    ctx.ensure_object(dict)
    ctx.obj["DEBUG"] = debug
    ctx.obj["USER"] = user
    ctx.obj["ROLE"] = role
    logger.debug(f"Running as user={user or 'local'} role={role}")


def handle_exception(
    exc_type: type[BaseException], exc_value: BaseException, exc_traceback: object
) -> None:
    """
    Global exception handler for CLI.

    Formats exceptions with Rich colors and provides user-friendly messages.
    """
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)  # type: ignore[arg-type]
        return

    color = get_error_color(exc_value) if isinstance(exc_value, Exception) else "red"
    message = (
        format_error_message(exc_value) if isinstance(exc_value, Exception) else str(exc_value)
    )

    console.print(f"\n[{color}]✗ Error: {message}[/{color}]\n")

    debug_mode = "--debug" in sys.argv
    if not isinstance(exc_value, LibaoError):
        console.print("[dim]Unexpected error occurred. Use --debug for full traceback.[/dim]")
    if debug_mode:
        console.print("[dim]Traceback:[/dim]")
        traceback.print_exception(exc_value)

    sys.exit(1)


# Install global exception handler
sys.excepthook = handle_exception


@main.command()  # type: ignore[misc]
def version() -> None:
    """Show version information."""
    click.echo(f"libao version {__version__}")


# Register subcommands
main.add_command(init_cmd.init)
main.add_command(portfolio.portfolio)
main.add_command(category.category)
main.add_command(capital.capital)
main.add_command(order.order)
main.add_command(history.history)
main.add_command(prices.prices)
main.add_command(dividend.dividend)
main.add_command(martingale.martingale)


if __name__ == "__main__":
    main()
