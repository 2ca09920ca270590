"""Read and change servald configuration variables."""

import typer

from servald_client.app_context import use_context
from servald_client.errors import ServalDError
from servald_client.records import ConfigOption


def config_get(ctx: typer.Context, pattern: str | None = typer.Argument(default=None, help="Variable name or pattern")) -> None:
    """Show config variables."""
    app = use_context(ctx)
    try:
        options: list[ConfigOption] = app.servald.get_config_options(pattern)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_config_options(options)


def config_set(ctx: typer.Context, name: str, value: str) -> None:
    """Set a config variable."""
    app = use_context(ctx)
    try:
        app.servald.set_config(name, value)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_config_set(name, value)


def config_del(ctx: typer.Context, name: str) -> None:
    """Unset a config variable."""
    app = use_context(ctx)
    try:
        app.servald.del_config(name)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_config_deleted(name)
