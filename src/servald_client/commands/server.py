"""Start, stop and query the servald server."""

import typer

from servald_client.app_context import use_context
from servald_client.errors import ServalDError


def start(ctx: typer.Context) -> None:
    """Start the server if it is not already running."""
    app = use_context(ctx)
    try:
        pid = app.lifecycle.start()
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_started(pid)


def stop(ctx: typer.Context) -> None:
    """Stop the server."""
    app = use_context(ctx)
    try:
        pid = app.lifecycle.stop()
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_stopped(pid)


def status(ctx: typer.Context) -> None:
    """Show whether the server is running."""
    app = use_context(ctx)
    try:
        running = app.servald.server_is_running()
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_status(running=running)


def peers(ctx: typer.Context) -> None:
    """Show the number of reachable peers."""
    app = use_context(ctx)
    try:
        count = app.servald.get_peer_count()
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_peer_count(count)
