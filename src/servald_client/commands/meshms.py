"""MeshMS messaging."""

from typing import Annotated

import typer

from servald_client.app_context import use_context
from servald_client.errors import ServalDError


def meshms_send(ctx: typer.Context, sender: str, recipient: str, message: str) -> None:
    """Send a message."""
    app = use_context(ctx)
    sender_id, recipient_id = app.parse_sid(sender), app.parse_sid(recipient)
    try:
        app.servald.send_message(sender_id, recipient_id, message)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_message_sent()


def meshms_conversations(ctx: typer.Context, sid: str) -> None:
    """List the conversations of an identity."""
    app = use_context(ctx)
    subscriber_id = app.parse_sid(sid)
    try:
        rows = list(app.servald.list_conversations(subscriber_id))
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_rows(rows)


def meshms_list(ctx: typer.Context, sender: str, recipient: str) -> None:
    """List the messages between two identities."""
    app = use_context(ctx)
    sender_id, recipient_id = app.parse_sid(sender), app.parse_sid(recipient)
    try:
        rows = list(app.servald.list_messages(sender_id, recipient_id))
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_rows(rows)


def meshms_read(
    ctx: typer.Context,
    sender: str,
    recipient: str,
    offset: Annotated[int | None, typer.Argument(help="Mark read up to this message offset")] = None,
) -> None:
    """Mark messages as read."""
    app = use_context(ctx)
    sender_id, recipient_id = app.parse_sid(sender), app.parse_sid(recipient)
    try:
        app.servald.read_messages(sender_id, recipient_id, offset)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_messages_read()
