"""Keyring identities and lookups."""

from typing import Annotated

import typer

from servald_client.app_context import use_context
from servald_client.errors import ServalDError
from servald_client.records import DnaResult


def keyring_list(ctx: typer.Context) -> None:
    """List identities in the keyring."""
    app = use_context(ctx)
    try:
        entries = app.servald.keyring_list()
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_identities(entries)


def keyring_add(ctx: typer.Context) -> None:
    """Create a new identity."""
    app = use_context(ctx)
    try:
        identity = app.servald.keyring_add()
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_identity(identity)


def keyring_set(
    ctx: typer.Context,
    sid: str,
    *,
    did: Annotated[str | None, typer.Option(help="Phone number")] = None,
    name: Annotated[str | None, typer.Option(help="Display name")] = None,
) -> None:
    """Set the phone number and/or name of an identity."""
    app = use_context(ctx)
    subscriber_id = app.parse_sid(sid)
    try:
        identity = app.servald.keyring_set_did_name(subscriber_id, did, name)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_identity(identity)


def lookup(ctx: typer.Context, sid: str) -> None:
    """Look up the phone number and name of a subscriber."""
    app = use_context(ctx)
    subscriber_id = app.parse_sid(sid)
    try:
        identity = app.servald.reverse_lookup(subscriber_id)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_identity(identity)


def dna_lookup(
    ctx: typer.Context,
    did: str,
    *,
    timeout: Annotated[int | None, typer.Option(help="Milliseconds to wait for answers")] = None,
) -> None:
    """Find subscribers on the network by phone number."""
    app = use_context(ctx)
    results: list[DnaResult] = []
    try:
        app.servald.dna_lookup(results.append, did, timeout if timeout is not None else app.cfg.dna_lookup_timeout)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_dna_results(results)
