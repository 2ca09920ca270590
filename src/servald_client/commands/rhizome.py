"""Rhizome store: add, list, extract and export bundles."""

import tempfile
from pathlib import Path
from typing import Annotated

import typer

from servald_client.app_context import use_context
from servald_client.errors import ServalDError


def rhizome_list(
    ctx: typer.Context,
    *,
    service: Annotated[str | None, typer.Option(help="Only bundles of this service")] = None,
    name: Annotated[str | None, typer.Option(help="Only bundles with this name")] = None,
    sender: Annotated[str | None, typer.Option(help="Only bundles from this SID")] = None,
    recipient: Annotated[str | None, typer.Option(help="Only bundles to this SID")] = None,
    limit: Annotated[int | None, typer.Option(min=1, help="Stop after this many bundles")] = None,
) -> None:
    """List bundles in the store."""
    app = use_context(ctx)
    sender_id = app.parse_sid(sender) if sender is not None else None
    recipient_id = app.parse_sid(recipient) if recipient is not None else None
    cursor = app.servald.rhizome_list(service, name, sender_id, recipient_id)
    rows = []
    try:
        for row in cursor:
            rows.append(row)
            if limit is not None and len(rows) >= limit:
                break
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_rows(rows)


def rhizome_add(
    ctx: typer.Context,
    payload: Annotated[Path | None, typer.Argument(help="Payload file (omit for an empty payload)")] = None,
    *,
    manifest: Annotated[Path | None, typer.Option(help="Manifest file to use and update")] = None,
    author: Annotated[str | None, typer.Option(help="Author SID")] = None,
    pin: Annotated[str | None, typer.Option(help="Pin unlocking the author identity")] = None,
) -> None:
    """Add a file to the store."""
    app = use_context(ctx)
    author_id = app.parse_sid(author) if author is not None else None
    try:
        result = app.servald.rhizome_add_file(payload, manifest, author_id, pin)
    except ServalDError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_manifest_result(result)


def rhizome_extract(
    ctx: typer.Context,
    bid: str,
    payload: Path,
    *,
    manifest: Annotated[Path | None, typer.Option(help="Write the manifest here instead of printing it")] = None,
    payload_only: Annotated[bool, typer.Option("--payload-only", help="Extract only the payload")] = False,
) -> None:
    """Extract a bundle's payload to a file."""
    app = use_context(ctx)
    bundle_id = app.parse_bid(bid)
    if payload_only:
        try:
            result = app.servald.rhizome_extract_file(bundle_id, payload)
        except ServalDError as e:
            app.out.print_error_and_exit(e.code, str(e))
        app.out.print_payload_result(result)
        return
    # The manifest is binary and may contain the field delimiter, so it goes through a file
    with tempfile.TemporaryDirectory(prefix="servald-client-") as tmp:
        target = manifest if manifest is not None else Path(tmp) / "manifest"
        try:
            extracted = app.servald.rhizome_extract_bundle(bundle_id, target, payload)
        except ServalDError as e:
            app.out.print_error_and_exit(e.code, str(e))
        printed = app.read_manifest(target) if manifest is None else None
    app.out.print_manifest_result(extracted, printed)


def rhizome_export_manifest(
    ctx: typer.Context,
    bid: str,
    path: Annotated[Path | None, typer.Argument(help="Output file (omit to print)")] = None,
) -> None:
    """Export a bundle's manifest."""
    app = use_context(ctx)
    bundle_id = app.parse_bid(bid)
    with tempfile.TemporaryDirectory(prefix="servald-client-") as tmp:
        target = path if path is not None else Path(tmp) / "manifest"
        try:
            result = app.servald.rhizome_export_manifest(bundle_id, target)
        except ServalDError as e:
            app.out.print_error_and_exit(e.code, str(e))
        printed = app.read_manifest(target) if path is None else None
    app.out.print_manifest_result(result, printed)
