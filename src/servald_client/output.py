"""Structured output for CLI and JSON modes."""

# ruff: noqa: T201 - output layer, print() is how CLI output is produced

import json
import sys
from collections.abc import Iterable
from typing import NoReturn

import typer

from servald_client.manifest import Manifest
from servald_client.records import (
    ConfigOption,
    DnaResult,
    ExtractFileResult,
    ExtractManifestResult,
    KeyringAddResult,
    KeyringListEntry,
    LookupResult,
    ManifestResult,
)
from servald_client.result import Row


def _row_data(row: Row) -> dict[str, str]:
    return {column: value.decode(errors="replace") for column, value in row.items()}


def _identity_data(sid: object, did: str | None, name: str | None) -> dict[str, object]:
    return {"sid": str(sid) if sid is not None else None, "did": did, "name": name}


class Output:
    """Handles all CLI output in JSON or human-readable format."""

    def __init__(self, *, json_mode: bool) -> None:
        """Initialize output handler.

        Args:
            json_mode: If True, output JSON envelopes; otherwise human-readable text.

        """
        self._json_mode = json_mode

    def _success(self, data: dict[str, object], message: str) -> None:
        """Print a success result in JSON or human-readable format."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": data}))
        else:
            print(message)

    def print_error_and_exit(self, code: str, message: str) -> NoReturn:
        """Print an error in JSON or human-readable format and exit with code 1.

        Raises:
            typer.Exit: Always, with code 1.

        """
        if self._json_mode:
            print(json.dumps({"ok": False, "error": code, "message": message}))
        else:
            print(f"Error: {message}", file=sys.stderr)
        raise typer.Exit(code=1)

    # --- Server ---

    def print_started(self, pid: int) -> None:
        """Print server start confirmation."""
        self._success({"pid": pid}, f"Server running, pid={pid}.")

    def print_stopped(self, pid: int | None) -> None:
        """Print server stop confirmation."""
        self._success({"pid": pid}, f"Server stopped, pid={pid}." if pid is not None else "Server was not running.")

    def print_status(self, *, running: bool) -> None:
        """Print server status."""
        self._success({"running": running}, f"Server: {'running' if running else 'stopped'}.")

    def print_peer_count(self, count: int) -> None:
        """Print number of reachable peers."""
        self._success({"count": count}, f"{count} peers.")

    # --- Identities ---

    def print_identities(self, entries: list[KeyringListEntry]) -> None:
        """Print keyring identities."""
        if self._json_mode:
            data = [_identity_data(e.subscriber_id, e.did, e.name) for e in entries]
            print(json.dumps({"ok": True, "data": {"identities": data}}))
        else:
            for e in entries:
                print(f"{e.subscriber_id}  {e.did or '-'}  {e.name or '-'}")

    def print_identity(self, identity: LookupResult | KeyringAddResult) -> None:
        """Print one identity, or that none was found."""
        if identity.subscriber_id is None:
            self._success({"sid": None, "did": None, "name": None}, "Not found.")
            return
        self._success(
            _identity_data(identity.subscriber_id, identity.did, identity.name),
            f"{identity.subscriber_id}  {identity.did or '-'}  {identity.name or '-'}",
        )

    def print_dna_results(self, results: list[DnaResult]) -> None:
        """Print address lookup answers."""
        if self._json_mode:
            data = [{"uri": r.uri, "did": r.did, "name": r.name} for r in results]
            print(json.dumps({"ok": True, "data": {"results": data}}))
        else:
            for r in results:
                print(f"{r.uri}  {r.did or '-'}  {r.name or '-'}")

    # --- Rhizome & MeshMS ---

    def print_rows(self, rows: Iterable[Row]) -> None:
        """Print table rows; in human mode one tab-separated line per row."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": {"rows": [_row_data(r) for r in rows]}}))
        else:
            for row in rows:
                print("\t".join(_row_data(row).values()))

    def print_manifest_result(self, result: ManifestResult | ExtractManifestResult, manifest: Manifest | None = None) -> None:
        """Print the bundle described by a rhizome operation, with its manifest fields when known."""
        inner = result.manifest_result if isinstance(result, ExtractManifestResult) else result
        if manifest is None:
            manifest = inner.manifest
        data: dict[str, object] = {
            "manifestid": str(inner.manifest_id),
            "service": inner.service,
            "version": inner.version,
            "filesize": inner.file_size,
            "filehash": str(inner.file_hash) if inner.file_hash is not None else None,
        }
        if isinstance(result, ExtractManifestResult):
            data["readonly"] = result.read_only
            data["author"] = str(result.author) if result.author is not None else None
        if self._json_mode:
            if manifest is not None:
                data["manifest"] = dict(manifest.fields)
            print(json.dumps({"ok": True, "data": data}))
        else:
            for key, value in data.items():
                print(f"{key}: {value if value is not None else '-'}")
            if manifest is not None:
                print("manifest:")
                for name, value in manifest.fields.items():
                    print(f"  {name}={value}")

    def print_payload_result(self, result: ExtractFileResult) -> None:
        """Print the payload written by an extract."""
        file_hash = result.payload.file_hash
        self._success(
            {"filesize": result.payload.file_size, "filehash": str(file_hash) if file_hash is not None else None},
            f"Extracted {result.payload.file_size} bytes.",
        )

    def print_message_sent(self) -> None:
        """Print message sent confirmation."""
        self._success({}, "Message sent.")

    def print_messages_read(self) -> None:
        """Print messages marked read confirmation."""
        self._success({}, "Messages marked read.")

    # --- Config ---

    def print_config_options(self, options: list[ConfigOption]) -> None:
        """Print config variables."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": {o.name: o.value for o in options}}))
        else:
            for o in options:
                print(f"{o.name}={o.value}")

    def print_config_set(self, name: str, value: str) -> None:
        """Print config set confirmation."""
        self._success({"name": name, "value": value}, f"Set {name}={value}.")

    def print_config_deleted(self, name: str) -> None:
        """Print config delete confirmation."""
        self._success({"name": name}, f"Deleted {name}.")
