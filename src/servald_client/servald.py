"""Operations on the servald daemon.

Each method builds the command's argument list, runs it through the executor,
applies that command's own exit status check, and decodes the reply. Which
commands tolerate status 2 differs from command to command and is spelled out
in each method; there is no general rule.
"""

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from servald_client.cursor import DEFAULT_WINDOW_SIZE, WHOLE_RESULT, WindowedCursor, WindowFetch
from servald_client.dna import DnaLookupSink
from servald_client.errors import CommandFailedError, ProtocolViolationError
from servald_client.executor import CommandExecutor, FieldSink, SerializedExecutor
from servald_client.ids import BundleId, SubscriberId
from servald_client.records import (
    AddFileResult,
    ConfigOption,
    DnaResult,
    ExtractFileResult,
    ExtractManifestResult,
    KeyringAddResult,
    KeyringListEntry,
    LookupResult,
    ManifestResult,
    decode_config_options,
    decode_keyring_list,
    decode_peer_count,
)
from servald_client.result import STATUS_ERROR, STATUS_SOFT_FAILURE, STATUS_SUCCESS, Result, Row, parse_boolean, parse_int

logger = logging.getLogger(__name__)

DEFAULT_DNA_LOOKUP_TIMEOUT = 3000  # milliseconds

# Path token meaning "return the manifest in the reply instead of writing a file"
STDOUT_PATH = "-"


class ServalD:
    """Typed front end to servald commands. Holds no state beyond its executor."""

    def __init__(self, executor: CommandExecutor, *, trace: bool = False) -> None:
        """Initialize with an executor.

        Args:
            executor: Runs commands. Wrapped in ``SerializedExecutor`` unless it already is one.
            trace: Log every field of streamed replies.

        """
        self._executor = executor if isinstance(executor, SerializedExecutor) else SerializedExecutor(executor)
        self._trace = trace

    def _run(self, *args: str) -> Result:
        return self._executor.run(args)

    # --- Server ---

    def server_start(self, exec_path: Path) -> int:
        """Start the server if it is not already running. Return its pid."""
        result = self._run("start", "exec", str(exec_path))
        result.fail_if_status_error()
        pid = result.get_field_int("pid")
        logger.info("server %s, pid=%d", "started" if result.status == STATUS_SUCCESS else "already running", pid)
        return pid

    def server_stop(self) -> int | None:
        """Stop the server if it is running. Return the stopped pid, or None if it was not running."""
        result = self._run("stop")
        result.fail_if_status_error()
        if result.status != STATUS_SUCCESS:
            logger.info("server not running")
            return None
        pid = result.get_field_int("pid")
        logger.info("server stopped, pid=%d", pid)
        return pid

    def server_is_running(self) -> bool:
        result = self._run("status")
        result.fail_if_status_error()
        return result.status == STATUS_SUCCESS

    # --- Keyring ---

    def keyring_add(self) -> KeyringAddResult:
        """Create a new identity."""
        result = self._run("keyring", "add")
        result.fail_if_status_error()
        return KeyringAddResult.from_result(result)

    def keyring_set_did_name(self, sid: SubscriberId, did: str | None, name: str | None) -> KeyringAddResult:
        """Set the phone number and/or name of an identity."""
        args = ["keyring", "set", "did", sid.to_hex()]
        if did is not None:
            args.append(did)
        elif name is not None:
            args.append("")  # keeps name in its position
        if name is not None:
            args.append(name)
        result = self._run(*args)
        result.fail_if_status_error()
        return KeyringAddResult.from_result(result)

    def keyring_list(self) -> list[KeyringListEntry]:
        result = self._run("keyring", "list")
        result.fail_if_status_error()
        return decode_keyring_list(result)

    def reverse_lookup(self, sid: SubscriberId) -> LookupResult:
        """Look up the phone number and name of a subscriber. Not found gives an all-None result."""
        result = self._run("reverse", "lookup", sid.to_hex())
        result.fail_if_status_error()
        return LookupResult.from_result(result)

    # --- DNA ---

    def dna_lookup(
        self, on_result: Callable[[DnaResult], None], did: str, timeout: int = DEFAULT_DNA_LOOKUP_TIMEOUT
    ) -> None:
        """Look up a phone number on the network.

        Answers are passed to ``on_result`` as they arrive, on the calling thread.
        Returns once the lookup is complete.

        Args:
            on_result: Called once per answer.
            did: Phone number to look up.
            timeout: How long servald waits for answers, in milliseconds.

        Raises:
            CommandFailedError: The lookup exited with the error status.

        """
        args = ("dna", "lookup", did, str(timeout))
        if self._trace:
            logger.debug("args = %s", list(args))
        status = self._executor.stream(args, DnaLookupSink(on_result, trace=self._trace))
        if status == STATUS_ERROR:
            raise CommandFailedError("error exit status", status=status)

    def peers(self, sink: FieldSink) -> int:
        """Stream the routing table's peers into ``sink``. Return the exit status unchecked."""
        return self._executor.stream(("id", "peers"), sink)

    def get_peer_count(self) -> int:
        result = self._run("peer", "count")
        result.fail_if_status_error()
        return decode_peer_count(result)

    # --- Rhizome ---

    def rhizome_add_file(
        self, payload_path: Path | None, manifest_path: Path | None, author: SubscriberId | None, pin: str | None
    ) -> AddFileResult:
        """Add a payload file to the store.

        Status 2 (bundle already present) is not an error.

        Args:
            payload_path: Payload file, or None for an empty payload.
            manifest_path: Manifest to use and update, or None.
            author: Author identity, whose secret is used to make the bundle updatable; None for no author.
            pin: Pin unlocking the author's identity.

        """
        args = ["rhizome", "add", "file"]
        if pin is not None:
            args += ["--entry-pin", pin]
        args.append(author.to_hex() if author is not None else "")
        if payload_path is not None:
            args.append(str(payload_path.absolute()))
        elif manifest_path is not None:
            args.append("")
        if manifest_path is not None:
            args.append(str(manifest_path.absolute()))
        result = self._run(*args)
        if result.status not in (STATUS_SUCCESS, STATUS_SOFT_FAILURE):
            raise CommandFailedError("exit status indicates failure", result)
        return AddFileResult.from_result(result)

    def rhizome_import_bundle(self, payload_path: Path, manifest_path: Path) -> ManifestResult:
        result = self._run("rhizome", "import", "bundle", str(payload_path.absolute()), str(manifest_path.absolute()))
        result.fail_if_status_error()
        return ManifestResult.from_result(result)

    def rhizome_list(
        self,
        service: str | None = None,
        name: str | None = None,
        sender: SubscriberId | None = None,
        recipient: SubscriberId | None = None,
        *,
        window_size: int = DEFAULT_WINDOW_SIZE,
    ) -> WindowedCursor:
        """List bundles in the store, newest first, one window at a time."""

        def fetch(offset: int, count: int) -> Sequence[Row]:
            args = [
                "rhizome",
                "list",
                service or "",
                name or "",
                sender.to_hex() if sender is not None else "",
                recipient.to_hex() if recipient is not None else "",
                *paging_args(offset, count),
            ]
            result = self._run(*args)
            if result.status == STATUS_ERROR:
                raise CommandFailedError("error exit status", result)
            if result.status != STATUS_SUCCESS:
                raise CommandFailedError("non-zero exit status", result)
            return result.table_rows()[1]

        return WindowedCursor(fetch, window_size=window_size)

    def rhizome_extract_bundle(
        self, bid: BundleId, manifest_path: Path | None, payload_path: Path
    ) -> ExtractManifestResult:
        """Extract a bundle's manifest and payload. With no manifest path the manifest comes back in the result.

        A manifest in the result is only intact if the executor's field delimiter cannot occur in it.
        """
        result = self._run(
            "rhizome", "extract", "bundle", bid.to_hex(), _path_or_stdout(manifest_path), str(payload_path.absolute())
        )
        result.fail_if_status_nonzero()
        extracted = ExtractManifestResult.from_result(result)
        if manifest_path is None and extracted.manifest is None:
            raise ProtocolViolationError("missing manifest", result, key="manifest")
        return extracted

    def rhizome_export_manifest(self, bid: BundleId, path: Path | None) -> ExtractManifestResult:
        """Write a manifest to ``path``, or return it in the result when path is None.

        A manifest in the result is only intact if the executor's field delimiter cannot occur in it.
        """
        result = self._run("rhizome", "export", "manifest", bid.to_hex(), _path_or_stdout(path))
        result.fail_if_status_nonzero()
        extracted = ExtractManifestResult.from_result(result)
        if path is None and extracted.manifest is None:
            raise ProtocolViolationError("missing manifest", result, key="manifest")
        return extracted

    def rhizome_extract_file(self, bid: BundleId, path: Path) -> ExtractFileResult:
        """Write a bundle's payload to ``path``."""
        result = self._run("rhizome", "extract", "file", bid.to_hex(), str(path.absolute()))
        result.fail_if_status_nonzero()
        return ExtractFileResult.from_result(result)

    def rhizome_direct_push(self) -> None:
        """Push bundles to all configured direct hosts."""
        self._run("rhizome", "direct", "push").fail_if_status_nonzero()

    def rhizome_direct_pull(self) -> None:
        """Pull bundles from all configured direct hosts."""
        self._run("rhizome", "direct", "pull").fail_if_status_nonzero()

    def rhizome_direct_sync(self) -> None:
        """Push and pull bundles with all configured direct hosts."""
        self._run("rhizome", "direct", "sync").fail_if_status_nonzero()

    # --- Config ---

    def get_config_options(self, pattern: str | None = None) -> list[ConfigOption]:
        """All config variables matching ``pattern``. The exit status is not checked."""
        args = ["config", "get"]
        if pattern is not None:
            args.append(pattern)
        return decode_config_options(self._run(*args))

    def get_config(self, name: str) -> str | None:
        """Value of one config variable, or None if it is unset or the lookup failed."""
        result = self._run("config", "get", name)
        if result.status == STATUS_SUCCESS and len(result.fields) >= 2 and result.fields[0] == name.encode():
            try:
                return result.fields[1].decode()
            except UnicodeDecodeError as e:
                raise ProtocolViolationError(f"invalid value for {name!r}", result, key=name) from e
        return None

    def set_config(self, name: str, value: str) -> None:
        """Set a config variable. Status 2 is not an error."""
        result = self._run("config", "set", name, value)
        if result.status != STATUS_SOFT_FAILURE:
            result.fail_if_status_nonzero()

    def del_config(self, name: str) -> None:
        """Unset a config variable. Status 2 (not set) is not an error."""
        result = self._run("config", "del", name)
        if result.status != STATUS_SOFT_FAILURE:
            result.fail_if_status_nonzero()

    def get_config_boolean(self, name: str, default: bool) -> bool:
        return parse_boolean(self.get_config(name), default)

    def get_config_int(self, name: str, default: int) -> int:
        value = self.get_config(name)
        if value is None:
            return default
        try:
            return parse_int(value)
        except ValueError as e:
            raise ProtocolViolationError(f"invalid integer for {name!r}: {value!r}", key=name) from e

    def is_rhizome_enabled(self) -> bool:
        return self.get_config_boolean("rhizome.enable", default=True)

    # --- MeshMS ---

    def list_conversations(self, sid: SubscriberId, *, window_size: int = DEFAULT_WINDOW_SIZE) -> WindowedCursor:
        """List the conversations of an identity, one window at a time."""

        def fetch(offset: int, count: int) -> Sequence[Row]:
            result = self._run("meshms", "list", "conversations", sid.to_hex(), str(offset), str(count))
            if result.status != STATUS_SUCCESS:
                raise CommandFailedError(f"Exit code {result.status}", result)
            return result.table_rows()[1]

        return WindowedCursor(fetch, window_size=window_size)

    def list_messages(self, sender: SubscriberId, recipient: SubscriberId) -> WindowedCursor:
        """List the messages between two identities. The command cannot page, so this is a one-window cursor."""
        return WindowedCursor(self.list_messages_window(sender, recipient), window_size=WHOLE_RESULT)

    def list_messages_window(self, sender: SubscriberId, recipient: SubscriberId) -> WindowFetch:
        """Window fetch for ``meshms list messages``, which only supports the whole result at once."""

        def fetch(offset: int, count: int) -> Sequence[Row]:
            if offset != 0 or count != WHOLE_RESULT:
                raise ProtocolViolationError("Only one window supported")
            logger.debug("running meshms list messages %s, %s", sender.abbreviation(), recipient.abbreviation())
            result = self._run("meshms", "list", "messages", sender.to_hex(), recipient.to_hex())
            if result.status != STATUS_SUCCESS:
                raise CommandFailedError(f"Exit code {result.status}", result)
            return result.table_rows()[1]

        return fetch

    def send_message(self, sender: SubscriberId, recipient: SubscriberId, message: str) -> None:
        self._run("meshms", "send", "message", sender.to_hex(), recipient.to_hex(), message).fail_if_status_nonzero()

    def read_messages(self, sender: SubscriberId, recipient: SubscriberId, offset: int | None = None) -> None:
        """Mark messages as read, up to ``offset`` when given."""
        args = ["meshms", "read", "messages", sender.to_hex(), recipient.to_hex()]
        if offset is not None:
            args.append(str(offset))
        self._run(*args).fail_if_status_nonzero()


def paging_args(offset: int, count: int) -> list[str]:
    """Trailing offset/count arguments for a windowed command.

    Offset 0 is still sent when a count follows, so positions stay unambiguous.
    """
    args: list[str] = []
    if offset > 0:
        args.append(str(offset))
    elif count > 0:
        args.append("0")
    if count > 0:
        args.append(str(count))
    return args


def _path_or_stdout(path: Path | None) -> str:
    return str(path.absolute()) if path is not None else STDOUT_PATH
