"""Typed records decoded from command results.

Each record is immutable and built once by its ``from_result`` decoder. Richer
records wrap an already decoded inner record instead of re-reading its fields,
so inner validation always runs first and its errors surface unchanged.
"""

from dataclasses import dataclass
from typing import Self

from servald_client.errors import ProtocolViolationError
from servald_client.ids import BundleId, FileHash, InvalidHexError, SubscriberId
from servald_client.manifest import Manifest, ManifestParseError
from servald_client.result import STATUS_SUCCESS, Result, parse_int

# --- Identity ---


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Identity returned by a keyring or reverse lookup. All None when nothing was found."""

    subscriber_id: SubscriberId | None
    did: str | None
    name: str | None

    @classmethod
    def from_result(cls, result: Result) -> Self:
        """Decode ``sid``/``did``/``name`` on success; any other status means nothing was found."""
        if result.status != STATUS_SUCCESS:
            return cls(subscriber_id=None, did=None, name=None)
        return cls(
            subscriber_id=result.get_field_subscriber_id("sid"),
            did=result.get_field_string_non_empty_or_none("did"),
            name=result.get_field_string_non_empty_or_none("name"),
        )


@dataclass(frozen=True, slots=True)
class KeyringAddResult:
    """Identity created or updated by a keyring operation."""

    lookup: LookupResult

    @classmethod
    def from_result(cls, result: Result) -> Self:
        return cls(lookup=LookupResult.from_result(result))

    @property
    def subscriber_id(self) -> SubscriberId | None:
        return self.lookup.subscriber_id

    @property
    def did(self) -> str | None:
        return self.lookup.did

    @property
    def name(self) -> str | None:
        return self.lookup.name


@dataclass(frozen=True, slots=True)
class KeyringListEntry:
    """One identity in the keyring."""

    subscriber_id: SubscriberId
    did: str | None
    name: str | None


def decode_keyring_list(result: Result) -> list[KeyringListEntry]:
    """Decode keyring list output: positional ``(sid, did, name)`` triples.

    Raises:
        ProtocolViolationError: Field count not a multiple of 3, or a malformed sid.

    """
    fields = result.fields
    if len(fields) % 3 != 0:
        msg = f"invalid number of fields {len(fields)} (not multiple of 3)"
        raise ProtocolViolationError(msg, result)
    entries: list[KeyringListEntry] = []
    for i in range(0, len(fields), 3):
        try:
            entry = KeyringListEntry(
                subscriber_id=SubscriberId.from_hex(fields[i].decode()),
                did=fields[i + 1].decode() or None,
                name=fields[i + 2].decode() or None,
            )
        except (InvalidHexError, UnicodeDecodeError) as e:
            raise ProtocolViolationError(f"invalid output field fields[{i}]", result, key=f"fields[{i}]") from e
        entries.append(entry)
    return entries


@dataclass(frozen=True, slots=True)
class DnaResult:
    """One address-lookup answer. ``did`` and ``name`` are filled in as the stream arrives."""

    uri: str
    did: str | None = None
    name: str | None = None


# --- Rhizome ---


@dataclass(frozen=True, slots=True)
class PayloadResult:
    """Payload described by a rhizome operation. ``file_hash`` is None iff the payload is empty."""

    file_hash: FileHash | None
    file_size: int

    @classmethod
    def from_result(cls, result: Result) -> Self:
        file_size = result.get_field_long("filesize")
        file_hash = result.get_field_file_hash("filehash") if file_size != 0 else None
        return cls(file_hash=file_hash, file_size=file_size)


@dataclass(frozen=True, slots=True)
class ManifestResult:
    """Bundle described by a rhizome operation.

    ``manifest_bytes`` and ``manifest`` are None when the daemon wrote the
    manifest to a file instead of returning it.
    """

    payload: PayloadResult
    service: str
    manifest_id: BundleId
    version: int
    manifest_bytes: bytes | None
    manifest: Manifest | None

    @classmethod
    def from_result(cls, result: Result) -> Self:
        payload = PayloadResult.from_result(result)
        version = result.get_field_long("version")
        service = result.get_field_string("service")
        manifest_id = result.get_field_bundle_id("manifestid")
        manifest_bytes = result.get_field_bytes("manifest", None)
        manifest = None
        if manifest_bytes is not None:
            try:
                manifest = Manifest.from_bytes(manifest_bytes)
            except ManifestParseError as e:
                raise ProtocolViolationError("invalid manifest", result, key="manifest") from e
        return cls(
            payload=payload,
            service=service,
            manifest_id=manifest_id,
            version=version,
            manifest_bytes=manifest_bytes,
            manifest=manifest,
        )

    @property
    def file_hash(self) -> FileHash | None:
        return self.payload.file_hash

    @property
    def file_size(self) -> int:
        return self.payload.file_size


# Result of "rhizome add file": same shape as any manifest result
AddFileResult = ManifestResult


@dataclass(frozen=True, slots=True)
class ExtractManifestResult:
    """Manifest result plus the extract-only ``.readonly`` and ``.author`` fields."""

    manifest_result: ManifestResult
    read_only: bool
    author: SubscriberId | None

    @classmethod
    def from_result(cls, result: Result) -> Self:
        manifest_result = ManifestResult.from_result(result)
        return cls(
            manifest_result=manifest_result,
            read_only=result.get_field_boolean(".readonly"),
            author=result.get_field_subscriber_id(".author", None),
        )

    @property
    def manifest(self) -> Manifest | None:
        return self.manifest_result.manifest

    @property
    def manifest_id(self) -> BundleId:
        return self.manifest_result.manifest_id

    @property
    def version(self) -> int:
        return self.manifest_result.version

    @property
    def service(self) -> str:
        return self.manifest_result.service


@dataclass(frozen=True, slots=True)
class ExtractFileResult:
    """Payload written out by ``rhizome extract file``."""

    payload: PayloadResult

    @classmethod
    def from_result(cls, result: Result) -> Self:
        return cls(payload=PayloadResult.from_result(result))


# --- Config & peers ---


@dataclass(frozen=True, slots=True)
class ConfigOption:
    """One configuration variable and its value."""

    name: str
    value: str


def decode_config_options(result: Result) -> list[ConfigOption]:
    """Decode ``config get`` output as alternating name/value fields."""
    options: list[ConfigOption] = []
    for name, value in result.key_value_map().items():
        try:
            options.append(ConfigOption(name=name, value=value.decode()))
        except UnicodeDecodeError as e:
            raise ProtocolViolationError(f"invalid value for {name!r}", result, key=name) from e
    return options


def decode_peer_count(result: Result) -> int:
    """Decode ``peer count`` output: a single decimal field.

    Raises:
        ProtocolViolationError: No fields, or the first is not a number.

    """
    if not result.fields:
        raise ProtocolViolationError("missing peer count", result, key="fields[0]")
    try:
        return parse_int(result.fields[0].decode())
    except ValueError as e:
        raise ProtocolViolationError("invalid peer count", result, key="fields[0]") from e
