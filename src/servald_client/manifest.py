"""Rhizome manifest parsing.

A manifest is a text block of ``name=value`` lines, optionally followed by a NUL
byte and a binary signature block. Only the text block is parsed; the original
bytes are kept so a manifest can be written back unchanged.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Self, TypeVar

from servald_client.ids import BundleId, FileHash, InvalidHexError

MAX_MANIFEST_BYTES = 8192


class ManifestParseError(ValueError):
    """Manifest bytes are not a well-formed manifest."""


@dataclass(frozen=True, slots=True)
class Manifest:
    """Parsed view of a rhizome manifest."""

    fields: MappingProxyType[str, str]
    raw: bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Parse manifest bytes.

        Raises:
            ManifestParseError: Oversized, non-UTF-8, malformed or duplicate field lines.

        """
        if len(data) > MAX_MANIFEST_BYTES:
            msg = f"manifest too long ({len(data)} bytes)"
            raise ManifestParseError(msg)
        text_part, _, _signatures = data.partition(b"\0")
        try:
            text = text_part.decode()
        except UnicodeDecodeError as e:
            raise ManifestParseError("manifest text is not UTF-8") from e
        fields: dict[str, str] = {}
        for lineno, line in enumerate(text.split("\n"), start=1):
            line = line.removesuffix("\r")
            if not line:
                continue
            name, sep, value = line.partition("=")
            if not sep:
                msg = f"line {lineno}: missing '='"
                raise ManifestParseError(msg)
            if not name or not name.isascii() or not name.isalnum():
                msg = f"line {lineno}: invalid field name {name!r}"
                raise ManifestParseError(msg)
            if name in fields:
                msg = f"line {lineno}: duplicate field {name!r}"
                raise ManifestParseError(msg)
            fields[name] = value
        return cls(fields=MappingProxyType(fields), raw=data)

    def to_bytes(self) -> bytes:
        """Original manifest bytes, signatures included."""
        return self.raw

    def get(self, name: str) -> str | None:
        """Value of a field, or None if the manifest lacks it."""
        return self.fields.get(name)

    @property
    def id(self) -> BundleId | None:
        """Bundle id, if present and well formed."""
        return _parse_or_none(BundleId, self.get("id"))

    @property
    def filehash(self) -> FileHash | None:
        """Payload hash, if present and well formed."""
        return _parse_or_none(FileHash, self.get("filehash"))

    @property
    def version(self) -> int | None:
        """Bundle version."""
        return _int_or_none(self.get("version"))

    @property
    def filesize(self) -> int | None:
        """Payload size in bytes."""
        return _int_or_none(self.get("filesize"))

    @property
    def service(self) -> str | None:
        """Service tag, e.g. ``file`` or ``MeshMS2``."""
        return self.get("service")

    @property
    def name(self) -> str | None:
        """Payload file name."""
        return self.get("name")


I = TypeVar("I", BundleId, FileHash)


def _parse_or_none(cls: type[I], value: str | None) -> I | None:
    if value is None:
        return None
    try:
        return cls.from_hex(value)
    except InvalidHexError:
        return None


def _int_or_none(value: str | None) -> int | None:
    if value is None or not value.isascii() or not value.isdigit():
        return None
    return int(value)
