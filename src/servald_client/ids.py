"""Fixed-length binary identifiers with canonical hex text encoding."""

import binascii
from dataclasses import dataclass
from typing import ClassVar, Self


class InvalidHexError(ValueError):
    """Text is not a valid hex encoding of an identifier."""


@dataclass(frozen=True, order=True, slots=True)
class _Identifier:
    """Base for fixed-length identifiers. Equality and ordering are byte-wise."""

    BINARY_SIZE: ClassVar[int] = 0

    binary: bytes

    def __post_init__(self) -> None:
        if len(self.binary) != self.BINARY_SIZE:
            msg = f"{type(self).__name__} requires {self.BINARY_SIZE} bytes, got {len(self.binary)}"
            raise InvalidHexError(msg)

    @classmethod
    def from_hex(cls, text: str) -> Self:
        """Decode hex text (any letter case).

        Raises:
            InvalidHexError: Wrong length or non-hex characters.

        """
        if len(text) != cls.BINARY_SIZE * 2:
            msg = f"invalid {cls.__name__} hex length {len(text)}, expected {cls.BINARY_SIZE * 2}: {text!r}"
            raise InvalidHexError(msg)
        # bytes.fromhex() tolerates whitespace, so check the alphabet first
        if not all(c in "0123456789abcdefABCDEF" for c in text):
            msg = f"invalid {cls.__name__} hex characters: {text!r}"
            raise InvalidHexError(msg)
        try:
            return cls(binascii.unhexlify(text))
        except binascii.Error as e:
            raise InvalidHexError(str(e)) from e

    def to_hex(self) -> str:
        """Canonical uppercase hex text."""
        return self.binary.hex().upper()

    def abbreviation(self) -> str:
        """Short form for log lines."""
        return self.to_hex()[:8] + "*"

    def __str__(self) -> str:
        return self.to_hex()


@dataclass(frozen=True, order=True, slots=True)
class SubscriberId(_Identifier):
    """Public identity of a network subscriber (SID)."""

    BINARY_SIZE: ClassVar[int] = 32


@dataclass(frozen=True, order=True, slots=True)
class BundleId(_Identifier):
    """Rhizome bundle identifier (manifest public key)."""

    BINARY_SIZE: ClassVar[int] = 32


@dataclass(frozen=True, order=True, slots=True)
class FileHash(_Identifier):
    """SHA-512 hash of a payload file."""

    BINARY_SIZE: ClassVar[int] = 64
