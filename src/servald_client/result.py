"""Raw command result envelope and typed field accessors.

A result is the exit status of one servald command plus its output fields, an
ordered list of opaque byte strings. Depending on the command the fields are
read as alternating key/value pairs, as fixed-size positional groups, or as a
table (column count, column names, then rows).
"""

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Final, TypeVar

from servald_client.errors import CommandFailedError, ProtocolViolationError
from servald_client.ids import BundleId, FileHash, InvalidHexError, SubscriberId

STATUS_SUCCESS: Final = 0
STATUS_SOFT_FAILURE: Final = 2  # "not found", "duplicate", "already running"
STATUS_ERROR: Final = 255

_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1
_LONG_MIN, _LONG_MAX = -(2**63), 2**63 - 1

_FALSE_WORDS: Final = frozenset({"off", "no", "false", "0"})

# Sentinel for "no default supplied": the key is required
_REQUIRED: Any = object()

T = TypeVar("T")


def parse_boolean(value: str | None, default: bool) -> bool:
    """Parse a boolean the way servald's own config parser does.

    ``off``, ``no``, ``false`` and ``0`` (any letter case) are False, ``None`` and
    the empty string give ``default``, every other string is True.
    """
    if value is None or value == "":
        return default
    return value.lower() not in _FALSE_WORDS


class Row(Mapping[str, bytes]):
    """One row of tabular command output, keyed by column name."""

    __slots__ = ("_columns", "_values")

    def __init__(self, columns: Sequence[str], values: Sequence[bytes]) -> None:
        self._columns = tuple(columns)
        self._values = tuple(values)

    def __getitem__(self, key: str) -> bytes:
        try:
            return self._values[self._columns.index(key)]
        except ValueError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def get_string(self, key: str) -> str:
        """Decode a column value as UTF-8 text."""
        return self[key].decode()

    def __repr__(self) -> str:
        return f"Row({dict(zip(self._columns, self._values, strict=True))!r})"


@dataclass(frozen=True, slots=True)
class Result:
    """Exit status and output fields of one servald command."""

    status: int
    fields: tuple[bytes, ...] = ()
    _map: dict[str, bytes] | None = field(default=None, init=False, repr=False, compare=False)

    @staticmethod
    def of(status: int, fields: Sequence[bytes | str]) -> "Result":
        """Build a result, encoding any text fields as UTF-8."""
        return Result(status, tuple(f.encode() if isinstance(f, str) else f for f in fields))

    # --- Status checks ---

    def fail_if_status_error(self) -> None:
        """Raise unless the status is success or the soft-failure code.

        Raises:
            CommandFailedError: Status is neither 0 nor 2.

        """
        if self.status not in (STATUS_SUCCESS, STATUS_SOFT_FAILURE):
            raise CommandFailedError("exit status indicates failure", self)

    def fail_if_status_nonzero(self) -> None:
        """Raise on any non-zero status.

        Raises:
            CommandFailedError: Status is not 0.

        """
        if self.status != STATUS_SUCCESS:
            raise CommandFailedError("non-zero exit status", self)

    # --- Views ---

    def key_value_map(self) -> dict[str, bytes]:
        """Fields read as alternating key, value pairs.

        Raises:
            ProtocolViolationError: Odd number of fields or a non-UTF-8 key.

        """
        if self._map is not None:
            return self._map
        if len(self.fields) % 2 != 0:
            msg = f"invalid number of fields {len(self.fields)} (not multiple of 2)"
            raise ProtocolViolationError(msg, self)
        result: dict[str, bytes] = {}
        for i in range(0, len(self.fields), 2):
            try:
                key = self.fields[i].decode()
            except UnicodeDecodeError as e:
                raise ProtocolViolationError(f"invalid key in fields[{i}]", self, key=f"fields[{i}]") from e
            result[key] = self.fields[i + 1]
        object.__setattr__(self, "_map", result)
        return result

    def table_rows(self) -> tuple[list[str], list[Row]]:
        """Fields read as a table: column count, column names, then row values.

        An empty field list is an empty table with no columns.

        Raises:
            ProtocolViolationError: Bad column count, short header, or ragged rows.

        """
        if not self.fields:
            return [], []
        try:
            ncols = int(self.fields[0].decode())
        except (UnicodeDecodeError, ValueError) as e:
            raise ProtocolViolationError("invalid column count", self, key="fields[0]") from e
        if ncols <= 0 or len(self.fields) < 1 + ncols:
            raise ProtocolViolationError(f"invalid table header, {ncols} columns in {len(self.fields)} fields", self)
        try:
            columns = [f.decode() for f in self.fields[1 : 1 + ncols]]
        except UnicodeDecodeError as e:
            raise ProtocolViolationError("invalid column name", self) from e
        values = self.fields[1 + ncols :]
        if len(values) % ncols != 0:
            msg = f"invalid number of row values {len(values)} (not multiple of {ncols})"
            raise ProtocolViolationError(msg, self)
        rows = [Row(columns, values[i : i + ncols]) for i in range(0, len(values), ncols)]
        return columns, rows

    # --- Typed accessors ---

    def get_field_bytes(self, key: str, default: Any = _REQUIRED) -> bytes:
        """Raw value of a key.

        Raises:
            ProtocolViolationError: Key missing and no default given.

        """
        value = self.key_value_map().get(key)
        if value is None:
            if default is _REQUIRED:
                raise ProtocolViolationError(f"missing {key!r} field", self, key=key)
            return default  # type: ignore[no-any-return]
        return value

    def get_field_string(self, key: str, default: Any = _REQUIRED) -> str:
        """Value of a key as UTF-8 text."""
        return self._get_field(key, default, bytes.decode)

    def get_field_string_non_empty_or_none(self, key: str) -> str | None:
        """Value of a key as text, with the empty string meaning absent."""
        value = self.get_field_string(key)
        return value or None

    def get_field_int(self, key: str, default: Any = _REQUIRED) -> int:
        """Value of a key as a signed 32-bit decimal integer."""
        return self._get_field(key, default, lambda v: _parse_decimal(v, _INT_MIN, _INT_MAX))

    def get_field_long(self, key: str, default: Any = _REQUIRED) -> int:
        """Value of a key as a signed 64-bit decimal integer."""
        return self._get_field(key, default, lambda v: _parse_decimal(v, _LONG_MIN, _LONG_MAX))

    def get_field_boolean(self, key: str, default: Any = _REQUIRED) -> bool:
        """Value of a key parsed with ``parse_boolean`` (empty value is False)."""
        return self._get_field(key, default, lambda v: parse_boolean(v.decode(), default=False))

    def get_field_subscriber_id(self, key: str, default: Any = _REQUIRED) -> SubscriberId:
        """Value of a key as a subscriber id."""
        return self._get_field(key, default, lambda v: SubscriberId.from_hex(v.decode()))

    def get_field_bundle_id(self, key: str, default: Any = _REQUIRED) -> BundleId:
        """Value of a key as a bundle id."""
        return self._get_field(key, default, lambda v: BundleId.from_hex(v.decode()))

    def get_field_file_hash(self, key: str, default: Any = _REQUIRED) -> FileHash:
        """Value of a key as a payload file hash."""
        return self._get_field(key, default, lambda v: FileHash.from_hex(v.decode()))

    def _get_field(self, key: str, default: Any, convert: Callable[[bytes], T]) -> T:
        """Look up a key and coerce its value, mapping coercion failures to protocol violations."""
        value = self.key_value_map().get(key)
        if value is None:
            if default is _REQUIRED:
                raise ProtocolViolationError(f"missing {key!r} field", self, key=key)
            return default  # type: ignore[no-any-return]
        try:
            return convert(value)
        except (UnicodeDecodeError, InvalidHexError, ValueError) as e:
            raise ProtocolViolationError(f"invalid {key!r} field {value!r}", self, key=key) from e


def parse_int(text: str) -> int:
    """Parse a signed 32-bit decimal integer: optional sign and ASCII digits, nothing else.

    Raises:
        ValueError: Not a decimal integer, or out of range.

    """
    return _parse_decimal(text.encode(), _INT_MIN, _INT_MAX)


def _parse_decimal(value: bytes, lo: int, hi: int) -> int:
    """Parse decimal text strictly: optional sign and ASCII digits only."""
    text = value.decode()
    digits = text[1:] if text[:1] in ("-", "+") else text
    if not digits or not digits.isascii() or not digits.isdigit():
        msg = f"not a decimal integer: {text!r}"
        raise ValueError(msg)
    number = int(text)
    if not lo <= number <= hi:
        msg = f"integer out of range: {text}"
        raise ValueError(msg)
    return number
