"""Tests for the result envelope: status checks, key/value and table views, typed accessors."""

import pytest

from servald_client.errors import CommandFailedError, ProtocolViolationError
from servald_client.ids import SubscriberId
from servald_client.result import Result, parse_boolean, parse_int

SID_HEX = "AB" * 32


class TestStatusChecks:
    """fail_if_status_error / fail_if_status_nonzero."""

    @pytest.mark.parametrize("status", [0, 2])
    def test_status_error_tolerates_success_and_soft_failure(self, status):
        """0 and 2 pass the lenient check."""
        Result(status).fail_if_status_error()

    @pytest.mark.parametrize("status", [1, 3, 255])
    def test_status_error_rejects_other_codes(self, status):
        """Any other status is a command failure carrying the status and result."""
        result = Result(status, (b"x",))
        with pytest.raises(CommandFailedError) as exc_info:
            result.fail_if_status_error()
        assert exc_info.value.status == status
        assert exc_info.value.result is result

    def test_nonzero_rejects_soft_failure(self):
        """The strict check fails on status 2."""
        with pytest.raises(CommandFailedError):
            Result(2).fail_if_status_nonzero()

    def test_nonzero_accepts_success(self):
        """The strict check passes on status 0."""
        Result(0).fail_if_status_nonzero()


class TestKeyValueMap:
    """Alternating key/value field view."""

    def test_pairs(self):
        """Fields pair up in order."""
        result = Result.of(0, ["a", "1", "b", "2"])
        assert result.key_value_map() == {"a": b"1", "b": b"2"}

    def test_odd_field_count(self):
        """An odd number of fields is a protocol violation."""
        with pytest.raises(ProtocolViolationError, match="not multiple of 2"):
            Result.of(0, ["a", "1", "b"]).key_value_map()

    def test_unknown_keys_ignored(self):
        """Accessors read only the keys they ask for."""
        result = Result.of(0, ["extra", "zzz", "pid", "42"])
        assert result.get_field_int("pid") == 42


class TestAccessors:
    """Typed field accessors."""

    def test_missing_required_key(self):
        """A missing key is a violation naming the key."""
        result = Result.of(0, ["a", "1"])
        with pytest.raises(ProtocolViolationError) as exc_info:
            result.get_field_string("b")
        assert exc_info.value.key == "b"
        assert exc_info.value.result is result

    def test_missing_key_with_default(self):
        """A default is returned for a missing key."""
        assert Result.of(0, []).get_field_subscriber_id("sid", None) is None

    def test_string_empty_kept(self):
        """get_field_string returns the empty string as is."""
        assert Result.of(0, ["did", ""]).get_field_string("did") == ""

    def test_non_empty_or_none(self):
        """An empty value reads as None, other values unchanged."""
        result = Result.of(0, ["did", "", "name", "Alice"])
        assert result.get_field_string_non_empty_or_none("did") is None
        assert result.get_field_string_non_empty_or_none("name") == "Alice"

    def test_int(self):
        """Decimal text parses, including a sign."""
        assert Result.of(0, ["n", "-17"]).get_field_int("n") == -17

    @pytest.mark.parametrize("text", ["", "12a", "1.5", " 3", "0x10", "١٢"])
    def test_int_non_numeric(self, text):
        """Non-decimal text is a violation naming the key, with the cause chained."""
        with pytest.raises(ProtocolViolationError) as exc_info:
            Result.of(0, ["n", text]).get_field_int("n")
        assert exc_info.value.key == "n"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_int_out_of_range(self):
        """Values beyond 32 bits are rejected by get_field_int but accepted by get_field_long."""
        result = Result.of(0, ["n", str(2**31)])
        with pytest.raises(ProtocolViolationError):
            result.get_field_int("n")
        assert result.get_field_long("n") == 2**31

    def test_long_out_of_range(self):
        """Values beyond 64 bits are rejected."""
        with pytest.raises(ProtocolViolationError):
            Result.of(0, ["n", str(2**63)]).get_field_long("n")

    def test_boolean(self):
        """Boolean fields follow the config parsing rule."""
        result = Result.of(0, ["a", "No", "b", "yes", "c", ""])
        assert result.get_field_boolean("a") is False
        assert result.get_field_boolean("b") is True
        assert result.get_field_boolean("c") is False

    def test_subscriber_id(self):
        """Hex text decodes to an identifier."""
        result = Result.of(0, ["sid", SID_HEX.lower()])
        assert result.get_field_subscriber_id("sid") == SubscriberId.from_hex(SID_HEX)

    def test_subscriber_id_invalid_hex(self):
        """Bad hex is a violation naming the key."""
        with pytest.raises(ProtocolViolationError) as exc_info:
            Result.of(0, ["sid", "nothex"]).get_field_subscriber_id("sid")
        assert exc_info.value.key == "sid"

    def test_invalid_utf8(self):
        """Undecodable text is a violation."""
        with pytest.raises(ProtocolViolationError):
            Result(0, (b"name", b"\xff\xfe")).get_field_string("name")


class TestParseBoolean:
    """The boolean parsing table."""

    @pytest.mark.parametrize("value", ["off", "no", "false", "0", "OFF", "No", "FaLsE"])
    def test_false_words(self, value):
        """The four false words, in any case, are False."""
        assert parse_boolean(value, default=True) is False

    @pytest.mark.parametrize("default", [True, False])
    def test_none_and_empty_give_default(self, default):
        """None and the empty string give the default."""
        assert parse_boolean(None, default) is default
        assert parse_boolean("", default) is default

    @pytest.mark.parametrize("value", ["on", "yes", "true", "1", "2", "nope", " no", "offf", "-"])
    def test_everything_else_true(self, value):
        """Any other string is True, whatever the default."""
        assert parse_boolean(value, default=False) is True


class TestParseInt:
    """Strict 32-bit decimal parsing."""

    @pytest.mark.parametrize(("text", "expected"), [("0", 0), ("-12", -12), ("+7", 7), ("2147483647", 2**31 - 1)])
    def test_valid(self, text, expected):
        assert parse_int(text) == expected

    @pytest.mark.parametrize("text", ["", " 12 ", "1_2", "12a", "-", "2147483648", "\u0661"])
    def test_invalid(self, text):
        """Anything beyond a sign and ASCII digits, or out of range, is rejected."""
        with pytest.raises(ValueError):
            parse_int(text)


class TestTableRows:
    """Column count, names, then rows."""

    def test_rows(self):
        """Values group into rows keyed by column name."""
        columns, rows = Result.of(0, ["2", "id", "name", "1", "a", "2", "b"]).table_rows()
        assert columns == ["id", "name"]
        assert [dict(r) for r in rows] == [{"id": b"1", "name": b"a"}, {"id": b"2", "name": b"b"}]
        assert rows[1].get_string("name") == "b"

    def test_header_only(self):
        """A header without values is an empty table."""
        assert Result.of(0, ["1", "id"]).table_rows() == (["id"], [])

    def test_no_fields(self):
        """No output at all is an empty table."""
        assert Result(0).table_rows() == ([], [])

    def test_ragged_rows(self):
        """A value count that does not fill whole rows is a violation."""
        with pytest.raises(ProtocolViolationError, match="not multiple of 2"):
            Result.of(0, ["2", "id", "name", "1"]).table_rows()

    def test_bad_column_count(self):
        """A non-numeric column count is a violation."""
        with pytest.raises(ProtocolViolationError):
            Result.of(0, ["x", "id"]).table_rows()

    def test_short_header(self):
        """Fewer column names than announced is a violation."""
        with pytest.raises(ProtocolViolationError):
            Result.of(0, ["3", "id"]).table_rows()

    def test_missing_column(self):
        """Looking up an unknown column raises KeyError."""
        _, rows = Result.of(0, ["1", "id", "7"]).table_rows()
        with pytest.raises(KeyError):
            rows[0]["name"]
