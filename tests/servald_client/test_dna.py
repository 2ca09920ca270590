"""Tests for the streamed DNA lookup decoder."""

import logging

import pytest

from servald_client.dna import DnaLookupSink, parse_locator
from servald_client.records import DnaResult

SID_HEX = "AB" * 32


def feed(sink: DnaLookupSink, *fields: str | None) -> None:
    for field in fields:
        sink.put_field(field.encode() if field is not None else None)


@pytest.fixture
def results() -> list[DnaResult]:
    return []


@pytest.fixture
def sink(results: list[DnaResult]) -> DnaLookupSink:
    return DnaLookupSink(results.append)


class TestDnaLookupSink:
    """Triple decoding and resynchronization."""

    def test_single_triple(self, sink, results):
        """One triple becomes one result."""
        feed(sink, f"sid://{SID_HEX}/local/555", "555", "Alice")
        assert results == [DnaResult(uri=f"sid://{SID_HEX}/local/555", did="555", name="Alice")]

    def test_emitted_on_third_field(self, sink, results):
        """A result is emitted as soon as its name arrives, not at end of stream."""
        feed(sink, "sid://a/local/1", "1")
        assert results == []
        feed(sink, "A")
        assert len(results) == 1

    def test_resync_after_malformed_locator(self, sink, results, caplog):
        """A bad locator drops only its own triple; later triples stay aligned."""
        with caplog.at_level(logging.ERROR, logger="servald_client.dna"):
            feed(
                sink,
                "sid://one/local/1", "1", "First",
                "not a locator", "2", "Second",
                "sid://three/local/3", "3", "Third",
            )  # fmt: skip
        assert [(r.uri, r.did, r.name) for r in results] == [
            ("sid://one/local/1", "1", "First"),
            ("sid://three/local/3", "3", "Third"),
        ]
        assert "Unhandled dna response" in caplog.text

    def test_leading_garbage_triple(self, sink, results):
        """A corrupt first triple does not shift the rest."""
        feed(sink, "", "", "", "sid://x/local/9", "9", "Nine")
        assert [r.did for r in results] == ["9"]

    def test_none_field_is_empty(self, sink, results):
        """A None field reads as the empty string."""
        feed(sink, "sid://x/local/1", None, "N")
        assert results[0].did == ""

    def test_incomplete_trailing_triple(self, sink, results):
        """A stream ending mid-triple emits nothing for it."""
        feed(sink, "sid://x/local/1", "1", "N", "sid://y/local/2", "2")
        assert len(results) == 1

    def test_trace_logs_fields(self, results, caplog):
        """With trace on, every field is logged."""
        sink = DnaLookupSink(results.append, trace=True)
        with caplog.at_level(logging.DEBUG, logger="servald_client.dna"):
            feed(sink, "sid://x/local/1")
        assert "sid://x/local/1" in caplog.text


class TestParseLocator:
    """Locator validation."""

    def test_valid(self):
        """A URI with a scheme is accepted unchanged."""
        assert parse_locator("sid://ABC/local/1") == "sid://ABC/local/1"

    @pytest.mark.parametrize("text", ["", "no scheme here", "http://[::1"])
    def test_invalid(self, text):
        """Missing scheme or unparseable text is rejected."""
        with pytest.raises(ValueError):
            parse_locator(text)
