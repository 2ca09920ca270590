"""Incremental decoder for the streamed output of ``dna lookup``.

Answers arrive as a flat stream of fields grouped in ``(uri, did, name)``
triples. The decoder tracks the position within the current triple, so a
garbage uri only drops its own triple and never shifts the ones after it.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlsplit

from servald_client.records import DnaResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Pending:
    uri: str
    did: str | None = None


def parse_locator(text: str) -> str:
    """Validate a DNA answer locator such as ``sid://SID/local/DID``.

    Raises:
        ValueError: Unparseable text or no scheme.

    """
    parts = urlsplit(text)
    if not parts.scheme:
        msg = f"no scheme in locator {text!r}"
        raise ValueError(msg)
    return text


class DnaLookupSink:
    """Field sink that turns ``dna lookup`` output into ``DnaResult`` records.

    Each completed record is handed to ``on_result`` immediately, on the thread
    that feeds the fields.
    """

    def __init__(self, on_result: Callable[[DnaResult], None], *, trace: bool = False) -> None:
        """Initialize the decoder.

        Args:
            on_result: Called once per decoded answer.
            trace: Log every received field at debug level.

        """
        self._on_result = on_result
        self._trace = trace
        self._pending: _Pending | None = None
        self._position = 0

    def put_field(self, value: bytes | None) -> None:
        text = value.decode(errors="replace") if value is not None else ""
        if self._trace:
            logger.debug("dna lookup field: %r", text)
        position = self._position
        self._position = (position + 1) % 3
        match position:
            case 0:
                try:
                    self._pending = _Pending(uri=parse_locator(text))
                except ValueError:
                    logger.exception("Unhandled dna response %r", text)
                    self._pending = None
            case 1:
                if self._pending is not None and self._pending.did is None:
                    self._pending.did = text
            case _:
                pending, self._pending = self._pending, None
                if pending is not None:
                    self._on_result(DnaResult(uri=pending.uri, did=pending.did, name=text))
