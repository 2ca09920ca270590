"""Forward-only paging over commands that can return any number of rows."""

import enum
import logging
from collections.abc import Callable, Iterator, Sequence
from typing import TypeAlias

from servald_client.result import Row

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 64

# Window size meaning "everything in one go", for commands that cannot page
WHOLE_RESULT = -1

WindowFetch: TypeAlias = Callable[[int, int], Sequence[Row]]


class CursorState(enum.Enum):
    """Lifecycle of a cursor."""

    FRESH = "fresh"
    FILLED = "filled"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class WindowedCursor:
    """Single-pass iterator that fetches rows one window at a time.

    ``fetch(offset, window_size)`` runs the command for one window. A window
    shorter than requested is the last one, and so is the only window of a
    cursor created with ``window_size=WHOLE_RESULT``. Not thread-safe: one
    owner, one thread.
    """

    def __init__(self, fetch: WindowFetch, *, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        """Initialize the cursor. Nothing is fetched until the first ``advance()``.

        Args:
            fetch: Runs the command for ``(offset, window_size)`` and returns its rows.
            window_size: Rows requested per window, or ``WHOLE_RESULT``.

        """
        if window_size <= 0 and window_size != WHOLE_RESULT:
            msg = f"invalid window size {window_size}"
            raise ValueError(msg)
        self._fetch = fetch
        self._window_size = window_size
        self._window: Sequence[Row] = ()
        self._index = 0  # next unread row within the current window
        self._rows_consumed = 0
        self._windows_fetched = 0
        self._last_window = False
        self._state = CursorState.FRESH
        self._error: Exception | None = None

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def rows_consumed(self) -> int:
        """Rows returned by ``advance()`` so far."""
        return self._rows_consumed

    @property
    def windows_fetched(self) -> int:
        return self._windows_fetched

    def advance(self) -> Row | None:
        """Return the next row, or None once the cursor is exhausted.

        Raises:
            ServalDError: The window fetch failed. The same error is raised again on every later call.

        """
        if self._error is not None:
            raise self._error
        if self._index >= len(self._window):
            if self._state is CursorState.EXHAUSTED or self._last_window:
                self._state = CursorState.EXHAUSTED
                return None
            self._fill()
            if self._state is CursorState.EXHAUSTED:
                return None
        row = self._window[self._index]
        self._index += 1
        self._rows_consumed += 1
        return row

    def _fill(self) -> None:
        """Fetch the window starting after the rows consumed so far."""
        offset = self._rows_consumed
        try:
            window = self._fetch(offset, self._window_size)
        except Exception as e:
            self._state = CursorState.FAILED
            self._error = e
            raise
        self._windows_fetched += 1
        logger.debug("Fetched window %d: %d rows at offset %d", self._windows_fetched, len(window), offset)
        self._window = window
        self._index = 0
        if self._window_size == WHOLE_RESULT or len(window) < self._window_size:
            self._last_window = True
        self._state = CursorState.FILLED if window else CursorState.EXHAUSTED

    def __iter__(self) -> Iterator[Row]:
        return self

    def __next__(self) -> Row:
        row = self.advance()
        if row is None:
            raise StopIteration
        return row
