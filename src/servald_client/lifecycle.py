"""Tracks when this process last started the servald server."""

import time
from pathlib import Path

from servald_client.servald import ServalD


class DaemonLifecycle:
    """Starts and stops the server and remembers when it was started."""

    def __init__(self, servald: ServalD, exec_path: Path) -> None:
        """Initialize the lifecycle manager.

        Args:
            servald: Command front end used to start and stop the server.
            exec_path: servald binary the server is started from.

        """
        self._servald = servald
        self._exec_path = exec_path
        self._started_at: float | None = None  # monotonic seconds, None while not started by us

    def start(self) -> int:
        """Start the server (or find it already running) and return its pid."""
        pid = self._servald.server_start(self._exec_path)
        self._started_at = time.monotonic()
        return pid

    def stop(self) -> int | None:
        """Stop the server. The start time is forgotten even if the stop command fails."""
        self._started_at = None
        return self._servald.server_stop()

    def uptime(self) -> int:
        """Milliseconds since ``start()``, or -1 if the server was not started by this instance."""
        if self._started_at is None:
            return -1
        return int((time.monotonic() - self._started_at) * 1000)
