"""Command executor boundary: runs servald commands and returns raw results.

The protocol layer only needs something that takes an argument list and gives
back an exit status plus output fields, either buffered or streamed into a
sink. ``SubprocessExecutor`` runs the servald binary; ``SerializedExecutor``
makes any executor safe to share between threads.
"""

import logging
import os
import subprocess  # nosec B404
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from servald_client.errors import CommandFailedError
from servald_client.result import STATUS_ERROR, Result

logger = logging.getLogger(__name__)

# Read buffer size for streamed output
_BUFSIZE = 65536


class FieldSink(Protocol):
    """Consumer of output fields as they arrive."""

    def put_field(self, value: bytes | None) -> None:
        """Receive the next output field."""


class CommandExecutor(Protocol):
    """Anything that can run a servald command."""

    def run(self, args: Sequence[str]) -> Result:
        """Run a command and buffer all of its output fields."""

    def stream(self, args: Sequence[str], sink: FieldSink) -> int:
        """Run a command, handing each output field to ``sink``. Return the exit status."""


class SerializedExecutor:
    """Wraps an executor so at most one command is in flight at a time."""

    def __init__(self, inner: CommandExecutor) -> None:
        """Initialize with the executor to guard.

        Args:
            inner: Executor whose channel to the daemon is not reentrant.

        """
        self._inner = inner
        self._lock = threading.Lock()

    def run(self, args: Sequence[str]) -> Result:
        with self._lock:
            return self._inner.run(args)

    def stream(self, args: Sequence[str], sink: FieldSink) -> int:
        with self._lock:
            return self._inner.stream(args, sink)


class _FieldSplitter:
    """Splits a byte stream into delimiter-terminated fields."""

    def __init__(self, delimiter: bytes, sink: FieldSink) -> None:
        self._delimiter = delimiter
        self._sink = sink
        self._pending = b""

    def feed(self, chunk: bytes) -> None:
        self._pending += chunk
        *complete, self._pending = self._pending.split(self._delimiter)
        for field in complete:
            self._sink.put_field(field)

    def close(self) -> None:
        # Last field may lack a trailing delimiter
        if self._pending:
            self._sink.put_field(self._pending)
            self._pending = b""


class _FieldList:
    """Sink that buffers fields into a list."""

    def __init__(self) -> None:
        self.fields: list[bytes] = []

    def put_field(self, value: bytes | None) -> None:
        self.fields.append(value if value is not None else b"")


class SubprocessExecutor:
    """Runs commands through the servald binary.

    Output fields are separated by ``delimiter``, which servald is told to use
    through the ``SERVALD_OUTPUT_DELIMITER`` environment variable.
    """

    def __init__(
        self, servald_path: Path, instance_path: Path, *, delimiter: str = "\n", timeout: float | None = None
    ) -> None:
        """Initialize the executor.

        Args:
            servald_path: Path to the servald binary.
            instance_path: Instance directory (``SERVALDINSTANCE_PATH``).
            delimiter: Field delimiter servald is told to emit.
            timeout: Seconds to wait for a command before giving up, or None to wait forever.

        """
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self._servald_path = servald_path
        self._instance_path = instance_path
        self._delimiter = delimiter
        self._timeout = timeout

    def run(self, args: Sequence[str]) -> Result:
        fields = _FieldList()
        status = self.stream(args, fields)
        return Result(status, tuple(fields.fields))

    def stream(self, args: Sequence[str], sink: FieldSink) -> int:
        cmd = [str(self._servald_path), *args]
        logger.debug("Running: %s", " ".join(args))
        try:
            # S603: argv built from the configured binary path and caller-supplied arguments, no shell
            proc = subprocess.Popen(  # noqa: S603  # nosec B603
                cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, stdin=subprocess.DEVNULL, env=self._env()
            )
        except OSError as e:
            raise CommandFailedError(f"cannot run {self._servald_path}: {e}", status=STATUS_ERROR) from e

        splitter = _FieldSplitter(self._delimiter.encode(), sink)
        timer = None
        if self._timeout is not None:
            timer = threading.Timer(self._timeout, proc.kill)
            timer.start()
        try:
            if proc.stdout is None:
                msg = "servald stdout is not a pipe"
                raise RuntimeError(msg)
            while chunk := proc.stdout.read1(_BUFSIZE):
                splitter.feed(chunk)
            splitter.close()
            status = proc.wait()
        finally:
            if timer is not None:
                timer.cancel()
            if proc.stdout is not None:
                proc.stdout.close()
            if proc.poll() is None:
                proc.kill()
                proc.wait()

        if status < 0:
            # Killed by a signal, either our timeout or something external
            raise CommandFailedError(f"servald {args[0] if args else ''} killed by signal {-status}", status=STATUS_ERROR)
        logger.debug("Exit status %d for: %s", status, " ".join(args))
        return status

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["SERVALDINSTANCE_PATH"] = str(self._instance_path)
        env["SERVALD_OUTPUT_DELIMITER"] = self._delimiter
        return env
