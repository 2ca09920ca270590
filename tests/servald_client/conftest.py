"""Shared fixtures: scripted stand-ins for the servald executor."""

import threading
import time
from collections.abc import Sequence

import pytest

from servald_client.executor import FieldSink
from servald_client.result import Result


class FakeExecutor:
    """Replays queued replies in order and records every argument list it was given."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._replies: list[Result] = []

    def reply(self, status: int, *fields: bytes | str) -> None:
        """Queue the reply for the next command."""
        self._replies.append(Result.of(status, fields))

    def run(self, args: Sequence[str]) -> Result:
        self.calls.append(list(args))
        return self._replies.pop(0)

    def stream(self, args: Sequence[str], sink: FieldSink) -> int:
        result = self.run(args)
        for field in result.fields:
            sink.put_field(field)
        return result.status


class SlowExecutor:
    """Succeeds after a short sleep and records how many calls overlap."""

    def __init__(self) -> None:
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def run(self, args: Sequence[str]) -> Result:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.01)
        with self._guard:
            self.active -= 1
        return Result(0)

    def stream(self, args: Sequence[str], sink: FieldSink) -> int:
        return self.run(args).status


@pytest.fixture
def executor() -> FakeExecutor:
    """Executor with no replies queued."""
    return FakeExecutor()


@pytest.fixture
def slow_executor() -> SlowExecutor:
    """Executor that counts overlapping calls."""
    return SlowExecutor()
