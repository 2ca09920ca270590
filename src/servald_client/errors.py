"""Error classification for daemon command results."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from servald_client.result import Result


class ServalDError(Exception):
    """Base class for errors raised by the servald command layer."""

    code = "servald_error"

    def __init__(self, message: str, result: "Result | None" = None) -> None:
        """Initialize with a message and the raw result, when one exists.

        Args:
            message: Human-readable error description.
            result: Raw envelope the error was detected in, kept for diagnostics.

        """
        super().__init__(message)
        self.result = result

    def __str__(self) -> str:
        message = super().__str__()
        if self.result is None:
            return message
        return f"{message}: {self.result!r}"


class CommandFailedError(ServalDError):
    """The daemon's exit status says the operation did not do what was asked."""

    code = "command_failed"

    def __init__(self, message: str, result: "Result | None" = None, *, status: int | None = None) -> None:
        """Initialize with a message, the raw result and the status code.

        Args:
            message: Human-readable error description.
            result: Raw envelope, if the command produced one.
            status: Exit status; taken from ``result`` when omitted.

        """
        super().__init__(message, result)
        self.status = status if status is not None or result is None else result.status


class ProtocolViolationError(ServalDError):
    """The reply's shape or content does not match what the decoder expects."""

    code = "protocol_violation"

    def __init__(self, message: str, result: "Result | None" = None, *, key: str | None = None) -> None:
        """Initialize with a message, the raw result and the offending key.

        Args:
            message: Human-readable error description.
            result: Raw envelope that failed to decode.
            key: Field key (or positional field label) that was missing or malformed.

        """
        super().__init__(message, result)
        self.key = key
