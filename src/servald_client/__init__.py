"""Typed client for servald commands."""

from servald_client.cursor import CursorState as CursorState
from servald_client.cursor import WindowedCursor as WindowedCursor
from servald_client.errors import CommandFailedError as CommandFailedError
from servald_client.errors import ProtocolViolationError as ProtocolViolationError
from servald_client.errors import ServalDError as ServalDError
from servald_client.executor import SerializedExecutor as SerializedExecutor
from servald_client.executor import SubprocessExecutor as SubprocessExecutor
from servald_client.ids import BundleId as BundleId
from servald_client.ids import FileHash as FileHash
from servald_client.ids import SubscriberId as SubscriberId
from servald_client.result import Result as Result
from servald_client.result import parse_boolean as parse_boolean
from servald_client.servald import ServalD as ServalD
