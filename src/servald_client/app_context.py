"""Application context shared across CLI commands."""

from dataclasses import dataclass
from pathlib import Path

import typer

from servald_client.config import Config
from servald_client.ids import BundleId, InvalidHexError, SubscriberId
from servald_client.lifecycle import DaemonLifecycle
from servald_client.manifest import Manifest, ManifestParseError
from servald_client.output import Output
from servald_client.servald import ServalD


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared application state passed through Typer context."""

    out: Output
    servald: ServalD
    lifecycle: DaemonLifecycle
    cfg: Config

    def parse_sid(self, text: str) -> SubscriberId:
        """Parse a SID argument, exiting with an error if it is malformed."""
        try:
            return SubscriberId.from_hex(text)
        except InvalidHexError as e:
            self.out.print_error_and_exit("invalid_sid", str(e))

    def parse_bid(self, text: str) -> BundleId:
        """Parse a bundle id argument, exiting with an error if it is malformed."""
        try:
            return BundleId.from_hex(text)
        except InvalidHexError as e:
            self.out.print_error_and_exit("invalid_bid", str(e))

    def read_manifest(self, path: Path) -> Manifest:
        """Read a manifest file written by servald, exiting with an error if it is unreadable."""
        try:
            return Manifest.from_bytes(path.read_bytes())
        except (OSError, ManifestParseError) as e:
            self.out.print_error_and_exit("invalid_manifest", f"cannot read manifest {path}: {e}")


def use_context(ctx: typer.Context) -> AppContext:
    """Extract application context from Typer context."""
    result: AppContext = ctx.obj
    return result
