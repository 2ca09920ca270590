"""Logging configuration for servald-client."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


def setup_logging(log_path: Path, *, debug: bool = False) -> None:
    """Configure package logger with a rotating file handler.

    Idempotent: skips if the handler is already attached.
    """
    root = logging.getLogger("servald_client")
    if root.handlers:
        return

    handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    handler.setFormatter(logging.Formatter(fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))

    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.addHandler(handler)
