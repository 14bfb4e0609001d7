"""Logging setup shared by the CLI and the HTTP service."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "inspecta"
CONSOLE_FORMAT = "[inspecta] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``inspecta.<name>``, or the package root logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """``--verbose`` wins over ``--quiet``; the default shows progress at INFO."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Send inspecta logs to stderr and, optionally, to ``log_file``.

    Reports go to stdout, so console logging stays on stderr where it cannot
    corrupt piped JSON. Handlers are replaced on every call.
    """
    level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        # The file always records DEBUG detail regardless of console level.
        logger.setLevel(logging.DEBUG)
        console.setLevel(level)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger", "resolve_level"]
