"""Logging setup for trendref.

The history walk logs every skipped candidate run and the run it settles
on at DEBUG, and the store warns about metadata or result files it has to
ignore. Library code only asks for a ``trendref.<module>`` logger via
:func:`get_logger` and never installs handlers; the CLI calls
:func:`setup_logging` once per command so ``-v`` shows why a run was or
was not picked as previous or reference.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "trendref"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


def _console_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the ``trendref`` logger.

    Args:
        verbose: Show the walk's per-run skip and select messages.
        quiet: Only show store warnings and errors. Ignored if *verbose* is True.
        log_file: If provided, keep the full DEBUG trace of the walk in this file,
            whatever the console level.

    Returns:
        The configured ``trendref`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces handlers from a previous call.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(_console_level(verbose, quiet))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``trendref.<name>`` child logger, e.g. ``trendref.history``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
