"""Centralized logging for gmbackup.

Progress messages (downloads, deletions) are logged at INFO and only
reach the console with --verbose. Warnings and errors are always shown.
"""

import logging
import sys

LOGGER_NAME = "gmbackup"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure the gmbackup logger.

    Safe to call more than once: existing handlers are replaced, so
    repeated CLI invocations in one process don't duplicate output.

    Args:
        verbose: Show INFO messages when True, only warnings otherwise.

    Returns:
        The configured root gmbackup logger.
    """
    log = logging.getLogger(LOGGER_NAME)
    log.setLevel(logging.INFO if verbose else logging.WARNING)
    log.propagate = False

    for h in log.handlers[:]:
        log.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    log.addHandler(handler)

    return log


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the gmbackup logger, or a named child of it."""
    log = logging.getLogger(LOGGER_NAME)
    return log.getChild(name) if name else log
