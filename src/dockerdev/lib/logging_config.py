"""Logging setup for dockerdev.

All modules obtain loggers through :func:`get_logger` so that output is
namespaced under the ``dockerdev`` root logger and controlled by
:func:`setup_logging`.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "dockerdev"

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
VERBOSE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d: %(message)s"

# Third-party loggers that are noisy at DEBUG level
_NOISY_LOGGERS = ("docker", "urllib3")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging for the dockerdev package.

    Args:
        verbose: Enable DEBUG level output with line numbers
        quiet: Only emit warnings and errors
    """
    if verbose:
        level = logging.DEBUG
        fmt = VERBOSE_FORMAT
    elif quiet:
        level = logging.WARNING
        fmt = DEFAULT_FORMAT
    else:
        level = logging.INFO
        fmt = DEFAULT_FORMAT

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    # Replace handlers so repeated setup calls don't duplicate output
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)
    root.propagate = False

    third_party_level = logging.DEBUG if verbose else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the dockerdev root logger.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
