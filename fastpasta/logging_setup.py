"""Logger set-up for the program and the successful exit status."""

from __future__ import annotations

import logging

from fastpasta.config import Config, DataOutputMode

TRACE = 5
"""Log level below DEBUG for the most detailed messages."""

logging.addLevelName(TRACE, "TRACE")

_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG, TRACE)
_PACKAGE_LOGGER = "fastpasta"

log = logging.getLogger(__name__)


def _level_for(verbosity: int) -> int:
    return _LEVELS[min(verbosity, len(_LEVELS) - 1)]


def init_error_logger(config: Config) -> logging.Logger:
    """Send the package's log messages to standard error at the configured verbosity.

    Verbosity 0-4 selects errors, warnings, info, debug or trace. Calling this
    again replaces the handler set up before. Returns the package logger.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_fastpasta_handler", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
    handler._fastpasta_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(_level_for(config.verbosity))

    mode = config.output_mode()
    if mode is DataOutputMode.STDOUT:
        logger.log(TRACE, "Data output set to stdout")
    elif mode is DataOutputMode.FILE:
        logger.log(TRACE, "Data output set to file")
    else:
        logger.log(TRACE, "Data output set to suppressed")
    return logger


def exit_success() -> int:
    """Log a successful exit and return the success exit status."""
    log.info("Exit successful")
    return 0