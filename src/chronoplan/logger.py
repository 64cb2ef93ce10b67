"""Verbosity-controlled logging for the scheduling loop.

Everything is reported on the single "chronoplan" logger, which adds two
levels to the standard ones:

- CHANGES (25): a slice was committed, or a task finished or was given up
- CHECKS (15): candidate scores and the winner of each iteration

DEBUG covers allocator gap searches and blackout expansion.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

LOGGER_NAME = "chronoplan"

CHANGES_LEVEL = 25
CHECKS_LEVEL = 15

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

# Indexed by the --verbose value
VERBOSITY_LEVELS: tuple[int, ...] = (logging.ERROR, CHANGES_LEVEL, CHECKS_LEVEL, logging.DEBUG)
MAX_VERBOSITY = len(VERBOSITY_LEVELS) - 1


class PlanLogger(logging.Logger):
    """Logger shared by the scheduler, allocators and loaders.

    ``changes`` records what ends up in the schedule; ``checks`` records how
    the loop decided on it.
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Record a committed slice or a task state change."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Record candidate scoring and selection."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> PlanLogger:
    """Return the shared chronoplan logger."""
    logging.setLoggerClass(PlanLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, PlanLogger)
    return logger


def level_for_verbosity(verbosity: int) -> int:
    """Logging level for a verbosity count; out-of-range counts are clamped."""
    return VERBOSITY_LEVELS[max(0, min(verbosity, MAX_VERBOSITY))]


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Send scheduler progress to a stream.

    Calling it again replaces the previous handler. At debug verbosity each
    line is prefixed with its level name.

    Args:
        verbosity: 0 errors only, 1 commits, 2 candidate scores, 3 allocator traces
        stream: Output stream, stderr by default
    """
    logger = get_logger()
    logger.handlers.clear()

    level = level_for_verbosity(verbosity)
    logger.setLevel(level)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    fmt = "%(levelname)s: %(message)s" if level <= logging.DEBUG else "%(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop all handlers and go back to errors only."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def checks_enabled() -> bool:
    """True when candidate scores are being logged."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """True when allocator traces are being logged."""
    return get_logger().isEnabledFor(logging.DEBUG)
