"""Logging configuration for nmdpredict.

All package modules log through ``logging.getLogger(__name__)`` below
the ``nmdpredict`` logger. ``setup_logging`` attaches the handlers: a
rich console handler at the requested verbosity and, optionally, a
debug-level log file.

Batch helpers:
    - ProgressLogger: progress messages at fixed percentage steps,
      usable as a ``progress_callback`` of ``predict_nmd``
    - Timer: elapsed time (and throughput) of a block

Example:
    >>> from nmdpredict.utils.logging import setup_logging, get_logger
    >>> setup_logging(verbosity=2, log_file="nmdpredict.log")
    >>> logger = get_logger(__name__)
    >>> logger.debug("Parsed 1200 transcripts")
"""

import logging
import time
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

# =============================================================================
# Constants
# =============================================================================

LOGGER_NAME = "nmdpredict"

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
PLAIN_FORMAT = "%(levelname)s: %(message)s"

# -q, default, -v
VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logging(
    verbosity: int = 1,
    log_file: Path | str | None = None,
    use_rich: bool = True,
) -> logging.Logger:
    """Attach console and file handlers to the ``nmdpredict`` logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        verbosity: 0 for warnings only, 1 for info, 2 or more for debug.
        log_file: Also write every debug message to this file.
        use_rich: Render console messages with rich.

    Returns:
        The package logger.
    """
    console_level = VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    if use_rich:
        console: logging.Handler = RichHandler(
            rich_tracebacks=True,
            show_time=False,
            show_path=False,
            markup=False,
        )
    else:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(PLAIN_FORMAT))
    console.setLevel(console_level)
    logger.addHandler(console)

    if log_file is None:
        logger.setLevel(console_level)
    else:
        file_log = logging.FileHandler(log_file, mode="w")
        file_log.setFormatter(logging.Formatter(FILE_FORMAT))
        file_log.setLevel(logging.DEBUG)
        logger.addHandler(file_log)
        logger.setLevel(logging.DEBUG)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)


# =============================================================================
# Batch Helpers
# =============================================================================


class ProgressLogger:
    """Log batch progress every ``step_percent`` percent.

    Instances accept the ``(completed, total, task_id)`` progress
    callback signature of ``predict_nmd``, so they can stand in for a
    progress bar when output is not a terminal.

    Example:
        >>> progress = ProgressLogger(logger, description="Classifying")
        >>> table = predict_nmd(structures, progress_callback=progress)
        # Logs: "Classifying: 120/1200 transcripts (10%)" ...
    """

    def __init__(
        self,
        logger: logging.Logger,
        total: int = 0,
        step_percent: int = 10,
        description: str = "Classifying",
    ) -> None:
        """Initialize progress logger.

        Args:
            logger: Logger to write to.
            total: Expected number of transcripts, if known up front.
            step_percent: Percentage between two messages.
            description: Message prefix.
        """
        self.logger = logger
        self.total = total
        self.step_percent = step_percent
        self.description = description
        self.completed = 0
        self._next_percent = step_percent

    def __call__(self, completed: int, total: int, task_id: str) -> None:
        self.total = total
        self.advance(completed - self.completed)

    def advance(self, n: int = 1) -> None:
        """Record ``n`` more finished transcripts."""
        self.completed += n
        if self.total <= 0:
            return

        percent = 100 * self.completed / self.total
        if percent >= self._next_percent or self.completed == self.total:
            self.logger.info(
                f"{self.description}: {self.completed}/{self.total} transcripts ({percent:.0f}%)"
            )
            while self._next_percent <= percent:
                self._next_percent += self.step_percent


class Timer:
    """Context manager logging how long a block took.

    When ``n_items`` is set after entering, the message also reports
    items per second.

    Example:
        >>> with Timer("NMD prediction", logger) as timer:
        ...     table = predict_nmd(structures)
        ...     timer.n_items = len(table)
        # Logs: "NMD prediction: 1.23s (975.6 transcripts/s)"
    """

    def __init__(self, description: str, logger: logging.Logger) -> None:
        self.description = description
        self.logger = logger
        self.n_items: int | None = None
        self.elapsed = 0.0
        self._start = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.elapsed = time.perf_counter() - self._start
        message = f"{self.description}: {self.elapsed:.2f}s"
        if self.n_items and self.elapsed > 0:
            message += f" ({self.n_items / self.elapsed:.1f} transcripts/s)"
        self.logger.info(message)
