"""Logging configuration for code variants."""

import logging
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: logging.DEBUG,
}

# Client libraries of the bundled loaders, only shown at verbosity 3
LIBRARY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    verbosity: int = 1,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Route the ``code_variants`` loggers to stderr through Rich.

    Orchestrator stage timings are logged at DEBUG, so they appear from
    verbosity 2 on. Verbosity 3 adds HTTP client logs and local variables in
    tracebacks. A log file always receives DEBUG records, whatever the
    console verbosity.

    Args:
        verbosity: Console verbosity (0=warnings, 1=info, 2=debug, 3=debug and libraries).
        log_file: Optional file receiving every record.

    Returns:
        The ``code_variants`` logger.
    """
    verbosity = min(max(verbosity, 0), 3)
    console_level = LEVELS[verbosity]

    logger = logging.getLogger("code_variants")
    logger.setLevel(logging.DEBUG if log_file else console_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbosity >= 2,
        show_path=verbosity >= 3,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 3,
    )
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    library_level = logging.DEBUG if verbosity >= 3 else logging.WARNING
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    return logger


class StageTimer:
    """Logs the time spent between consecutive stages at DEBUG level."""

    def __init__(self, logger: logging.Logger, label: str):
        """Initialize the timer.

        Args:
            logger: Logger receiving the stage messages.
            label: Prefix identifying what is being timed.
        """
        self.logger = logger
        self.label = label
        self._last = time.perf_counter()

    def mark(self, stage: str) -> float:
        """Record reaching ``stage`` and return the seconds since the previous mark."""
        now = time.perf_counter()
        elapsed = now - self._last
        self._last = now
        self.logger.debug(f"{self.label}: {stage} (+{elapsed * 1000:.1f}ms)")
        return elapsed
