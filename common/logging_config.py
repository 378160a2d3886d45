"""
Logging Configuration Module

Provides consistent logging setup across the entire application.
"""

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO

APP_LOGGER_NAME = "kb_memory"


def setup_logging(
    level: int | str = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure logging for the knowledge-base memory application.

    The handlers are installed on the root logger so that module loggers
    created with ``logging.getLogger(__name__)`` share one output.

    Args:
        level: Logging level (default: INFO), as int or name ("DEBUG")
        log_file: Optional path to log file
        format_string: Optional custom format string
        stream: Console stream (default: stdout)

    Returns:
        Configured application logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Create formatter
    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # ChromaDB telemetry and httpx request logs are noisy at INFO
    for noisy in ("chromadb", "httpx"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    return get_logger("app")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the application namespace.

    Args:
        name: Short component name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


class OperationTimer:
    """Elapsed-time holder yielded by :func:`log_duration`."""

    def __init__(self) -> None:
        self._start = time.perf_counter()
        self._end: Optional[float] = None

    def stop(self) -> float:
        if self._end is None:
            self._end = time.perf_counter()
        return self.elapsed_ms

    @property
    def elapsed_ms(self) -> float:
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 2)


@contextmanager
def log_duration(
    logger: logging.Logger,
    operation: str,
    **context,
) -> Iterator[OperationTimer]:
    """
    Time a block and log its duration at DEBUG.

    Usage:
        with log_duration(logger, "search", query=query[:100]) as timer:
            ...
        print(timer.elapsed_ms)
    """
    timer = OperationTimer()
    try:
        yield timer
    finally:
        elapsed = timer.stop()
        logger.debug("%s finished in %.2f ms %s", operation, elapsed, context or "")
