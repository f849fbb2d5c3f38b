"""Centralized logging helpers.

One call to ``configure_logging`` from the entrypoint installs the process-wide
handlers; every module then logs through ``logging.getLogger(__name__)``.
Additional sinks (files, test capture handlers, GUI bridges) are plain
``logging.Handler`` instances handed to ``configure_logging`` explicitly.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlsplit, urlunsplit

from constants import Constants

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(
    level: Optional[str] = None,
    sinks: Optional[Iterable[logging.Handler]] = None,
) -> logging.Logger:
    """Configure the root logger once for the whole process.

    Args:
        level: Level name; falls back to the FIRMPKG_LOG_LEVEL env var, then INFO.
        sinks: Handlers to attach. Defaults to a single stderr StreamHandler.

    Returns:
        The configured root logger.
    """
    name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    if name not in _LEVELS:
        name = "INFO"

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handlers = list(sinks) if sinks is not None else [logging.StreamHandler()]
    formatter = logging.Formatter(Constants.LOG_FORMAT)
    for handler in handlers:
        if handler.formatter is None:
            handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(getattr(logging, name))
    return root


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` payload for structured log records, dropping None values."""
    return {key: value for key, value in fields.items() if value is not None}


def safe_url(url: str) -> str:
    """Strip credentials and query strings from a URL before it is logged."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<invalid-url>"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start: float = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed time so far (or total, once the block exited)."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
