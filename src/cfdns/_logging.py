"""Logging utilities for the cfdns library."""

import logging
import time
from contextvars import ContextVar, Token

# NullHandler on the library logger so nothing is emitted unless configured
_root = logging.getLogger("cfdns")
_root.addHandler(logging.NullHandler())

# Zone currently being reconciled, attached to nested log records
_current_zone: ContextVar[str | None] = ContextVar("current_zone", default=None)


def set_zone(zone: str | None) -> Token[str | None]:
    """Set the current zone for logging context.

    Args:
        zone: Zone being processed (e.g. "example.com.").

    Returns:
        Token to reset the context.
    """
    return _current_zone.set(zone)


def reset_zone(token: Token[str | None]) -> None:
    """Reset zone context.

    Args:
        token: Token from set_zone() call.
    """
    _current_zone.reset(token)


def get_zone_extra() -> dict[str, str]:
    """Get zone info for log extra fields.

    Returns:
        Dict with 'zone', or empty dict outside of a provider call.
    """
    zone = _current_zone.get()
    if zone is None:
        return {}
    return {"zone": zone}


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the cfdns namespace.

    Args:
        name: The module name (typically __name__).

    Returns:
        A logger instance for the module.
    """
    return logging.getLogger(name)


class Timer:
    """Context manager for timing operations.

    Usage:
        with Timer() as t:
            # do work
        print(f"Elapsed: {t.elapsed_ms}ms")
    """

    def __init__(self) -> None:
        self.elapsed_ms: float = 0
        self._start: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
