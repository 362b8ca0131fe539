"""Timing and outcome events for calls that leave the process."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from ootd_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")

# Calls slower than this are logged at WARNING with ``slow=True``.
SLOW_CALL_MS = 5000.0


def instrument_provider(
    provider: str, operation: str, slow_ms: float = SLOW_CALL_MS
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Log one ``provider_call_completed`` or ``provider_call_failed`` event per call.

    Failures are reported by exception type and message only; the exception
    itself propagates so callers keep their own fallback behaviour.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "provider_call_failed",
                    provider=provider,
                    operation=operation,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                    reason=type(exc).__name__,
                    details=str(exc),
                )
                raise
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            slow = duration_ms > slow_ms
            log_event(
                LOGGER,
                logging.WARNING if slow else logging.INFO,
                "provider_call_completed",
                provider=provider,
                operation=operation,
                duration_ms=duration_ms,
                slow=slow,
            )
            return result

        return wrapper

    return decorator


__all__ = ["SLOW_CALL_MS", "instrument_provider"]
