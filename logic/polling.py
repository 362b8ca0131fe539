"""Bounded fixed-interval polling for providers that only expose a status endpoint."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Literal, Optional, TypeVar

from ootd_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)
T = TypeVar("T")

PollStatus = Literal["pending", "succeeded", "failed"]


@dataclass(frozen=True)
class PollPolicy:
    """Maximum attempts and the fixed sleep taken after every non-terminal poll."""

    max_attempts: int = 20
    interval_seconds: float = 1.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds cannot be negative")

    @property
    def max_wait_seconds(self) -> float:
        return self.max_attempts * self.interval_seconds


@dataclass(frozen=True)
class PollOutcome(Generic[T]):
    status: Literal["succeeded", "failed", "timed_out"]
    attempts: int
    payload: Optional[T] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


def poll_until(
    fetch: Callable[[], T],
    classify: Callable[[T], PollStatus],
    policy: PollPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PollOutcome[T]:
    """Call ``fetch`` until ``classify`` reports a terminal status or attempts run out.

    Exceptions raised by ``fetch`` propagate to the caller; exhausting the
    attempts is reported as ``timed_out`` rather than raised.
    """

    policy = policy or PollPolicy()
    last: Optional[T] = None
    for attempt in range(1, policy.max_attempts + 1):
        last = fetch()
        status = classify(last)
        log_event(LOGGER, logging.DEBUG, "poll_attempt", attempt=attempt, status=status)
        if status != "pending":
            return PollOutcome(status=status, attempts=attempt, payload=last)
        sleep(policy.interval_seconds)
    return PollOutcome(status="timed_out", attempts=policy.max_attempts, payload=last)


__all__ = ["PollOutcome", "PollPolicy", "PollStatus", "poll_until"]
