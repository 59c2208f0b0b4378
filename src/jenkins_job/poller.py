"""Blocking wait for a job to go quiet.

A job is ``ACTIVE`` while it is animating in the job list or sitting in the
build queue. Every tick sleeps first, then refreshes both views, so a build
that was just triggered gets a chance to show up before the first check.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class PollState(enum.Enum):
    ACTIVE = "active"
    IDLE = "idle"


class PollOutcome(enum.Enum):
    IDLE = "idle"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class CompletionPoller:
    """Poll ``is_active`` and ``is_queued`` until both report False.

    Args:
        is_active: Returns True while the job is building.
        is_queued: Refreshes the build queue and returns True while the job
            is waiting in it.
        poll_interval: Seconds to sleep before each tick.
        sleep: Sleep function; defaults to ``cancel_event.wait`` when an
            event is given, so setting it cuts the current sleep short, and
            to ``time.sleep`` otherwise.
        clock: Clock used for ``timeout``; defaults to ``time.monotonic``.
        cancel_event: Set from another thread to stop waiting.
        timeout: Seconds after which to give up; ``None`` waits forever.
    """

    def __init__(
        self,
        is_active: Callable[[], bool],
        is_queued: Callable[[], bool],
        poll_interval: float,
        *,
        sleep: Callable[[float], object] | None = None,
        clock: Callable[[], float] | None = None,
        cancel_event: threading.Event | None = None,
        timeout: float | None = None,
        label: str = "job",
    ) -> None:
        self._is_active = is_active
        self._is_queued = is_queued
        self._poll_interval = poll_interval
        if sleep is None:
            sleep = cancel_event.wait if cancel_event is not None else time.sleep
        self._sleep = sleep
        self._clock = clock or time.monotonic
        self._cancel_event = cancel_event
        self._timeout = timeout
        self._label = label
        self.state = PollState.ACTIVE
        self.ticks = 0

    def _cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    def tick(self) -> PollState:
        """Evaluate the transition rule once."""
        queued = self._is_queued()
        active = self._is_active()
        self.state = PollState.ACTIVE if active or queued else PollState.IDLE
        self.ticks += 1
        return self.state

    def wait(self) -> PollOutcome:
        deadline = None if self._timeout is None else self._clock() + self._timeout
        while True:
            if self._cancelled():
                logger.info("Stopped waiting for %s: cancelled", self._label)
                return PollOutcome.CANCELLED
            logger.info("Waiting for all %s builds to finish", self._label)
            self._sleep(self._poll_interval)
            if self._cancelled():
                logger.info("Stopped waiting for %s: cancelled", self._label)
                return PollOutcome.CANCELLED
            if self.tick() is PollState.IDLE:
                return PollOutcome.IDLE
            if deadline is not None and self._clock() >= deadline:
                logger.warning("Gave up waiting for %s after %s seconds", self._label, self._timeout)
                return PollOutcome.TIMED_OUT
