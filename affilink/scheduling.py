"""Deterministic timers for racing deep links against web fallbacks."""
from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

LOGGER = logging.getLogger(__name__)

LEFT = "left"
FIRED = "fired"


@dataclass(order=True)
class DelayedTask:
    """A callback scheduled to run once at ``due`` unless cancelled first."""

    due: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    done: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.done)


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> DelayedTask:
        ...


class VirtualScheduler:
    """Single-threaded scheduler driven by an explicit clock.

    Tasks never run on their own; ``advance`` and ``run_until_idle`` move the
    clock forward and run whatever became due, in due order.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[DelayedTask] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> DelayedTask:
        task = DelayedTask(due=self.now + max(0.0, delay), sequence=next(self._counter), callback=callback)
        heapq.heappush(self._queue, task)
        return task

    def pending(self) -> List[DelayedTask]:
        return sorted(task for task in self._queue if task.pending)

    def _run_next(self, limit: float | None) -> bool:
        while self._queue:
            task = self._queue[0]
            if not task.pending:
                heapq.heappop(self._queue)
                continue
            if limit is not None and task.due > limit:
                return False
            heapq.heappop(self._queue)
            self.now = max(self.now, task.due)
            task.done = True
            task.callback()
            return True
        return False

    def advance(self, seconds: float) -> None:
        limit = self.now + seconds
        while self._run_next(limit):
            pass
        self.now = max(self.now, limit)

    def run_until_idle(self) -> None:
        while self._run_next(None):
            pass


class FallbackTimer:
    """One-shot fallback with a single resolution: the user left, or it fired."""

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.resolution: Optional[str] = None
        self._callback = callback
        self._task = scheduler.call_later(delay, self._fire)

    def _fire(self) -> None:
        if self.resolution is not None:
            return
        self.resolution = FIRED
        self._callback()

    def user_left(self) -> None:
        if self.resolution is not None:
            return
        LOGGER.debug("Page left before %.2fs fallback; cancelling", self.delay)
        self.resolution = LEFT
        self._task.cancel()
