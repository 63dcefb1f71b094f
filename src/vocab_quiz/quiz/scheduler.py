"""Cancellable delayed callbacks used for the correct-answer auto-advance."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Protocol

__all__ = [
    "TimerHandle",
    "Scheduler",
    "ThreadingScheduler",
    "ManualScheduler",
]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(
        self, delay: float, callback: Callable[[], None]
    ) -> TimerHandle: ...


class ThreadingScheduler:
    """Run callbacks on daemon ``threading.Timer`` threads."""

    def schedule(
        self, delay: float, callback: Callable[[], None]
    ) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass
class _ManualTask:
    due: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Scheduler driven by its owner instead of a clock.

    The console shell sleeps for :attr:`next_delay` and then calls
    :meth:`run_pending`; tests call :meth:`advance` to move virtual time.
    """

    now: float = 0.0
    _tasks: list[_ManualTask] = field(default_factory=list)

    def schedule(
        self, delay: float, callback: Callable[[], None]
    ) -> TimerHandle:
        task = _ManualTask(due=self.now + max(0.0, delay), callback=callback)
        self._tasks.append(task)
        return task

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.cancelled)

    @property
    def next_delay(self) -> float | None:
        live = [task.due for task in self._tasks if not task.cancelled]
        if not live:
            return None
        return max(0.0, min(live) - self.now)

    def advance(self, seconds: float) -> int:
        """Move time forward and fire every task that came due."""

        self.now += seconds
        return self._fire(lambda task: task.due <= self.now)

    def run_pending(self) -> int:
        """Fire every live task regardless of its due time."""

        latest = max((task.due for task in self._tasks), default=self.now)
        self.now = max(self.now, latest)
        return self._fire(lambda task: True)

    def _fire(self, ready: Callable[[_ManualTask], bool]) -> int:
        due = [task for task in self._tasks if ready(task)]
        fired_ids = {id(task) for task in due}
        self._tasks = [
            task for task in self._tasks if id(task) not in fired_ids
        ]
        fired = 0
        for task in sorted(due, key=lambda item: item.due):
            if task.cancelled:
                continue
            fired += 1
            task.callback()
        return fired
