"""Cancellable scheduled tasks for game sessions.

Every task is registered under a ``(session_id, name)`` key. Scheduling a key
again replaces the previous task, and ``cancel_session`` drops everything a
session still has outstanding, so a destroyed session never receives a late
callback.

Two implementations are provided:

- ``ManualScheduler``: a virtual clock advanced explicitly, either from a host
  frame loop (``advance(dt)``) or from tests. Fully deterministic.
- ``AsyncioScheduler``: backed by an asyncio event loop for real-time hosts.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

TaskKey = Tuple[str, str]


class ScheduledTask:
    """Handle for a one-shot or repeating task."""

    def __init__(self, key: TaskKey, callback: Callable[[], None], due: float, interval: Optional[float] = None) -> None:
        self.key = key
        self.callback = callback
        self.due = due
        self.interval = interval
        self.cancelled = False
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def __repr__(self) -> str:
        return f"ScheduledTask(key={self.key!r}, due={self.due}, interval={self.interval}, cancelled={self.cancelled})"


class Scheduler(Protocol):
    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[[], None], *, key: TaskKey) -> ScheduledTask:
        ...

    def call_every(self, interval: float, callback: Callable[[], None], *, key: TaskKey) -> ScheduledTask:
        ...

    def cancel(self, key: TaskKey) -> bool:
        ...

    def cancel_session(self, session_id: str) -> int:
        ...


class _KeyedScheduler:
    """Bookkeeping shared by the concrete schedulers."""

    def __init__(self) -> None:
        self._tasks: Dict[TaskKey, ScheduledTask] = {}

    def _register(self, task: ScheduledTask) -> ScheduledTask:
        prior = self._tasks.get(task.key)
        if prior is not None:
            prior.cancel()
            logger.debug("Replaced scheduled task %s", task.key)
        self._tasks[task.key] = task
        return task

    def _finished(self, task: ScheduledTask) -> None:
        if self._tasks.get(task.key) is task:
            del self._tasks[task.key]

    def cancel(self, key: TaskKey) -> bool:
        task = self._tasks.pop(key, None)
        if task is None:
            return False
        task.cancel()
        logger.debug("Cancelled scheduled task %s", key)
        return True

    def cancel_session(self, session_id: str) -> int:
        keys = [k for k in self._tasks if k[0] == session_id]
        for k in keys:
            self.cancel(k)
        return len(keys)

    def pending(self, session_id: Optional[str] = None) -> List[TaskKey]:
        """Keys of live tasks, optionally limited to one session."""
        return [k for k in self._tasks if session_id is None or k[0] == session_id]

    @staticmethod
    def _check_delay(delay: float, name: str) -> None:
        if delay < 0:
            raise ValueError(f"{name} must be non-negative, got {delay}")


class ManualScheduler(_KeyedScheduler):
    """Virtual-time scheduler; nothing fires until ``advance`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        super().__init__()
        self._now = float(start)
        self._heap: List[Tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def _push(self, task: ScheduledTask) -> None:
        heapq.heappush(self._heap, (task.due, next(self._seq), task))

    def call_later(self, delay: float, callback: Callable[[], None], *, key: TaskKey) -> ScheduledTask:
        self._check_delay(delay, "delay")
        task = self._register(ScheduledTask(key, callback, self._now + delay))
        self._push(task)
        return task

    def call_every(self, interval: float, callback: Callable[[], None], *, key: TaskKey) -> ScheduledTask:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        task = self._register(ScheduledTask(key, callback, self._now + interval, interval=interval))
        self._push(task)
        return task

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due tasks in order. Returns the number fired."""
        self._check_delay(seconds, "seconds")
        target = self._now + seconds
        fired = 0
        while self._heap and self._heap[0][0] <= target:
            due, _, task = heapq.heappop(self._heap)
            if task.cancelled:
                continue
            self._now = max(self._now, due)
            if task.interval is not None:
                task.due = due + task.interval
                self._push(task)
            else:
                self._finished(task)
            fired += 1
            task.callback()
        self._now = max(self._now, target)
        return fired


class AsyncioScheduler(_KeyedScheduler):
    """Scheduler backed by an asyncio loop.

    Must be created inside a running loop unless ``loop`` is passed explicitly.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        super().__init__()
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time()

    def _arm(self, task: ScheduledTask, delay: float) -> None:
        task.due = self._loop.time() + delay
        task._handle = self._loop.call_later(delay, self._fire, task)

    def _fire(self, task: ScheduledTask) -> None:
        if task.cancelled:
            return
        if task.interval is not None:
            self._arm(task, task.interval)
        else:
            task._handle = None
            self._finished(task)
        task.callback()

    def call_later(self, delay: float, callback: Callable[[], None], *, key: TaskKey) -> ScheduledTask:
        self._check_delay(delay, "delay")
        task = self._register(ScheduledTask(key, callback, 0.0))
        self._arm(task, delay)
        return task

    def call_every(self, interval: float, callback: Callable[[], None], *, key: TaskKey) -> ScheduledTask:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        task = self._register(ScheduledTask(key, callback, 0.0, interval=interval))
        self._arm(task, interval)
        return task


__all__ = ["ScheduledTask", "Scheduler", "ManualScheduler", "AsyncioScheduler", "TaskKey"]
