"""
Scheduler Module - Cancelable Timers
====================================
One-shot and repeating timers driven from the application's main loop.

Nothing runs on its own: the owner calls ``run_pending`` on every loop
iteration and due callbacks execute on that same thread. Every timer is
represented by a ``TaskHandle`` that the owner keeps and cancels on teardown.
"""

import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional, Tuple


logger = logging.getLogger(__name__)


class TaskHandle:
    """
    Handle for a scheduled callback.

    Attributes:
        name: Label used in log messages
        due: Clock time of the next run
        interval: Repeat period in seconds, or None for a one-shot
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[], None],
        due: float,
        interval: Optional[float] = None
    ):
        self.name = name
        self.due = due
        self.interval = interval
        self._callback = callback
        self._cancelled = False
        self._finished = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the callback may still run."""
        return not (self._cancelled or self._finished)

    def cancel(self):
        """Prevent any further runs. Safe to call more than once."""
        self._cancelled = True

    def _run(self):
        if self.interval is None:
            self._finished = True
        self._callback()

    def __repr__(self) -> str:
        kind = f"every {self.interval}s" if self.interval else "once"
        return f"TaskHandle({self.name!r}, due={self.due:.3f}, {kind}, active={self.active})"


class Scheduler:
    """
    Cooperative timer queue.

    Args:
        clock: Monotonic time source in seconds (injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._queue: List[Tuple[float, int, TaskHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "task") -> TaskHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        handle = TaskHandle(name, callback, self.now() + delay)
        self._push(handle)
        return handle

    def call_every(
        self,
        interval: float,
        callback: Callable[[], None],
        name: str = "task",
        first_delay: Optional[float] = None
    ) -> TaskHandle:
        """
        Run ``callback`` every ``interval`` seconds until cancelled.

        Args:
            interval: Period in seconds (must be positive)
            callback: Function to run
            name: Label for logs
            first_delay: Delay before the first run (defaults to ``interval``)
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        delay = interval if first_delay is None else first_delay
        handle = TaskHandle(name, callback, self.now() + delay, interval)
        self._push(handle)
        return handle

    def run_pending(self, now: Optional[float] = None) -> int:
        """
        Run every callback that is due, earliest first.

        Repeating tasks that fell behind run once per missed period, so a
        late loop iteration still sees every countdown tick in order.

        Returns:
            Number of callbacks executed
        """
        now = self.now() if now is None else now
        ran = 0
        while self._queue and self._queue[0][0] <= now:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.active or handle.due != due:
                continue
            if handle.interval is not None:
                handle.due = due + handle.interval
                self._push(handle)
            handle._run()
            ran += 1
        return ran

    def cancel_all(self):
        """Cancel every queued task."""
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()

    def pending(self) -> List[TaskHandle]:
        """Active tasks, soonest first."""
        seen = []
        for _, _, handle in sorted(self._queue, key=lambda item: item[:2]):
            if handle.active and handle not in seen:
                seen.append(handle)
        return seen

    def _push(self, handle: TaskHandle):
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        logger.debug("Scheduled %r", handle)
