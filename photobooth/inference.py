"""
Inference Module - Periodic Hand Detection
==========================================
Issues hand-landmark requests on a fixed cadence with at most one request in
flight. A tick that arrives while a request is still running is skipped, not
queued. Results are handed back on the control thread from ``poll``.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from typing import Callable, Optional

import numpy as np

from .scheduler import Scheduler, TaskHandle


logger = logging.getLogger(__name__)


class InferencePump:
    """
    Drives a detector from a frame source on a repeating timer.

    Args:
        scheduler: Scheduler that owns the repeating tick
        frame_source: Object with ``is_ready()`` and ``get_frame()``
        detect: Function mapping a frame to a wave sample (or None)
        on_result: Called with each sample on the control thread
        interval: Seconds between requests
        executor: Where detection runs (defaults to one worker thread)
    """

    def __init__(
        self,
        scheduler: Scheduler,
        frame_source,
        detect: Callable[[np.ndarray], Optional[float]],
        on_result: Callable[[Optional[float]], None],
        interval: float = 0.1,
        executor: Optional[Executor] = None
    ):
        self.scheduler = scheduler
        self.frame_source = frame_source
        self.detect = detect
        self.on_result = on_result
        self.interval = interval

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="hands")
        self._handle: Optional[TaskHandle] = None
        self._pending: Optional[Future] = None
        self._stopped = False

        # Counters
        self.issued = 0
        self.skipped = 0
        self.failed = 0

    @property
    def busy(self) -> bool:
        """True while a request is in flight."""
        return self._pending is not None

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self):
        """Begin issuing requests every ``interval`` seconds."""
        if self._stopped:
            raise RuntimeError("pump has been stopped")
        if self.running:
            return
        self._handle = self.scheduler.call_every(self.interval, self._tick, name="hand-inference")

    def _tick(self):
        if self.busy:
            self.skipped += 1
            return
        if not self.frame_source.is_ready():
            return
        frame = self.frame_source.get_frame()
        if frame is None or frame.shape[0] == 0 or frame.shape[1] == 0:
            return
        self._pending = self._executor.submit(self.detect, frame)
        self.issued += 1

    def poll(self) -> bool:
        """
        Deliver a finished result, if any.

        Returns:
            True if a result was delivered
        """
        future = self._pending
        if future is None or not future.done():
            return False
        self._pending = None
        if future.cancelled():
            return False

        try:
            sample = future.result()
        except Exception as e:
            self.failed += 1
            logger.warning("Hand detection failed: %s", e)
            return False

        if not self._stopped:
            self.on_result(sample)
        return True

    def stop(self):
        """
        Cancel the timer and any queued request.

        A request that is already running cannot be cancelled; ``stop`` waits
        for it, so the detector is idle once this returns.
        """
        self._stopped = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        future, self._pending = self._pending, None
        if future is not None and not future.cancel():
            wait([future])
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
