"""
Gesture Logic Module - Wave Detection
=====================================
Turns a noisy stream of fingertip positions into a single debounced
"wave detected" event.

A wave is a side-to-side swing: the sliding window of the last 12 horizontal
positions must change direction at least twice and span at least 10% of the
frame width. After firing, the detector stays disarmed until the capture
session re-arms it, so one wave starts exactly one countdown.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional

import cv2
import numpy as np


def count_reversals(samples: Iterable[float], noise_floor: float) -> int:
    """
    Count direction changes in a sequence of positions.

    Deltas smaller than ``noise_floor`` are ignored so that jitter while the
    hand is still does not register as a swing.

    Args:
        samples: Horizontal positions in arrival order
        noise_floor: Minimum absolute delta that counts as movement

    Returns:
        Number of sign changes between consecutive significant deltas
    """
    reversals = 0
    prev_dir = 0
    prev = None
    for x in samples:
        if prev is not None:
            delta = x - prev
            if abs(delta) >= noise_floor:
                direction = 1 if delta > 0 else -1
                if prev_dir and direction != prev_dir:
                    reversals += 1
                prev_dir = direction
        prev = x
    return reversals


def swing(samples: Iterable[float]) -> float:
    """Horizontal extent (max - min) of the samples."""
    values = list(samples)
    if not values:
        return 0.0
    return max(values) - min(values)


@dataclass
class WaveStats:
    """Measurements taken from a full buffer."""
    reversals: int
    swing: float
    triggered: bool


class WaveDetector:
    """
    Sliding-window wave detector.

    Feed it one observation per hand-tracking result. ``observe`` returns True
    exactly once per wave; the caller must ``arm`` it again afterwards.
    """

    BUFFER_SIZE = 12        # Samples in the sliding window
    NOISE_FLOOR = 0.008     # Deltas below this are jitter
    SWING_THRESHOLD = 0.10  # Minimum max-min span (normalized)
    MIN_REVERSALS = 2       # Direction changes needed

    # Float slack so that a span of exactly 0.10 still counts
    _EPSILON = 1e-9

    def __init__(self, armed: bool = True):
        self._buffer: Deque[float] = deque(maxlen=self.BUFFER_SIZE)
        self._armed = armed
        self._last_stats: Optional[WaveStats] = None

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def buffer(self) -> tuple:
        """Snapshot of the current window, oldest first."""
        return tuple(self._buffer)

    @property
    def last_stats(self) -> Optional[WaveStats]:
        """Stats of the most recent full-window evaluation."""
        return self._last_stats

    def arm(self):
        """Allow the next wave to fire. Starts from an empty window."""
        self._buffer.clear()
        self._armed = True

    def disarm(self):
        """Ignore samples until armed again."""
        self._buffer.clear()
        self._armed = False

    def reset(self):
        """Drop any partial swing history."""
        self._buffer.clear()
        self._last_stats = None

    def observe(self, sample: Optional[float]) -> bool:
        """
        Process one hand-tracking result.

        Args:
            sample: Normalized x of the tracked fingertip, or None when no
                hand was observed

        Returns:
            True if this sample completed a wave
        """
        if sample is None:
            self._buffer.clear()
            return False

        if not self._armed:
            return False

        self._buffer.append(float(sample))
        if len(self._buffer) < self.BUFFER_SIZE:
            return False

        stats = self.evaluate(self._buffer)
        self._last_stats = stats
        if stats.triggered:
            self._buffer.clear()
            self._armed = False
        return stats.triggered

    @classmethod
    def evaluate(cls, samples: Iterable[float]) -> WaveStats:
        """Measure a window of samples against the wave thresholds."""
        values = list(samples)
        reversals = count_reversals(values, cls.NOISE_FLOOR)
        span = swing(values)
        triggered = (
            reversals >= cls.MIN_REVERSALS
            and span >= cls.SWING_THRESHOLD - cls._EPSILON
        )
        return WaveStats(reversals=reversals, swing=span, triggered=triggered)


def draw_wave_meter(frame: np.ndarray, detector: WaveDetector) -> np.ndarray:
    """
    Draw the wave buffer fill and armed state on the frame.

    Args:
        frame: Image to draw on
        detector: WaveDetector to visualize

    Returns:
        Frame with the meter overlay
    """
    h, w = frame.shape[:2]

    box_w, box_h = 240, 50
    x0, y0 = 10, h - box_h - 10
    cv2.rectangle(frame, (x0, y0), (x0 + box_w, y0 + box_h), (0, 0, 0), -1)
    cv2.rectangle(frame, (x0, y0), (x0 + box_w, y0 + box_h), (255, 255, 255), 1)

    color = (0, 255, 0) if detector.armed else (100, 100, 100)
    label = "Wave to start" if detector.armed else "Wave paused"
    cv2.putText(frame, label, (x0 + 10, y0 + 20),
                cv2.FONT_HERSHEY_SIMPLEX, 0.55, color, 1)

    fill = len(detector.buffer) / detector.BUFFER_SIZE
    cv2.rectangle(frame, (x0 + 10, y0 + 30), (x0 + 10 + int(220 * fill), y0 + 40), color, -1)
    cv2.rectangle(frame, (x0 + 10, y0 + 30), (x0 + 230, y0 + 40), (100, 100, 100), 1)

    # Trace of the fingertip positions, scaled to the frame width
    for x in detector.buffer:
        px = int(np.clip(x, 0.0, 1.0) * (w - 1))
        cv2.circle(frame, (px, y0 - 8), 3, color, -1)

    return frame
