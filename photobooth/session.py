"""
Session Module - Capture State Machine
======================================
Orchestrates the wave/manual trigger, the 3-2-1 countdown, the shutter and
the photo store for one visit to the camera screen.

States::

    IDLE --(wave | manual, photos < 6)--> COUNTDOWN(3)
    COUNTDOWN(n) --(1 s tick)--> COUNTDOWN(n-1)
    COUNTDOWN(1) --(1 s tick)--> SHUTTERING
    SHUTTERING --(300 ms, frame captured)--> IDLE   (+1 photo)

Once a countdown starts it always runs to completion. ``close`` cancels every
timer owned by the session and freezes it.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .gesture_logic import WaveDetector
from .imaging import cover_crop
from .layout import LayoutConfig, layout_dims
from .scheduler import Scheduler, TaskHandle


logger = logging.getLogger(__name__)


class CaptureState(Enum):
    """Capture session states."""
    IDLE = auto()
    COUNTDOWN = auto()
    SHUTTERING = auto()


class SessionEvent(Enum):
    """Events listeners can subscribe to."""
    STATE_CHANGED = auto()   # callback(state, remaining)
    PHOTO_CAPTURED = auto()  # callback(photo)
    CAP_REACHED = auto()     # callback()


@dataclass(frozen=True)
class CapturedPhoto:
    """
    One captured photo.

    Attributes:
        index: Position in the capture order (0-based)
        pixels: Read-only BGR array at slot proportions
    """
    index: int
    pixels: np.ndarray

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) of the stored pixels."""
        return self.pixels.shape[1], self.pixels.shape[0]


class CaptureSession:
    """
    Countdown/capture state machine plus the ordered photo store.

    Args:
        layout: Strip layout, fixed for the lifetime of the session
        frame_source: Object with ``is_ready()`` and ``get_frame()``
        scheduler: Timer queue driven by the main loop
        detector: Wave detector fed by ``on_hand_sample``
        capture_base: Slot base used for stored photos
        mirror: Store photos mirrored (selfie view)
    """

    MAX_PHOTOS = 6
    COUNTDOWN_FROM = 3
    TICK_INTERVAL = 1.0       # seconds between countdown numbers
    SHUTTER_DELAY = 0.3       # seconds between "0" and the shutter
    FRAME_RETRY_DELAY = 0.05  # seconds between frame readiness checks

    def __init__(
        self,
        layout: LayoutConfig,
        frame_source,
        scheduler: Scheduler,
        detector: Optional[WaveDetector] = None,
        capture_base: int = 640,
        mirror: bool = True
    ):
        self.layout = layout
        self.frame_source = frame_source
        self.scheduler = scheduler
        self.detector = detector or WaveDetector()
        self.capture_base = capture_base
        self.mirror = mirror

        self._state = CaptureState.IDLE
        self._remaining = 0
        self._photos: List[CapturedPhoto] = []
        self._closed = False

        self._tick_handle: Optional[TaskHandle] = None
        self._shutter_handle: Optional[TaskHandle] = None

        self._callbacks: Dict[SessionEvent, List[Callable]] = {event: [] for event in SessionEvent}

        self.detector.arm()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def remaining(self) -> int:
        """Number currently shown by the countdown (0 while shuttering)."""
        return self._remaining

    @property
    def photos(self) -> Tuple[CapturedPhoto, ...]:
        return tuple(self._photos)

    @property
    def photo_count(self) -> int:
        return len(self._photos)

    @property
    def is_full(self) -> bool:
        return len(self._photos) >= self.MAX_PHOTOS

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def counting_down(self) -> bool:
        return self._state is not CaptureState.IDLE

    def can_trigger(self) -> bool:
        """Guard shared by the wave and manual triggers."""
        return (
            not self._closed
            and self._state is CaptureState.IDLE
            and not self.is_full
        )

    def register_callback(self, event: SessionEvent, callback: Callable):
        """Subscribe to a session event."""
        self._callbacks[event].append(callback)

    def _emit(self, event: SessionEvent, *args):
        for callback in self._callbacks[event]:
            callback(*args)

    def _set_state(self, state: CaptureState, remaining: int = 0):
        self._state = state
        self._remaining = remaining
        self._emit(SessionEvent.STATE_CHANGED, state, remaining)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def on_hand_sample(self, sample: Optional[float]) -> bool:
        """
        Feed one hand-tracking result to the wave detector.

        Samples are ignored while a countdown runs or once the store is full.

        Returns:
            True if the sample started a countdown
        """
        if not self.can_trigger():
            return False
        if self.detector.observe(sample):
            logger.info("Wave detected")
            return self._start_countdown("wave")
        return False

    def manual_trigger(self) -> bool:
        """Start a countdown without a gesture (same guard as the wave)."""
        return self.trigger("manual")

    def trigger(self, source: str = "manual") -> bool:
        """
        Request a countdown.

        Returns:
            True if a countdown started
        """
        if not self.can_trigger():
            logger.debug("Trigger from %s ignored in state %s", source, self._state.name)
            return False
        return self._start_countdown(source)

    def _start_countdown(self, source: str) -> bool:
        self.detector.disarm()
        self._set_state(CaptureState.COUNTDOWN, self.COUNTDOWN_FROM)
        self._tick_handle = self.scheduler.call_every(
            self.TICK_INTERVAL, self._tick, name="countdown"
        )
        logger.info("Countdown started (%s)", source)
        return True

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _tick(self):
        remaining = self._remaining - 1
        if remaining > 0:
            self._set_state(CaptureState.COUNTDOWN, remaining)
            return

        self._tick_handle.cancel()
        self._tick_handle = None
        self._set_state(CaptureState.SHUTTERING, 0)
        self._shutter_handle = self.scheduler.call_later(
            self.SHUTTER_DELAY, self._shutter, name="shutter"
        )

    def _shutter(self):
        frame = self._grab_frame()
        if frame is None:
            # Stay in SHUTTERING until the source has a usable frame
            self._shutter_handle = self.scheduler.call_later(
                self.FRAME_RETRY_DELAY, self._shutter, name="shutter-retry"
            )
            return
        self._shutter_handle = None

        photo = self._store(frame)
        self._set_state(CaptureState.IDLE)

        if self.is_full:
            self.detector.disarm()
            logger.info("%d photos taken", self.MAX_PHOTOS)
        else:
            self.detector.arm()

        self._emit(SessionEvent.PHOTO_CAPTURED, photo)
        if self.is_full:
            self._emit(SessionEvent.CAP_REACHED)

    def _grab_frame(self) -> Optional[np.ndarray]:
        if not self.frame_source.is_ready():
            return None
        frame = self.frame_source.get_frame()
        if frame is None or frame.size == 0 or frame.shape[0] == 0 or frame.shape[1] == 0:
            return None
        return frame

    def _store(self, frame: np.ndarray) -> CapturedPhoto:
        dims = layout_dims(self.layout, self.capture_base)
        pixels = cover_crop(frame, dims.width, dims.height, mirror=self.mirror)
        pixels.setflags(write=False)

        photo = CapturedPhoto(index=len(self._photos), pixels=pixels)
        self._photos.append(photo)
        logger.info("Captured photo %d/%d", len(self._photos), self.MAX_PHOTOS)
        return photo

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self):
        """
        Cancel every pending timer and stop reacting to events.

        Photos already captured stay available; an in-flight countdown is
        frozen where it was and never produces a photo.
        """
        if self._closed:
            return
        self._closed = True
        for handle in (self._tick_handle, self._shutter_handle):
            if handle is not None:
                handle.cancel()
        self._tick_handle = None
        self._shutter_handle = None
        self.detector.disarm()
        logger.debug("Capture session closed in state %s", self._state.name)

    def pending_timers(self) -> List[TaskHandle]:
        """Timers owned by this session that may still fire."""
        return [
            handle for handle in (self._tick_handle, self._shutter_handle)
            if handle is not None and handle.active
        ]
