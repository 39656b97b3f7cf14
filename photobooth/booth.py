"""
Booth Module - Application Controller
=====================================
Owns everything a visit to the booth needs (layout choice, capture session,
selection, color pickers, rendered strip) as one explicit object, and
implements the page flow::

    LANDING -> LAYOUT -> CAMERA -> CHOOSE -> DOWNLOAD
       \\-> CONTACT

Front-ends (the OpenCV window in ``ui.py``, tests) call into this class and
show ``status`` to the user.
"""

import logging
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from .camera import StillFrameSource
from .color import ColorPicker
from .compositor import CompositionResult, CompositionSpec, Compositor, save_png
from .config import BoothConfig
from .errors import CameraError, HandTrackingError
from .gesture_logic import WaveDetector
from .inference import InferencePump
from .layout import LayoutConfig, Orientation
from .scheduler import Scheduler
from .selection import PhotoSelection
from .session import CaptureSession, CapturedPhoto, SessionEvent


logger = logging.getLogger(__name__)

WAVE_HINT = "Wave your hand to start a 3 second timer."
MANUAL_HINT = "Hand detection unavailable. Use the button below."
CAMERA_DENIED = "Camera access denied. Please allow camera access and reload."
PICK_LAYOUT = "Please pick a layout first."


class Page(Enum):
    """Screens of the booth."""
    LANDING = auto()
    CONTACT = auto()
    LAYOUT = auto()
    CAMERA = auto()
    CHOOSE = auto()
    DOWNLOAD = auto()


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" + ("s" if n != 1 else "")


class PhotoBooth:
    """
    Controller for one user's trip through the booth.

    Args:
        config: Application settings
        scheduler: Timer queue (a fresh monotonic one by default)
        compositor: Strip renderer (loads ``config.stamp_path`` by default)
    """

    def __init__(
        self,
        config: Optional[BoothConfig] = None,
        scheduler: Optional[Scheduler] = None,
        compositor: Optional[Compositor] = None
    ):
        self.config = config or BoothConfig()
        self.scheduler = scheduler or Scheduler()
        self.compositor = compositor or Compositor(stamp=self.config.stamp_path)

        self.page = Page.LANDING
        self.status = ""

        # Layout picker
        self.count: Optional[int] = None
        self.orientation = Orientation.PORTRAIT

        # Camera
        self.session: Optional[CaptureSession] = None
        self.pump: Optional[InferencePump] = None
        self.frame_source = None
        self.manual_mode = False
        self._release_tracker: Optional[Callable[[], None]] = None
        self._photos: Tuple[CapturedPhoto, ...] = ()

        # Choose
        self.selection: Optional[PhotoSelection] = None

        # Download
        self.frame_picker = ColorPicker()
        self.tint_picker = ColorPicker()
        self.tint_opacity = 0.0
        self.greyscale = False
        self.strip: Optional[CompositionResult] = None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def go_to(self, page: Page):
        """Switch screens, tearing down the camera when leaving it."""
        if self.page is Page.CAMERA and page is not Page.CAMERA:
            self.stop_capture()

        self.page = page
        self.status = ""

        if page is Page.LAYOUT:
            self._init_layout()
        elif page is Page.CHOOSE:
            self._init_choose()
        elif page is Page.DOWNLOAD:
            self._init_download()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _init_layout(self):
        self.count = None
        self.orientation = Orientation.PORTRAIT

    @property
    def layout(self) -> Optional[LayoutConfig]:
        if self.count is None:
            return None
        return LayoutConfig(self.count, self.orientation)

    def select_count(self, count: int):
        """Pick the number of photos on the strip."""
        LayoutConfig(count, self.orientation)
        self.count = count
        self.status = ""

    def toggle_orientation(self) -> Orientation:
        self.orientation = self.orientation.toggled()
        return self.orientation

    def go_to_camera(self) -> bool:
        """Leave the layout picker. Blocked until a count is chosen."""
        if self.count is None:
            self.status = PICK_LAYOUT
            return False
        self.go_to(Page.CAMERA)
        return True

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    @property
    def photos(self) -> Tuple[CapturedPhoto, ...]:
        if self.session is not None:
            return self.session.photos
        return self._photos

    def start_capture(
        self,
        frame_source=None,
        tracker_factory: Optional[Callable] = None,
        executor=None
    ) -> bool:
        """
        Open the camera context and start listening for waves.

        Args:
            frame_source: Frame source with ``start``/``stop``/``is_ready``/``get_frame``
            tracker_factory: Returns an object with ``detect_wave_sample(frame)``
                and ``release()``; None or a HandTrackingError selects manual mode
            executor: Optional executor for hand detection

        Returns:
            False if the camera could not be opened
        """
        if self.layout is None:
            self.status = PICK_LAYOUT
            return False

        self.stop_capture()
        self.page = Page.CAMERA
        self._photos = ()

        self.frame_source = frame_source or StillFrameSource()
        try:
            self.frame_source.start()
        except CameraError as e:
            logger.error("Camera error: %s", e)
            self.status = CAMERA_DENIED
            self.frame_source = None
            return False

        self.session = CaptureSession(
            self.layout,
            self.frame_source,
            self.scheduler,
            detector=WaveDetector(),
            capture_base=self.config.capture_base
        )
        self.session.register_callback(SessionEvent.CAP_REACHED, self._on_cap_reached)

        tracker = None
        if tracker_factory is not None:
            try:
                tracker = tracker_factory()
            except HandTrackingError as e:
                logger.error("MediaPipe failed: %s", e)

        if tracker is None:
            self.manual_mode = True
            self.status = MANUAL_HINT
            return True

        self.manual_mode = False
        self._release_tracker = tracker.release
        self.pump = InferencePump(
            self.scheduler,
            self.frame_source,
            tracker.detect_wave_sample,
            self.session.on_hand_sample,
            interval=self.config.inference_interval,
            executor=executor
        )
        self.pump.start()
        self.status = WAVE_HINT
        return True

    def _on_cap_reached(self):
        self.status = f"{CaptureSession.MAX_PHOTOS} photos taken! Press done when ready."

    def poll(self, now: Optional[float] = None):
        """Advance timers and deliver finished hand detections."""
        self.scheduler.run_pending(now)
        if self.pump is not None:
            self.pump.poll()

    def manual_trigger(self) -> bool:
        """The "take photo" button."""
        if self.session is None:
            return False
        return self.session.manual_trigger()

    def stop_capture(self):
        """Cancel timers and inference, release the tracker and the camera."""
        if self.pump is not None:
            self.pump.stop()
            self.pump = None
        if self.session is not None:
            self._photos = self.session.photos
            self.session.close()
            self.session = None
        if self._release_tracker is not None:
            self._release_tracker()
            self._release_tracker = None
        if self.frame_source is not None:
            self.frame_source.stop()
            self.frame_source = None

    def done_capture(self) -> bool:
        """Continue to photo selection once enough photos exist."""
        needed = self.count or 0
        if len(self.photos) < needed:
            self.status = f"Please take at least {_plural(needed, 'photo')} first."
            return False
        self.go_to(Page.CHOOSE)
        return True

    # ------------------------------------------------------------------
    # Choose
    # ------------------------------------------------------------------

    def _init_choose(self):
        self.selection = PhotoSelection(self.count, len(self.photos))
        self.status = f"Select up to {self.count} photos. The rest will be discarded."

    def toggle_photo(self, index: int) -> bool:
        return self.selection.toggle(index)

    def done_choose(self) -> bool:
        """Continue to the download page once every slot has a photo."""
        if not self.selection.is_complete:
            self.status = f"Please select {_plural(self.count, 'photo')}."
            return False
        self.go_to(Page.DOWNLOAD)
        return True

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def _init_download(self):
        self.frame_picker.reset()
        self.tint_picker.reset()
        self.tint_opacity = 0.0
        self.greyscale = False
        self.render_strip()

    @property
    def composition_spec(self) -> CompositionSpec:
        return CompositionSpec(
            layout=self.layout,
            frame_color=self.frame_picker.hex,
            tint_color=self.tint_picker.hex,
            tint_opacity=self.tint_opacity,
            greyscale=self.greyscale
        )

    def render_strip(self) -> CompositionResult:
        """Re-render the strip from the current selection and styling."""
        self.strip = self.compositor.render(
            self.photos,
            self.selection.indices,
            self.composition_spec,
            base=self.config.export_base
        )
        return self.strip

    def update_frame_color(self, hue: Optional[float] = None, sat: Optional[float] = None,
                           val: Optional[float] = None) -> str:
        _update_picker(self.frame_picker, hue, sat, val)
        self.render_strip()
        return self.frame_picker.hex

    def update_tint_color(self, hue: Optional[float] = None, sat: Optional[float] = None,
                          val: Optional[float] = None) -> str:
        _update_picker(self.tint_picker, hue, sat, val)
        self.render_strip()
        return self.tint_picker.hex

    def set_frame_hex(self, text: str) -> bool:
        if self.frame_picker.set_hex(text):
            self.render_strip()
            return True
        return False

    def set_tint_hex(self, text: str) -> bool:
        if self.tint_picker.set_hex(text):
            self.render_strip()
            return True
        return False

    def set_tint_opacity(self, percent: int):
        """Opacity slider, 0-100."""
        self.tint_opacity = max(0, min(100, int(percent))) / 100
        self.render_strip()

    def toggle_greyscale(self) -> bool:
        self.greyscale = not self.greyscale
        self.render_strip()
        return self.greyscale

    def download(self, directory: Union[str, Path, None] = None) -> Path:
        """Write the current strip as ``photostrip.png``."""
        if self.strip is None:
            self.render_strip()
        return save_png(self.strip, directory or self.config.output_dir)


def _update_picker(picker: ColorPicker, hue, sat, val):
    if hue is not None:
        picker.set_hue(hue)
    if sat is not None or val is not None:
        picker.set_sv(
            picker.sat if sat is None else sat,
            picker.val if val is None else val
        )
