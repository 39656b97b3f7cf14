import threading
import time

import pytest

from photobooth.booth import CAMERA_DENIED, MANUAL_HINT, PICK_LAYOUT, WAVE_HINT, Page, PhotoBooth
from photobooth.camera import StillFrameSource
from photobooth.compositor import strip_geometry
from photobooth.config import BoothConfig
from photobooth.errors import CameraError, HandTrackingError, InvalidLayoutError
from photobooth.layout import Orientation
from photobooth.session import CaptureState

from .conftest import ImmediateExecutor
from .test_gesture_logic import WAVE


class FakeTracker:

    def __init__(self, samples):
        self.samples = samples
        self.calls = 0
        self.released = False

    def detect_wave_sample(self, frame):
        sample = self.samples[self.calls % len(self.samples)]
        self.calls += 1
        return sample

    def release(self):
        self.released = True


class BrokenCamera(StillFrameSource):

    def start(self):
        raise CameraError("Permission denied")


@pytest.fixture
def booth(scheduler):
    return PhotoBooth(BoothConfig(stamp_path=""), scheduler=scheduler)


def take_photo(booth, clock):
    assert booth.manual_trigger()
    for _ in range(3):
        clock.advance(1.0)
        booth.poll()
    clock.advance(0.35)
    booth.poll()


def open_camera(booth, frame, count=2):
    booth.go_to(Page.LAYOUT)
    booth.select_count(count)
    assert booth.go_to_camera()
    assert booth.start_capture(StillFrameSource(frame))


def test_layout_required_before_camera(booth):
    booth.go_to(Page.LAYOUT)
    assert not booth.go_to_camera()
    assert booth.status == PICK_LAYOUT
    assert booth.page is Page.LAYOUT
    assert not booth.start_capture(StillFrameSource())


def test_layout_choice(booth):
    booth.go_to(Page.LAYOUT)
    booth.select_count(4)
    assert booth.toggle_orientation() is Orientation.LANDSCAPE
    assert booth.layout.count == 4
    assert not booth.layout.is_portrait
    with pytest.raises(InvalidLayoutError):
        booth.select_count(7)


def test_full_visit(booth, clock, frame, tmp_path):
    open_camera(booth, frame, count=2)
    assert booth.manual_mode
    assert booth.status == MANUAL_HINT

    take_photo(booth, clock)
    assert not booth.done_capture()
    assert booth.status == "Please take at least 2 photos first."
    assert booth.page is Page.CAMERA

    take_photo(booth, clock)
    take_photo(booth, clock)
    assert booth.done_capture()
    assert booth.page is Page.CHOOSE
    assert booth.session is None
    assert len(booth.photos) == 3
    assert booth.status == "Select up to 2 photos. The rest will be discarded."

    booth.toggle_photo(2)
    assert not booth.done_choose()
    assert booth.status == "Please select 2 photos."
    booth.toggle_photo(0)
    assert booth.done_choose()
    assert booth.page is Page.DOWNLOAD

    geometry = strip_geometry(booth.layout, booth.config.export_base)
    assert booth.strip.image.shape == (geometry.height, geometry.width, 3)
    assert tuple(booth.strip.image[0, 0]) == (255, 255, 255)

    assert booth.update_frame_color(hue=0, sat=1, val=1) == "#FF0000"
    assert tuple(booth.strip.image[0, 0]) == (0, 0, 255)

    assert booth.set_tint_hex("#00ff00")
    assert not booth.set_frame_hex("zz")
    booth.set_tint_opacity(150)
    assert booth.tint_opacity == 1.0
    booth.set_tint_opacity(50)
    assert booth.composition_spec.tint_opacity == 0.5

    assert booth.toggle_greyscale()
    assert booth.composition_spec.greyscale

    path = booth.download(tmp_path)
    assert path.exists()
    assert path.name == "photostrip.png"


def test_download_page_resets_styling(booth, clock, frame):
    open_camera(booth, frame, count=1)
    take_photo(booth, clock)
    booth.done_capture()
    booth.toggle_photo(0)
    booth.done_choose()
    booth.update_tint_color(hue=200, sat=1, val=1)
    booth.toggle_greyscale()

    booth.go_to(Page.DOWNLOAD)
    assert booth.tint_picker.hex == "#FFFFFF"
    assert not booth.greyscale


def test_cap_message(booth, clock, frame):
    open_camera(booth, frame, count=1)
    for _ in range(6):
        take_photo(booth, clock)
    assert booth.status == "6 photos taken! Press done when ready."
    assert not booth.manual_trigger()


def test_camera_denied(booth):
    booth.go_to(Page.LAYOUT)
    booth.select_count(1)
    booth.go_to_camera()
    assert not booth.start_capture(BrokenCamera())
    assert booth.status == CAMERA_DENIED
    assert booth.session is None


def test_tracker_failure_falls_back_to_manual(booth, frame):
    def broken():
        raise HandTrackingError("no model")

    booth.go_to(Page.LAYOUT)
    booth.select_count(1)
    booth.go_to_camera()
    assert booth.start_capture(StillFrameSource(frame), tracker_factory=broken)
    assert booth.manual_mode
    assert booth.status == MANUAL_HINT
    assert booth.pump is None


def test_wave_starts_countdown_and_leaving_tears_down(booth, clock, scheduler, frame):
    tracker = FakeTracker(WAVE)
    source = StillFrameSource(frame)
    booth.go_to(Page.LAYOUT)
    booth.select_count(2)
    booth.go_to_camera()
    assert booth.start_capture(source, tracker_factory=lambda: tracker, executor=ImmediateExecutor())
    assert not booth.manual_mode
    assert booth.status == WAVE_HINT

    for _ in range(30):
        clock.advance(booth.config.inference_interval)
        booth.poll()
        if booth.session.state is CaptureState.COUNTDOWN:
            break
    assert booth.session.state is CaptureState.COUNTDOWN

    booth.go_to(Page.LANDING)
    assert tracker.released
    assert booth.pump is None
    assert booth.session is None
    assert not source.is_ready()
    assert scheduler.pending() == []


class SlowTracker(FakeTracker):

    def __init__(self):
        super().__init__([0.5])
        self.started = threading.Event()
        self.used_after_release = False

    def detect_wave_sample(self, frame):
        self.started.set()
        time.sleep(0.2)
        if self.released:
            self.used_after_release = True
        return super().detect_wave_sample(frame)


def test_tracker_released_after_running_detection_finishes(booth, clock, frame):
    tracker = SlowTracker()
    booth.go_to(Page.LAYOUT)
    booth.select_count(1)
    booth.go_to_camera()
    assert booth.start_capture(StillFrameSource(frame), tracker_factory=lambda: tracker)

    clock.advance(booth.config.inference_interval)
    booth.poll()
    assert tracker.started.wait(timeout=5)

    booth.stop_capture()

    assert tracker.released
    assert tracker.calls == 1
    assert not tracker.used_after_release
