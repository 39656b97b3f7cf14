import numpy as np

from photobooth.camera import Camera, StillFrameSource


def test_still_source_copies_frames(frame):
    source = StillFrameSource(frame)
    source.start()
    assert source.is_ready()
    grabbed = source.get_frame()
    grabbed[:] = 7
    assert frame.max() == 255


def test_still_source_without_frame():
    source = StillFrameSource()
    assert not source.is_ready()
    assert source.get_frame() is None


def test_zero_sized_frame_is_not_ready():
    assert not StillFrameSource(np.zeros((0, 0, 3), dtype=np.uint8)).is_ready()


def test_stop_drops_frame(frame):
    source = StillFrameSource(frame)
    source.stop()
    assert not source.is_ready()


def test_camera_not_ready_before_start():
    camera = Camera(camera_id=0)
    assert not camera.is_ready()
    assert camera.get_frame() is None
    assert camera.get_resolution() == (1280, 720)
