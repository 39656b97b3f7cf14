import numpy as np
import pytest

from photobooth.scheduler import Scheduler


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ImmediateExecutor:
    """Executor that runs work synchronously on submit."""

    def submit(self, fn, *args, **kwargs):
        from concurrent.futures import Future
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def solid(color, width=64, height=48):
    """BGR image filled with one color."""
    image = np.empty((height, width, 3), dtype=np.uint8)
    image[:] = color
    return image


def split_frame(width=1280, height=720):
    """Left half black, right half white."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, width // 2:] = 255
    return frame


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock)


@pytest.fixture
def frame():
    return split_frame()
