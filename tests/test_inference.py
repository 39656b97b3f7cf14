import threading
import time
from concurrent.futures import Future

import numpy as np
import pytest

from photobooth.camera import StillFrameSource
from photobooth.inference import InferencePump


class ManualExecutor:
    """Executor whose futures are completed by the test."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args):
        future = Future()
        self.submitted.append((fn, args, future))
        return future


@pytest.fixture
def executor():
    return ManualExecutor()


@pytest.fixture
def results():
    return []


@pytest.fixture
def pump(scheduler, executor, results):
    source = StillFrameSource(np.zeros((48, 64, 3), dtype=np.uint8))
    return InferencePump(scheduler, source, lambda frame: 0.5, results.append,
                         interval=0.1, executor=executor)


def tick(clock, scheduler):
    clock.advance(0.1)
    scheduler.run_pending()


def test_one_request_in_flight(clock, scheduler, executor, pump):
    pump.start()
    for _ in range(5):
        tick(clock, scheduler)
    assert len(executor.submitted) == 1
    assert pump.issued == 1
    assert pump.skipped == 4
    assert pump.busy


def test_result_delivered_on_poll(clock, scheduler, executor, pump, results):
    pump.start()
    tick(clock, scheduler)
    assert not pump.poll()

    executor.submitted[0][2].set_result(0.42)
    assert pump.poll()
    assert results == [0.42]
    assert not pump.busy

    tick(clock, scheduler)
    assert len(executor.submitted) == 2


def test_failed_detection_is_counted(clock, scheduler, executor, pump, results):
    pump.start()
    tick(clock, scheduler)
    executor.submitted[0][2].set_exception(RuntimeError("boom"))
    assert not pump.poll()
    assert pump.failed == 1
    assert results == []
    assert not pump.busy


def test_no_request_without_a_frame(clock, scheduler, executor, results):
    pump = InferencePump(scheduler, StillFrameSource(None), lambda f: 0.5, results.append,
                         executor=executor)
    pump.start()
    tick(clock, scheduler)
    assert executor.submitted == []


def test_stop_cancels_timer_and_request(clock, scheduler, executor, pump, results):
    pump.start()
    tick(clock, scheduler)
    future = executor.submitted[0][2]
    pump.stop()

    assert future.cancelled()
    assert not pump.running
    assert scheduler.pending() == []
    tick(clock, scheduler)
    assert len(executor.submitted) == 1
    assert results == []


def test_stop_waits_for_running_request(clock, scheduler, results):
    started = threading.Event()
    finished = []

    def slow_detect(frame):
        started.set()
        time.sleep(0.2)
        finished.append(True)
        return 0.5

    source = StillFrameSource(np.zeros((48, 64, 3), dtype=np.uint8))
    pump = InferencePump(scheduler, source, slow_detect, results.append)
    pump.start()
    tick(clock, scheduler)
    assert started.wait(timeout=5)

    pump.stop()

    assert finished == [True]
    assert not pump.busy
    assert not pump.poll()
    assert results == []


def test_start_is_idempotent_and_not_restartable(scheduler, pump):
    pump.start()
    pump.start()
    assert len(scheduler.pending()) == 1
    pump.stop()
    with pytest.raises(RuntimeError):
        pump.start()


def test_default_executor_runs_detection(clock, scheduler, results):
    source = StillFrameSource(np.zeros((48, 64, 3), dtype=np.uint8))
    pump = InferencePump(scheduler, source, lambda frame: frame.shape[1] / 100, results.append)
    pump.start()
    try:
        tick(clock, scheduler)
        pump._pending.result(timeout=5)
        assert pump.poll()
        assert results == [0.64]
    finally:
        pump.stop()
