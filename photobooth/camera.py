"""
Camera Module - Frame Source
============================
Threaded webcam capture that always holds the latest frame. The capture
session polls ``is_ready`` before grabbing a frame and never takes a photo
from a frame with zero dimensions.
"""

import logging
import threading
import time
from typing import Optional, Tuple

import cv2
import numpy as np

from .errors import CameraError


logger = logging.getLogger(__name__)


class Camera:
    """
    Webcam stream handler with a background capture thread.

    Attributes:
        camera_id: Index of the camera device
        width: Frame width in pixels (actual, once started)
        height: Frame height in pixels (actual, once started)
        fps: Requested frames per second
        mirror: Flip frames horizontally as they arrive
    """

    def __init__(
        self,
        camera_id: int = 0,
        width: int = 1280,
        height: int = 720,
        fps: int = 30,
        mirror: bool = False
    ):
        self.camera_id = camera_id
        self.width = width
        self.height = height
        self.fps = fps
        self.mirror = mirror

        self.cap: Optional[cv2.VideoCapture] = None

        self._frame: Optional[np.ndarray] = None
        self._frame_lock = threading.Lock()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """
        Open the device and start the capture thread.

        Raises:
            CameraError: If the device cannot be opened (missing or access denied)
        """
        self.cap = cv2.VideoCapture(self.camera_id)

        if not self.cap.isOpened():
            self.cap.release()
            self.cap = None
            raise CameraError(f"Failed to open camera {self.camera_id}")

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.fps)

        # Buffer size 1 for minimum latency
        self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        # Actual resolution may differ from requested
        self.width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

        logger.info("Camera started: %dx%d @ %dfps", self.width, self.height, self.fps)

        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()

    def _capture_loop(self):
        while self._running:
            ret, frame = self.cap.read()

            if ret:
                if self.mirror:
                    frame = cv2.flip(frame, 1)

                with self._frame_lock:
                    self._frame = frame
            else:
                time.sleep(0.001)

    def is_ready(self) -> bool:
        """True once a frame with non-zero dimensions has arrived."""
        with self._frame_lock:
            return (
                self._frame is not None
                and self._frame.shape[0] > 0
                and self._frame.shape[1] > 0
            )

    def get_frame(self) -> Optional[np.ndarray]:
        """
        Get a copy of the latest frame.

        Returns:
            Frame as numpy array or None if no frame available
        """
        with self._frame_lock:
            if self._frame is None:
                return None
            return self._frame.copy()

    def get_resolution(self) -> Tuple[int, int]:
        """(width, height) of the stream."""
        return self.width, self.height

    def stop(self):
        """Stop the capture thread and release the device."""
        self._running = False

        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None

        if self.cap is not None:
            self.cap.release()
            self.cap = None

        with self._frame_lock:
            self._frame = None

        logger.info("Camera stopped")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


class StillFrameSource:
    """
    Frame source backed by a fixed image.

    Used when running the booth without a webcam (``--image``) and by tests.
    """

    def __init__(self, frame: Optional[np.ndarray] = None):
        self.frame = frame

    def start(self):
        pass

    def is_ready(self) -> bool:
        return (
            self.frame is not None
            and self.frame.shape[0] > 0
            and self.frame.shape[1] > 0
        )

    def get_frame(self) -> Optional[np.ndarray]:
        return None if self.frame is None else self.frame.copy()

    def stop(self):
        self.frame = None
