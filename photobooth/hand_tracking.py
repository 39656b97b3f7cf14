"""
Hand Tracking Module - MediaPipe Hand Landmark Detection
========================================================
Detects a single hand with the MediaPipe Hand Landmarker (Tasks API) and
exposes the horizontal position of the index fingertip, which is the signal
the wave detector consumes.
"""

import logging
import time
import urllib.request
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from .errors import HandTrackingError


logger = logging.getLogger(__name__)

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)


class HandLandmark(IntEnum):
    """
    MediaPipe hand landmark indices.
    Reference: https://mediapipe.dev/images/mobile/hand_landmarks.png
    """
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# Landmark whose x position drives the wave detector
WAVE_LANDMARK = HandLandmark.INDEX_TIP


@dataclass
class Point:
    """A landmark in normalized image coordinates."""
    x: float  # Normalized x (0-1)
    y: float  # Normalized y (0-1)
    z: float  # Normalized z (depth)


@dataclass
class HandData:
    """
    Landmarks of one detected hand.

    Attributes:
        landmarks: Dict mapping HandLandmark to Point
    """
    landmarks: Dict[HandLandmark, Point]

    def get_landmark(self, landmark: HandLandmark) -> Optional[Point]:
        return self.landmarks.get(landmark)


def wave_sample(hands: List[HandData]) -> Optional[float]:
    """
    Extract the wave signal from a detection result.

    Args:
        hands: Detected hands (single-hand mode yields zero or one)

    Returns:
        Normalized x of the first hand's index fingertip, or None if no hand
    """
    if not hands:
        return None
    point = hands[0].get_landmark(WAVE_LANDMARK)
    return None if point is None else point.x


def _download_model(model_path: Path) -> None:
    """Download the hand landmarker model if not present."""
    logger.info("Downloading hand landmarker model...")
    model_path.parent.mkdir(parents=True, exist_ok=True)
    urllib.request.urlretrieve(MODEL_URL, model_path)
    logger.info("Model downloaded to %s", model_path)


class HandTracker:
    """
    Single-hand tracker using MediaPipe Hand Landmarker in VIDEO mode.

    Raises:
        HandTrackingError: If the model cannot be fetched or the landmarker
            cannot be created. Callers fall back to the manual trigger.
    """

    def __init__(
        self,
        max_hands: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        model_path: Optional[Path] = None
    ):
        self.max_hands = max_hands

        self._model_path = model_path or Path(__file__).parent.parent / "models" / "hand_landmarker.task"

        try:
            if not self._model_path.exists():
                _download_model(self._model_path)

            base_options = python.BaseOptions(model_asset_path=str(self._model_path))
            options = vision.HandLandmarkerOptions(
                base_options=base_options,
                running_mode=vision.RunningMode.VIDEO,
                num_hands=max_hands,
                min_hand_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence,
                min_hand_presence_confidence=min_detection_confidence
            )
            self.detector = vision.HandLandmarker.create_from_options(options)
        except Exception as e:
            raise HandTrackingError(f"Hand landmarker unavailable: {e}") from e

        # VIDEO mode needs monotonically increasing timestamps
        self._start_time = time.monotonic()
        self._last_timestamp_ms = -1

    def process(self, frame: np.ndarray) -> List[HandData]:
        """
        Detect hands in a BGR frame.

        Returns:
            List of HandData (empty when no hand is visible)
        """
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        timestamp_ms = int((time.monotonic() - self._start_time) * 1000)
        timestamp_ms = max(timestamp_ms, self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        results = self.detector.detect_for_video(mp_image, timestamp_ms)

        hands_data = []
        for hand_landmarks in results.hand_landmarks or []:
            landmarks = {
                HandLandmark(lm_idx): Point(x=lm.x, y=lm.y, z=getattr(lm, "z", 0.0))
                for lm_idx, lm in enumerate(hand_landmarks)
            }
            hands_data.append(HandData(landmarks=landmarks))

        return hands_data

    def detect_wave_sample(self, frame: np.ndarray) -> Optional[float]:
        """Run detection and return the wave signal for the frame."""
        return wave_sample(self.process(frame))

    def release(self):
        """Release the landmarker."""
        if self.detector:
            self.detector.close()
            self.detector = None
