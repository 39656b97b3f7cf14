"""
Compositor Module - Final Strip Rendering
=========================================
Assembles the selected photos into the printable strip: frame color fill,
cover-cropped photos in slot order, optional greyscale and tint, and the code
image stamped in the bottom-right corner once every photo has been drawn.

Photos are decoded on a thread pool and may finish in any order. Drawing
happens on the calling thread as each decode completes; a completion barrier
stamps the code image exactly once, after the last photo.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from .color import hex_to_bgr
from .errors import DecodeError
from .imaging import blend_tint, cover_crop, decode_image, encode_png, to_greyscale
from .layout import LayoutConfig, SlotDims, layout_dims, slot_origin


logger = logging.getLogger(__name__)

BORDER = 20            # Frame around the photos (px)
QR_SCALE = 0.18        # Stamp size relative to the slot's primary side
QR_PAD = 8             # Extra frame below the photos for the stamp
STAMP_MARGIN_X = 12    # Stamp distance from the right edge
STAMP_MARGIN_Y = 10    # Stamp distance from the bottom edge

EXPORT_FILENAME = "photostrip.png"


@dataclass(frozen=True)
class CompositionSpec:
    """
    Styling of the final strip.

    Attributes:
        layout: Strip layout
        frame_color: Hex color of the frame
        tint_color: Hex color of the tint overlay
        tint_opacity: Tint alpha in [0, 1]; 0 disables the overlay
        greyscale: Convert photos to greyscale before tinting
    """
    layout: LayoutConfig
    frame_color: str = "#FFFFFF"
    tint_color: str = "#FFFFFF"
    tint_opacity: float = 0.0
    greyscale: bool = False

    def __post_init__(self):
        if not 0.0 <= self.tint_opacity <= 1.0:
            raise ValueError(f"tint_opacity must be in [0, 1], got {self.tint_opacity}")


@dataclass(frozen=True)
class StripGeometry:
    """Pixel geometry of a strip canvas."""
    slot: SlotDims
    qr_size: int
    width: int
    height: int

    @property
    def stamp_origin(self) -> Tuple[int, int]:
        return (
            self.width - self.qr_size - STAMP_MARGIN_X,
            self.height - self.qr_size - STAMP_MARGIN_Y,
        )


def strip_geometry(layout: LayoutConfig, base: int) -> StripGeometry:
    """
    Canvas size for a strip.

    Portrait stacks slots vertically; landscape lays them out horizontally.
    Either way the stamp sits in an extra band below the photos.
    """
    slot = layout_dims(layout, base)
    primary = slot.width if layout.is_portrait else slot.height
    qr_size = int(math.floor(primary * QR_SCALE + 0.5))
    gaps = slot.gap * (layout.count - 1)

    if layout.is_portrait:
        width = slot.width + BORDER * 2
        height = slot.height * layout.count + gaps + BORDER * 2 + qr_size + QR_PAD
    else:
        width = slot.width * layout.count + gaps + BORDER * 2
        height = slot.height + BORDER * 2 + qr_size + QR_PAD

    return StripGeometry(slot=slot, qr_size=qr_size, width=width, height=height)


class CompletionBarrier:
    """
    Calls ``on_complete`` exactly once, after ``expected`` arrivals.

    Arrivals may come in any order; the barrier only counts them. With
    ``expected == 0`` it fires immediately.
    """

    def __init__(self, expected: int, on_complete: Callable[[], None]):
        if expected < 0:
            raise ValueError("expected must be >= 0")
        self.expected = expected
        self._on_complete = on_complete
        self._arrived = 0
        self._fired = False
        if expected == 0:
            self._fire()

    @property
    def arrived(self) -> int:
        return self._arrived

    @property
    def fired(self) -> bool:
        return self._fired

    def arrive(self):
        """Record one completed operation."""
        if self._fired:
            raise RuntimeError("barrier already released")
        self._arrived += 1
        if self._arrived == self.expected:
            self._fire()

    def _fire(self):
        self._fired = True
        self._on_complete()


@dataclass
class CompositionResult:
    """
    Rendered strip plus what went wrong along the way.

    Attributes:
        image: BGR canvas
        spec: Styling used
        skipped: Photo indices whose pixels could not be decoded
        stamp_applied: Whether the code image was drawn
    """
    image: np.ndarray
    spec: CompositionSpec
    skipped: List[int] = field(default_factory=list)
    stamp_applied: bool = False

    @property
    def ok(self) -> bool:
        return not self.skipped

    def to_png(self) -> bytes:
        return encode_png(self.image)


def load_stamp(path: Union[str, Path, None]) -> Optional[np.ndarray]:
    """
    Load the code image stamped on every strip.

    Returns:
        BGR array, or None if the file is missing or unreadable
    """
    if not path:
        return None
    path = Path(path)
    if not path.is_file():
        logger.warning("Stamp image not found: %s", path)
        return None
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        logger.warning("Stamp image could not be read: %s", path)
    return image


def save_png(result: CompositionResult, directory: Union[str, Path], filename: str = EXPORT_FILENAME) -> Path:
    """
    Write the strip as PNG.

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(result.to_png())
    logger.info("Saved: %s", path)
    return path


class Compositor:
    """
    Renders final strips.

    Args:
        stamp: Code image (BGR array) or path to load it from; None to skip
        max_workers: Decode threads
    """

    def __init__(
        self,
        stamp: Union[np.ndarray, str, Path, None] = None,
        max_workers: int = 4
    ):
        if isinstance(stamp, np.ndarray):
            self.stamp = _to_bgr(stamp)
        else:
            self.stamp = load_stamp(stamp)
        self.max_workers = max_workers

    def render(
        self,
        photos: Sequence,
        selection: Sequence[int],
        spec: CompositionSpec,
        base: int = 320
    ) -> CompositionResult:
        """
        Compose a strip.

        Args:
            photos: Captured photos (CapturedPhoto, BGR arrays or encoded bytes)
            selection: Photo indices in slot order
            spec: Styling
            base: Slot base of the output

        Returns:
            CompositionResult with the canvas. Photos that fail to decode
            leave their slot in the frame color and are listed in ``skipped``.
        """
        if len(selection) > spec.layout.count:
            raise ValueError(
                f"{len(selection)} photos selected for a {spec.layout.count}-slot strip"
            )

        geometry = strip_geometry(spec.layout, base)
        canvas = np.empty((geometry.height, geometry.width, 3), dtype=np.uint8)
        canvas[:] = hex_to_bgr(spec.frame_color)

        result = CompositionResult(image=canvas, spec=spec)
        barrier = CompletionBarrier(
            len(selection),
            lambda: self._stamp(result, geometry)
        )

        if not selection:
            return result

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="decode") as pool:
            futures = {
                pool.submit(decode_image, _pixels_of(photos[photo_idx])): (slot, photo_idx)
                for slot, photo_idx in enumerate(selection)
            }
            for future in as_completed(futures):
                slot, photo_idx = futures[future]
                try:
                    pixels = future.result()
                except DecodeError as e:
                    logger.warning("Skipping photo %d: %s", photo_idx, e)
                    result.skipped.append(photo_idx)
                else:
                    self._draw_slot(canvas, pixels, slot, geometry.slot, spec)
                barrier.arrive()

        return result

    def _draw_slot(
        self,
        canvas: np.ndarray,
        pixels: np.ndarray,
        slot: int,
        dims: SlotDims,
        spec: CompositionSpec
    ):
        x, y = slot_origin(slot, dims, spec.layout.orientation, BORDER)

        photo = cover_crop(pixels, dims.width, dims.height)
        if spec.greyscale:
            photo = to_greyscale(photo)
        if spec.tint_opacity > 0:
            photo = blend_tint(photo, hex_to_bgr(spec.tint_color), spec.tint_opacity)

        canvas[y:y + dims.height, x:x + dims.width] = photo

    def _stamp(self, result: CompositionResult, geometry: StripGeometry):
        if self.stamp is None:
            logger.debug("No stamp image, skipping")
            return
        size = geometry.qr_size
        if size <= 0:
            return
        x, y = geometry.stamp_origin
        stamp = cv2.resize(self.stamp, (size, size), interpolation=cv2.INTER_AREA)
        result.image[y:y + size, x:x + size] = stamp
        result.stamp_applied = True


def _to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def _pixels_of(photo):
    return getattr(photo, "pixels", photo)
