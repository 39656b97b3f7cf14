"""
Layout Module - Strip Geometry
==============================
Single source of truth for slot dimensions. Every surface that shows a strip
(layout thumbnail, camera viewport, selection preview, captured photos and the
final export) calls ``slot_dims`` with its own base so that aspect ratios stay
identical across screens.

The long axis of a strip (all slots plus the gaps between them) is pinned to
three times the base.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .errors import InvalidLayoutError


# Gap between slots (px), the same at every base
GAP = 10

# Strip long axis = STRIP_RATIO * base
STRIP_RATIO = 3

MIN_COUNT = 1
MAX_COUNT = 6


class Orientation(Enum):
    """Strip orientation."""
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

    def toggled(self) -> "Orientation":
        """Return the other orientation."""
        if self is Orientation.PORTRAIT:
            return Orientation.LANDSCAPE
        return Orientation.PORTRAIT


@dataclass(frozen=True)
class LayoutConfig:
    """
    Photo count and orientation of a strip.

    Attributes:
        count: Number of slots (1-6)
        orientation: Portrait stacks slots vertically, landscape horizontally
    """
    count: int
    orientation: Orientation = Orientation.PORTRAIT

    def __post_init__(self):
        if not MIN_COUNT <= self.count <= MAX_COUNT:
            raise InvalidLayoutError(
                f"count must be between {MIN_COUNT} and {MAX_COUNT}, got {self.count}"
            )

    @property
    def is_portrait(self) -> bool:
        return self.orientation is Orientation.PORTRAIT


@dataclass(frozen=True)
class SlotDims:
    """Pixel size of one slot and the gap between slots."""
    width: int
    height: int
    gap: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def slot_dims(count: int, orientation: Orientation, base: int) -> SlotDims:
    """
    Compute slot dimensions for a strip.

    Args:
        count: Number of slots
        orientation: Strip orientation
        base: Reference dimension (slot width for portrait, slot height for landscape)

    Returns:
        SlotDims for the strip
    """
    long_side = (base * STRIP_RATIO - GAP * (count - 1)) // count
    if orientation is Orientation.PORTRAIT:
        return SlotDims(width=base, height=long_side, gap=GAP)
    # Landscape is portrait rotated: base is the slot height
    return SlotDims(width=long_side, height=base, gap=GAP)


def layout_dims(layout: LayoutConfig, base: int) -> SlotDims:
    """Shortcut for ``slot_dims`` with a LayoutConfig."""
    return slot_dims(layout.count, layout.orientation, base)


def strip_size(layout: LayoutConfig, base: int) -> Tuple[int, int]:
    """
    Size of the photo area (slots plus gaps, no border).

    Returns:
        (width, height) in pixels
    """
    dims = layout_dims(layout, base)
    gaps = dims.gap * (layout.count - 1)
    if layout.is_portrait:
        return dims.width, dims.height * layout.count + gaps
    return dims.width * layout.count + gaps, dims.height


def slot_origin(
    index: int,
    dims: SlotDims,
    orientation: Orientation,
    border: int = 0
) -> Tuple[int, int]:
    """
    Top-left corner of slot ``index``.

    Args:
        index: Slot position along the strip
        dims: Slot dimensions
        orientation: Strip orientation
        border: Offset of the first slot from the canvas edge

    Returns:
        (x, y) in pixels
    """
    if orientation is Orientation.PORTRAIT:
        return border, border + index * (dims.height + dims.gap)
    return border + index * (dims.width + dims.gap), border
