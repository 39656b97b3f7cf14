"""
Preview Module - On-screen Strip Previews
=========================================
Small renderings of the strip used while choosing a layout and while picking
photos. They share the slot geometry with the final export so proportions
match on every screen.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from .imaging import cover_crop
from .layout import LayoutConfig, layout_dims, slot_origin, strip_size


PLACEHOLDER_COLOR = (225, 225, 225)   # Empty slot (BGR)
BACKGROUND_COLOR = (255, 255, 255)
PADDING = 8


def _blank(layout: LayoutConfig, base: int, padding: int) -> Tuple[np.ndarray, int, int]:
    width, height = strip_size(layout, base)
    canvas = np.empty((height + padding * 2, width + padding * 2, 3), dtype=np.uint8)
    canvas[:] = BACKGROUND_COLOR
    return canvas, width, height


def render_layout_preview(
    layout: LayoutConfig,
    base: int = 160,
    padding: int = PADDING
) -> np.ndarray:
    """
    Thumbnail of an empty strip for the layout picker.

    Args:
        layout: Strip layout
        base: Slot base of the thumbnail
        padding: Margin around the slots

    Returns:
        BGR image with one placeholder cell per slot
    """
    canvas, _, _ = _blank(layout, base, padding)
    dims = layout_dims(layout, base)
    for i in range(layout.count):
        x, y = slot_origin(i, dims, layout.orientation, padding)
        canvas[y:y + dims.height, x:x + dims.width] = PLACEHOLDER_COLOR
    return canvas


def render_strip_preview(
    layout: LayoutConfig,
    photos: Sequence,
    selection: Sequence[int],
    base: int = 130,
    padding: int = PADDING
) -> np.ndarray:
    """
    Strip preview for the selection screen.

    Selected photos fill the slots in selection order; slots without a
    photo stay as placeholders.

    Args:
        layout: Strip layout
        photos: Captured photos (CapturedPhoto or BGR arrays)
        selection: Photo indices in slot order
        base: Slot base of the preview
        padding: Margin around the slots
    """
    canvas = render_layout_preview(layout, base, padding)
    dims = layout_dims(layout, base)
    for slot, photo_idx in enumerate(selection[:layout.count]):
        pixels = getattr(photos[photo_idx], "pixels", photos[photo_idx])
        x, y = slot_origin(slot, dims, layout.orientation, padding)
        canvas[y:y + dims.height, x:x + dims.width] = cover_crop(pixels, dims.width, dims.height)
    return canvas


def render_viewport(
    frame: np.ndarray,
    layout: LayoutConfig,
    base: int = 160,
    max_width: Optional[int] = None
) -> np.ndarray:
    """
    Camera preview cropped to the slot aspect ratio and mirrored.

    Args:
        frame: Live camera frame
        layout: Strip layout
        base: Geometry base used only for the aspect ratio
        max_width: Output width cap (defaults to the frame width)
    """
    dims = layout_dims(layout, base)
    width = max_width or frame.shape[1]
    height = max(1, int(round(width / dims.aspect_ratio)))
    return cover_crop(frame, width, height, mirror=True)
