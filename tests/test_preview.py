import numpy as np

from photobooth.layout import LayoutConfig, Orientation, strip_size
from photobooth.preview import (
    BACKGROUND_COLOR,
    PADDING,
    PLACEHOLDER_COLOR,
    render_layout_preview,
    render_strip_preview,
    render_viewport,
)

from .conftest import solid, split_frame


def test_layout_preview_size_matches_strip():
    layout = LayoutConfig(4, Orientation.LANDSCAPE)
    width, height = strip_size(layout, 160)
    preview = render_layout_preview(layout, 160)
    assert preview.shape == (height + 2 * PADDING, width + 2 * PADDING, 3)
    assert tuple(preview[0, 0]) == BACKGROUND_COLOR
    assert tuple(preview[PADDING, PADDING]) == PLACEHOLDER_COLOR


def test_strip_preview_fills_selected_slots():
    layout = LayoutConfig(2)
    photos = [solid((0, 0, 255), 640, 950), solid((0, 255, 0), 640, 950)]
    preview = render_strip_preview(layout, photos, [1], base=130)
    assert tuple(preview[PADDING + 5, PADDING + 5]) == (0, 255, 0)
    assert tuple(preview[-PADDING - 5, PADDING + 5]) == PLACEHOLDER_COLOR


def test_viewport_uses_slot_aspect_and_mirrors():
    layout = LayoutConfig(1)
    view = render_viewport(split_frame(), layout, max_width=300)
    assert view.shape == (900, 300, 3)
    assert view[:, :5].min() == 255
    assert np.array_equal(view[:, -5:], np.zeros_like(view[:, -5:]))
