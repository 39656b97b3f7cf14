import pytest

from photobooth.errors import InvalidLayoutError
from photobooth.layout import (
    GAP,
    LayoutConfig,
    Orientation,
    SlotDims,
    layout_dims,
    slot_dims,
    slot_origin,
    strip_size,
)


BASES = [130, 160, 320, 640]


@pytest.mark.parametrize("base", BASES)
@pytest.mark.parametrize("count", range(1, 7))
def test_portrait_long_axis_fits_three_bases(count, base):
    dims = slot_dims(count, Orientation.PORTRAIT, base)
    used = dims.height * count + dims.gap * (count - 1)
    assert dims.width == base
    assert used <= 3 * base
    assert 3 * base - used < count


@pytest.mark.parametrize("base", BASES)
@pytest.mark.parametrize("count", range(1, 7))
def test_landscape_is_portrait_rotated(count, base):
    portrait = slot_dims(count, Orientation.PORTRAIT, base)
    landscape = slot_dims(count, Orientation.LANDSCAPE, base)
    assert (landscape.width, landscape.height) == (portrait.height, portrait.width)


def test_three_photo_export_slot():
    assert slot_dims(3, Orientation.PORTRAIT, 320) == SlotDims(320, 313, 10)
    assert slot_dims(3, Orientation.LANDSCAPE, 320) == SlotDims(313, 320, 10)


def test_single_photo_fills_long_axis():
    assert slot_dims(1, Orientation.PORTRAIT, 160) == SlotDims(160, 480, GAP)


def test_aspect_ratio_is_base_independent_within_rounding():
    small = slot_dims(4, Orientation.PORTRAIT, 160)
    large = slot_dims(4, Orientation.PORTRAIT, 640)
    assert small.aspect_ratio == pytest.approx(large.aspect_ratio, rel=0.02)


@pytest.mark.parametrize("count", [0, 7, -1])
def test_layout_rejects_out_of_range_count(count):
    with pytest.raises(InvalidLayoutError):
        LayoutConfig(count)


def test_invalid_layout_is_a_value_error():
    with pytest.raises(ValueError):
        LayoutConfig(10, Orientation.LANDSCAPE)


def test_orientation_toggle():
    assert Orientation.PORTRAIT.toggled() is Orientation.LANDSCAPE
    assert Orientation.LANDSCAPE.toggled() is Orientation.PORTRAIT


def test_layout_dims_matches_slot_dims():
    layout = LayoutConfig(5, Orientation.LANDSCAPE)
    assert layout_dims(layout, 130) == slot_dims(5, Orientation.LANDSCAPE, 130)


def test_strip_size():
    assert strip_size(LayoutConfig(3), 320) == (320, 313 * 3 + 20)
    assert strip_size(LayoutConfig(3, Orientation.LANDSCAPE), 320) == (313 * 3 + 20, 320)


def test_slot_origin_steps_along_the_strip():
    dims = slot_dims(3, Orientation.PORTRAIT, 320)
    assert slot_origin(0, dims, Orientation.PORTRAIT, 20) == (20, 20)
    assert slot_origin(2, dims, Orientation.PORTRAIT, 20) == (20, 20 + 2 * 323)

    dims = slot_dims(3, Orientation.LANDSCAPE, 320)
    assert slot_origin(1, dims, Orientation.LANDSCAPE) == (323, 0)
