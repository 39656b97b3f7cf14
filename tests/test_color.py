import pytest

from photobooth.color import (
    ColorPicker,
    hex_to_bgr,
    hex_to_rgb,
    hsv_to_hex,
    hsv_to_rgb,
    rgb_to_hsv,
)


@pytest.mark.parametrize("hsv, expected", [
    ((0, 1, 1), "#FF0000"),
    ((120, 1, 1), "#00FF00"),
    ((240, 1, 1), "#0000FF"),
    ((0, 0, 1), "#FFFFFF"),
    ((0, 0, 0), "#000000"),
    ((60, 1, 1), "#FFFF00"),
])
def test_hsv_to_hex(hsv, expected):
    assert hsv_to_hex(*hsv) == expected


def test_half_values_round_up():
    # 0.5 * 255 = 127.5
    assert hsv_to_hex(0, 0, 0.5) == "#808080"


@pytest.mark.parametrize("h", range(0, 360, 15))
@pytest.mark.parametrize("s", [0.0, 0.3, 0.75, 1.0])
@pytest.mark.parametrize("v", [0.2, 0.6, 1.0])
def test_hex_agrees_with_rgb(h, s, v):
    assert hex_to_rgb(hsv_to_hex(h, s, v)) == hsv_to_rgb(h, s, v)


def test_hex_to_rgb_accepts_missing_hash_and_lowercase():
    assert hex_to_rgb("#1a2B3c") == (26, 43, 60)
    assert hex_to_rgb("1A2B3C") == (26, 43, 60)


def test_hex_to_bgr_reverses_channels():
    assert hex_to_bgr("#102030") == (48, 32, 16)


@pytest.mark.parametrize("text", ["", "#FFF", "#GGGGGG", "#1234567"])
def test_hex_to_rgb_rejects_malformed(text):
    with pytest.raises(ValueError):
        hex_to_rgb(text)


def test_rgb_to_hsv_primaries():
    assert rgb_to_hsv(255, 0, 0) == (0.0, 1.0, 1.0)
    assert rgb_to_hsv(0, 0, 255) == (240.0, 1.0, 1.0)
    assert rgb_to_hsv(0, 0, 0) == (0.0, 0.0, 0.0)


class TestColorPicker:

    def test_defaults_to_white(self):
        assert ColorPicker().hex == "#FFFFFF"

    def test_hue_wraps(self):
        picker = ColorPicker()
        picker.set_hue(370)
        assert picker.hue == 10

    def test_sv_clamped(self):
        picker = ColorPicker()
        picker.set_sv(1.5, -0.2)
        assert (picker.sat, picker.val) == (1.0, 0.0)

    def test_set_hex_strips_non_hex_characters(self):
        picker = ColorPicker()
        assert picker.set_hex("ff-88-00")
        assert picker.hex == "#FF8800"

    def test_set_hex_needs_six_digits(self):
        picker = ColorPicker()
        assert not picker.set_hex("12345")
        assert picker.hex == "#FFFFFF"

    def test_bgr(self):
        picker = ColorPicker()
        picker.set_hex("#FF0000")
        assert picker.bgr == (0, 0, 255)

    def test_reset(self):
        picker = ColorPicker(hue=200, sat=0.5, val=0.5)
        picker.reset()
        assert picker.hex == "#FFFFFF"
