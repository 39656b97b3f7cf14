"""
Color Module - HSV Pickers and Hex Conversion
=============================================
Conversions between HSV, RGB and ``#RRGGBB`` strings, plus the picker state
used for the strip frame color and the tint overlay color.
"""

import math
import re
from dataclasses import dataclass
from typing import Tuple


_HEX_DIGITS = re.compile(r"[^0-9a-fA-F]")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hsv_to_rgb(h: float, s: float, v: float) -> Tuple[int, int, int]:
    """
    Convert HSV to 8-bit RGB using the 60 degree sector formula.

    Args:
        h: Hue in degrees [0, 360)
        s: Saturation [0, 1]
        v: Value [0, 1]

    Returns:
        (r, g, b) with channels rounded to the nearest integer
    """
    c = v * s
    x = c * (1 - abs((h / 60) % 2 - 1))
    m = v - c

    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x

    return (
        _round_half_up((r + m) * 255),
        _round_half_up((g + m) * 255),
        _round_half_up((b + m) * 255),
    )


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    """Format an RGB triple as uppercase ``#RRGGBB``."""
    r, g, b = rgb
    return "#{:02X}{:02X}{:02X}".format(r, g, b)


def hsv_to_hex(h: float, s: float, v: float) -> str:
    """Convert HSV to an uppercase ``#RRGGBB`` string."""
    return rgb_to_hex(hsv_to_rgb(h, s, v))


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """
    Parse a 6-digit hex color (leading ``#`` optional).

    Raises:
        ValueError: If the string is not exactly six hex digits
    """
    digits = hex_color.lstrip("#")
    if len(digits) != 6 or _HEX_DIGITS.search(digits):
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    n = int(digits, 16)
    return (n >> 16) & 255, (n >> 8) & 255, n & 255


def hex_to_bgr(hex_color: str) -> Tuple[int, int, int]:
    """Parse a hex color into OpenCV channel order."""
    r, g, b = hex_to_rgb(hex_color)
    return b, g, r


def rgb_to_hsv(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """
    Convert 8-bit RGB to HSV.

    Returns:
        (hue in degrees, saturation, value)
    """
    rf, gf, bf = r / 255, g / 255, b / 255
    hi = max(rf, gf, bf)
    lo = min(rf, gf, bf)
    delta = hi - lo

    if delta == 0:
        hue = 0.0
    elif hi == rf:
        hue = 60 * (((gf - bf) / delta) % 6)
    elif hi == gf:
        hue = 60 * ((bf - rf) / delta + 2)
    else:
        hue = 60 * ((rf - gf) / delta + 4)

    sat = 0.0 if hi == 0 else delta / hi
    return hue % 360, sat, hi


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass
class ColorPicker:
    """
    HSV picker state. The hex string is always derived from (hue, sat, val).

    Attributes:
        hue: Hue in degrees [0, 360)
        sat: Saturation [0, 1]
        val: Value (brightness) [0, 1]
    """
    hue: float = 0.0
    sat: float = 0.0
    val: float = 1.0

    @property
    def hex(self) -> str:
        return hsv_to_hex(self.hue, self.sat, self.val)

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return hsv_to_rgb(self.hue, self.sat, self.val)

    @property
    def bgr(self) -> Tuple[int, int, int]:
        r, g, b = self.rgb
        return b, g, r

    def set_hue(self, hue: float):
        """Set the hue, wrapping into [0, 360)."""
        self.hue = hue % 360

    def set_sv(self, sat: float, val: float):
        """Set saturation and value from the gradient square (clamped)."""
        self.sat = _clamp01(sat)
        self.val = _clamp01(val)

    def set_hex(self, text: str) -> bool:
        """
        Apply hex text typed by the user.

        Non-hex characters are dropped; the color changes only when exactly
        six digits remain.

        Returns:
            True if the picker was updated
        """
        digits = _HEX_DIGITS.sub("", text)
        if len(digits) != 6:
            return False
        self.hue, self.sat, self.val = rgb_to_hsv(*hex_to_rgb(digits))
        return True

    def reset(self):
        """Back to white."""
        self.hue, self.sat, self.val = 0.0, 0.0, 1.0
