"""
Imaging Module - Crop, Color Transforms and Encoding
====================================================
Pixel operations shared by the capture path and the compositor:
center cover-crop, BT.601 greyscale, flat tint overlay, and conversions
between numpy BGR arrays and encoded image bytes.
"""

import io
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image

from .errors import DecodeError


# BT.601 luma weights in OpenCV channel order (B, G, R)
LUMA_WEIGHTS_BGR = np.array([0.114, 0.587, 0.299])


def cover_crop_rect(
    src_w: float,
    src_h: float,
    dst_w: float,
    dst_h: float
) -> Tuple[float, float, float, float]:
    """
    Source rectangle that fills the target aspect ratio without letterboxing.

    If the source is wider than the target, the width is cropped to
    ``src_h * target_ar`` and centered horizontally; otherwise the height is
    cropped to ``src_w / target_ar`` and centered vertically.

    Returns:
        (sx, sy, sw, sh) in source pixels
    """
    src_ar = src_w / src_h
    dst_ar = dst_w / dst_h
    sx, sy, sw, sh = 0.0, 0.0, float(src_w), float(src_h)
    if src_ar > dst_ar:
        sw = src_h * dst_ar
        sx = (src_w - sw) / 2
    else:
        sh = src_w / dst_ar
        sy = (src_h - sh) / 2
    return sx, sy, sw, sh


def cover_crop(
    image: np.ndarray,
    dst_w: int,
    dst_h: int,
    mirror: bool = False
) -> np.ndarray:
    """
    Center cover-crop an image and scale it to exactly ``(dst_w, dst_h)``.

    Args:
        image: Source image (H x W x C)
        dst_w: Output width
        dst_h: Output height
        mirror: Flip the result horizontally (selfie view)

    Returns:
        New array of shape (dst_h, dst_w, C)
    """
    src_h, src_w = image.shape[:2]
    if src_w == 0 or src_h == 0:
        raise ValueError("cannot crop an empty image")

    sx, sy, sw, sh = cover_crop_rect(src_w, src_h, dst_w, dst_h)
    x0 = int(round(sx))
    y0 = int(round(sy))
    x1 = min(src_w, max(x0 + 1, int(round(sx + sw))))
    y1 = min(src_h, max(y0 + 1, int(round(sy + sh))))

    region = image[y0:y1, x0:x1]
    out = cv2.resize(region, (dst_w, dst_h), interpolation=cv2.INTER_AREA)
    if mirror:
        out = cv2.flip(out, 1)
    return out


def to_greyscale(image: np.ndarray) -> np.ndarray:
    """
    Replace every channel with the BT.601 luma (0.299R + 0.587G + 0.114B).

    Output keeps three channels and is rounded to uint8, so applying it a
    second time returns the same pixels.
    """
    luma = image[..., :3].astype(np.float64) @ LUMA_WEIGHTS_BGR
    grey = np.clip(np.rint(luma), 0, 255).astype(np.uint8)
    return np.repeat(grey[..., np.newaxis], 3, axis=2)


def blend_tint(
    region: np.ndarray,
    color_bgr: Tuple[int, int, int],
    opacity: float
) -> np.ndarray:
    """
    Alpha-blend a flat color over an image region.

    Args:
        region: BGR image
        color_bgr: Overlay color
        opacity: Overlay alpha in [0, 1]

    Returns:
        Blended copy of the region
    """
    alpha = float(np.clip(opacity, 0.0, 1.0))
    if alpha == 0.0:
        return region.copy()
    overlay = np.array(color_bgr, dtype=np.float64)
    blended = region.astype(np.float64) * (1.0 - alpha) + overlay * alpha
    return np.clip(np.rint(blended), 0, 255).astype(np.uint8)


def decode_image(source: Union[np.ndarray, bytes, bytearray]) -> np.ndarray:
    """
    Turn a stored photo into a BGR array ready for drawing.

    Args:
        source: Either a BGR array or encoded image bytes (JPEG/PNG)

    Returns:
        BGR uint8 array

    Raises:
        DecodeError: If the data is empty or cannot be decoded
    """
    if isinstance(source, (bytes, bytearray)):
        data = np.frombuffer(bytes(source), dtype=np.uint8)
        image = cv2.imdecode(data, cv2.IMREAD_COLOR) if data.size else None
        if image is None:
            raise DecodeError("could not decode image bytes")
        return image

    if not isinstance(source, np.ndarray):
        raise DecodeError(f"unsupported photo type: {type(source).__name__}")
    if source.ndim != 3 or source.shape[2] < 3 or source.shape[0] == 0 or source.shape[1] == 0:
        raise DecodeError(f"unexpected photo shape: {source.shape}")
    if source.dtype != np.uint8:
        raise DecodeError(f"unexpected photo dtype: {source.dtype}")
    return source[..., :3]


def encode_jpeg(image: np.ndarray, quality: int = 92) -> bytes:
    """Encode a BGR array as JPEG bytes."""
    ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return buffer.tobytes()


def to_pil(image: np.ndarray) -> Image.Image:
    """Convert a BGR array to a PIL RGB image."""
    return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))


def encode_png(image: np.ndarray) -> bytes:
    """Encode a BGR array as PNG bytes."""
    buffer = io.BytesIO()
    to_pil(image).save(buffer, format="PNG")
    return buffer.getvalue()

