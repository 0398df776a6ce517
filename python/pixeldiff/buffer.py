# python/pixeldiff/buffer.py
# PixelBuffer helpers: normalise arrays and PIL images to (H, W, 4) uint8 RGBA
# RELEVANT FILES: python/pixeldiff/engine.py, python/pixeldiff/mask.py, python/pixeldiff/reconcile.py
from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from .errors import EmptyImageError

CHANNELS = 4
OPAQUE = 255


def _from_pil(image: Any) -> np.ndarray:
    return np.ascontiguousarray(np.asarray(image.convert("RGBA"), dtype=np.uint8))


def _to_uint8(arr: np.ndarray, name: str) -> np.ndarray:
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype == np.bool_:
        return arr.astype(np.uint8) * 255
    if np.issubdtype(arr.dtype, np.floating):
        if arr.size and (np.nanmin(arr) < 0.0 or np.nanmax(arr) > 1.0 or np.isnan(arr).any()):
            raise ValueError(f"{name} float values must lie in [0, 1]")
        return (arr * 255.0 + 0.5).astype(np.uint8)
    if np.issubdtype(arr.dtype, np.integer):
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError(f"{name} integer values must lie in [0, 255]")
        return arr.astype(np.uint8)
    raise TypeError(f"{name} has unsupported dtype {arr.dtype}")


def as_pixel_buffer(obj: Any, name: str = "image") -> np.ndarray:
    """Return ``obj`` as a C-contiguous ``(H, W, 4)`` uint8 RGBA array.

    Accepts RGBA, RGB and grayscale arrays as well as ``PIL.Image.Image``
    objects. RGB and grayscale inputs get an opaque alpha channel. A uint8
    RGBA array that is already contiguous is returned as-is, not copied.
    """
    if hasattr(obj, "convert") and hasattr(obj, "size") and not isinstance(obj, np.ndarray):
        return _from_pil(obj)
    if not isinstance(obj, np.ndarray):
        raise TypeError(f"{name} must be numpy.ndarray or PIL.Image.Image, got {type(obj).__name__}")

    arr = _to_uint8(obj, name)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, CHANNELS):
        raise ValueError(f"{name} must have shape (H,W), (H,W,3) or (H,W,4), got {obj.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), OPAQUE, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return np.ascontiguousarray(arr)


def dimensions(buffer: np.ndarray) -> Tuple[int, int]:
    """(width, height) of a pixel buffer."""
    return int(buffer.shape[1]), int(buffer.shape[0])


def ensure_not_empty(buffer: np.ndarray) -> np.ndarray:
    width, height = dimensions(buffer)
    if width == 0 or height == 0:
        raise EmptyImageError()
    return buffer


def new_buffer(width: int, height: int) -> np.ndarray:
    """Fully transparent black buffer of the given size."""
    if width < 0 or height < 0:
        raise ValueError("width and height must be >= 0")
    return np.zeros((int(height), int(width), CHANNELS), dtype=np.uint8)


def get_pixel(buffer: np.ndarray, x: int, y: int) -> Tuple[int, int, int, int]:
    """(R, G, B, A) at column ``x``, row ``y``."""
    width, height = dimensions(buffer)
    if not (0 <= x < width and 0 <= y < height):
        raise IndexError(f"pixel ({x}, {y}) outside {width}x{height} buffer")
    r, g, b, a = (int(v) for v in buffer[y, x])
    return r, g, b, a
