# python/pixeldiff/resample.py
# Deterministic resampling of pixel buffers to a new size (Pillow bilinear filter)
# RELEVANT FILES: python/pixeldiff/reconcile.py

from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from .buffer import CHANNELS, dimensions

logger = logging.getLogger(__name__)

RESAMPLE_FILTER = Image.Resampling.BILINEAR


def resample(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Return a new RGBA buffer of ``width`` x ``height``; the input is not modified.

    Each channel is resized on its own as an ``L`` image. Pillow premultiplies
    RGBA by alpha before filtering, which would zero the colour of every fully
    transparent pixel; mask buffers store independent per-channel allowances,
    so alpha must never scale R, G or B.

    Pillow's filters are deterministic for a given input and target size,
    which is all the comparison engines rely on.
    """
    w = int(width); h = int(height)
    if w <= 0 or h <= 0:
        raise ValueError("width and height must be positive")
    if dimensions(buffer) == (w, h):
        return buffer.copy()

    bands = [
        Image.fromarray(np.ascontiguousarray(buffer[..., c])).resize((w, h), resample=RESAMPLE_FILTER)
        for c in range(CHANNELS)
    ]
    logger.debug(f"Resampled {buffer.shape[1]}x{buffer.shape[0]} -> {w}x{h}")
    return np.ascontiguousarray(np.stack([np.asarray(band, dtype=np.uint8) for band in bands], axis=-1))
