# python/pixeldiff/mask.py
# Difference-mask synthesis: an RGBA image of absolute channel deltas
# The output doubles as a per-pixel tolerance field for engine.diff_with_mask
# RELEVANT FILES: python/pixeldiff/engine.py, python/pixeldiff/io.py, tests/test_mask_synthesis.py
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .buffer import OPAQUE, dimensions, new_buffer
from .config import DEFAULT_OPTIONS, ComparisonOptions
from .engine import DEFAULT_BAND_ROWS, prepare_buffers, channel_deltas, run_bands

logger = logging.getLogger(__name__)


def _plain_band(deltas: np.ndarray, options: ComparisonOptions) -> np.ndarray:
    out = deltas.astype(np.uint8)
    rgb_differs = np.any(deltas[..., :3] > 0, axis=-1)
    if options.include_alpha:
        sums = deltas.sum(axis=-1, dtype=np.int32)
        if options.pixel_tolerance == 0:
            # keep colour differences visible when both sources are transparent
            out[..., 3] = np.where(rgb_differs, OPAQUE, out[..., 3])
    else:
        sums = deltas[..., :3].sum(axis=-1, dtype=np.int32)
        out[..., 3] = OPAQUE
    if options.pixel_tolerance > 0:
        out[sums <= options.pixel_tolerance] = 0
    return out


def _masked_band(deltas: np.ndarray, allowance: np.ndarray, options: ComparisonOptions) -> np.ndarray:
    out = np.maximum(deltas - allowance, 0).astype(np.uint8)
    if not options.include_alpha:
        out[..., 3] = OPAQUE
    if options.pixel_tolerance > 0:
        contributing = np.where(deltas > allowance, deltas, 0)
        if not options.include_alpha:
            contributing[..., 3] = 0
        sums = contributing.sum(axis=-1, dtype=np.int32)
        out[sums <= options.pixel_tolerance] = 0
    return out


def synthesize_mask(
    a,
    b,
    existing_mask=None,
    options: Optional[ComparisonOptions] = None,
    *,
    band_rows: int = DEFAULT_BAND_ROWS,
    workers: int = 1,
) -> np.ndarray:
    """Build a new RGBA buffer holding the absolute per-channel deltas of ``a`` and ``b``.

    Call as ``synthesize_mask(a, b, options)`` or, to subtract a previous mask's
    allowance, ``synthesize_mask(a, b, existing_mask, options)``.

    With ``pixel_tolerance == 0`` every pixel carries its raw (or mask-reduced)
    deltas. In the two-image form with alpha included, alpha is forced to 255
    wherever R, G or B differ. With ``pixel_tolerance > 0`` pixels whose summed
    delta does not exceed the tolerance are written as ``(0, 0, 0, 0)``. When
    alpha is ignored, written pixels are opaque.
    """
    if isinstance(existing_mask, ComparisonOptions) and options is None:
        existing_mask, options = None, existing_mask
    options = options or DEFAULT_OPTIONS

    if existing_mask is None:
        a, b = prepare_buffers(a, b, names=("a", "b"))
        allowance_source = None
    else:
        a, b, allowance_source = prepare_buffers(a, b, existing_mask, names=("a", "b", "existing_mask"))

    width, height = dimensions(a)
    out = new_buffer(width, height)

    def fill(rows: slice) -> None:
        deltas = channel_deltas(a[rows], b[rows], True)
        if allowance_source is None:
            out[rows] = _plain_band(deltas, options)
        else:
            out[rows] = _masked_band(deltas, allowance_source[rows].astype(np.int16), options)

    run_bands(fill, height, band_rows, workers)
    logger.debug(
        f"synthesized {width}x{height} mask (masked={allowance_source is not None}, "
        f"tolerance={options.pixel_tolerance}, alpha={options.include_alpha})"
    )
    return out
