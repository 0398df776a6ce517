# python/pixeldiff/compare.py
# High-level comparison API over paths, bytes, streams, arrays and PIL images
# Decodes inputs, reconciles their size, runs one engine operation; resized copies live only for that call
# RELEVANT FILES: python/pixeldiff/engine.py, python/pixeldiff/mask.py, python/pixeldiff/reconcile.py, python/pixeldiff/cli.py
from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

import numpy as np

from .buffer import as_pixel_buffer, dimensions, ensure_not_empty
from .config import DEFAULT_OPTIONS, ComparisonOptions, OptionsSource, load_options
from .engine import DEFAULT_BAND_ROWS, diff, diff_with_mask, exceeds_tolerance
from .io import ImageSource, decode, is_encoded, open_image, source_bytes
from .mask import synthesize_mask
from .metadata import MetadataDifferences, compare_metadata as _compare_metadata
from .reconcile import have_equal_dimensions, reconciled
from .result import CompareResult

logger = logging.getLogger(__name__)


def _size_of(source: Any) -> Tuple[int, int]:
    if is_encoded(source):
        data, label = source_bytes(source)
        with open_image(data, label) as image:
            return image.size
    return dimensions(as_pixel_buffer(source))


def images_have_equal_size(a: ImageSource, b: ImageSource) -> bool:
    """True when both images have the same width and height.

    Encoded inputs are sized from their headers without decoding pixels.
    """
    return _size_of(a) == _size_of(b)


def calc_diff(
    a: ImageSource,
    b: ImageSource,
    options: Optional[ComparisonOptions] = None,
    *,
    mask: Optional[ImageSource] = None,
    compare_metadata: bool = False,
    band_rows: int = DEFAULT_BAND_ROWS,
    workers: int = 1,
) -> CompareResult:
    """Compare two images and return aggregate error statistics.

    With ``mask`` the comparison subtracts the mask's per-pixel allowance
    (see :func:`pixeldiff.engine.diff_with_mask`). With ``compare_metadata``
    the result carries the differing metadata tags; this requires encoded
    inputs (paths, bytes or streams).
    """
    options = options or DEFAULT_OPTIONS
    metadata: Optional[MetadataDifferences] = None
    if compare_metadata:
        metadata = _compare_metadata(a, b)

    buffers = [decode(a), decode(b)]
    if mask is not None:
        buffers.append(decode(mask))

    with reconciled(*buffers, policy=options) as grown:
        if mask is None:
            result = diff(grown[0], grown[1], options, band_rows=band_rows, workers=workers)
        else:
            result = diff_with_mask(grown[0], grown[1], grown[2], options, band_rows=band_rows, workers=workers)

    if compare_metadata:
        return result.with_metadata(metadata)
    return result


def calc_diff_mask_image(
    a: ImageSource,
    b: ImageSource,
    options: Optional[ComparisonOptions] = None,
    *,
    mask: Optional[ImageSource] = None,
    band_rows: int = DEFAULT_BAND_ROWS,
    workers: int = 1,
) -> np.ndarray:
    """Synthesize the difference-mask image of ``a`` and ``b`` (optionally reduced by ``mask``)."""
    options = options or DEFAULT_OPTIONS
    buffers = [decode(a), decode(b)]
    if mask is not None:
        buffers.append(decode(mask))

    with reconciled(*buffers, policy=options) as grown:
        existing = grown[2] if mask is not None else None
        return synthesize_mask(grown[0], grown[1], existing, options, band_rows=band_rows, workers=workers)


def images_are_equal(
    a: ImageSource,
    b: ImageSource,
    options: Optional[ComparisonOptions] = None,
    *,
    compare_metadata: bool = False,
) -> bool:
    """True when no pixel's summed delta exceeds the tolerance.

    Unlike :func:`calc_diff`, a size difference under REJECT_ON_MISMATCH
    yields ``False`` instead of raising. Any metadata difference also yields
    ``False`` when ``compare_metadata`` is set.
    """
    options = options or DEFAULT_OPTIONS
    if compare_metadata and _compare_metadata(a, b):
        return False

    ba = ensure_not_empty(decode(a))
    bb = ensure_not_empty(decode(b))
    if not options.grow_to_largest and not have_equal_dimensions(ba, bb):
        return False

    with reconciled(ba, bb, policy=options) as (ra, rb):
        return not exceeds_tolerance(ra, rb, options)


class ImageCompare:
    """Comparison entry point bound to one immutable set of options.

    Example:
        comparer = ImageCompare(resize="grow", tolerance=12)
        result = comparer.calc_diff("actual.png", "expected.png")
        assert result.pixel_error_count == 0
    """

    def __init__(self, options: OptionsSource = None, *, compare_metadata: bool = False, **overrides: Any):
        self.options = load_options(options, overrides)
        self.compare_metadata = bool(compare_metadata)

    def __repr__(self) -> str:
        return f"ImageCompare(options={self.options!r}, compare_metadata={self.compare_metadata})"

    def calc_diff(self, a: ImageSource, b: ImageSource, mask: Optional[ImageSource] = None) -> CompareResult:
        return calc_diff(a, b, self.options, mask=mask, compare_metadata=self.compare_metadata)

    def calc_diff_mask_image(self, a: ImageSource, b: ImageSource, mask: Optional[ImageSource] = None) -> np.ndarray:
        return calc_diff_mask_image(a, b, self.options, mask=mask)

    def images_are_equal(self, a: ImageSource, b: ImageSource) -> bool:
        return images_are_equal(a, b, self.options, compare_metadata=self.compare_metadata)

    def images_have_equal_size(self, a: ImageSource, b: ImageSource) -> bool:
        return images_have_equal_size(a, b)
