# python/pixeldiff/engine.py
# Pixel difference engines: plain (scalar tolerance) and masked (per-pixel tolerance field)
# Work is split into row bands; per-band partial sums are folded after all bands finish
# RELEVANT FILES: python/pixeldiff/mask.py, python/pixeldiff/reconcile.py, tests/test_engine.py, tests/test_masked_engine.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, Tuple, TypeVar

import numpy as np

from .buffer import as_pixel_buffer, dimensions, ensure_not_empty
from .config import DEFAULT_OPTIONS, ComparisonOptions
from .reconcile import check_same_dimensions
from .result import CompareResult

logger = logging.getLogger(__name__)

DEFAULT_BAND_ROWS = 512

T = TypeVar("T")
Partial = Tuple[int, int]  # (absolute_error, pixel_error_count)


def iter_bands(height: int, band_rows: int) -> Iterator[slice]:
    """Row slices covering ``[0, height)`` in order."""
    if band_rows <= 0:
        raise ValueError("band_rows must be positive")
    for start in range(0, height, band_rows):
        yield slice(start, min(start + band_rows, height))


def run_bands(func: Callable[[slice], T], height: int, band_rows: int, workers: int) -> List[T]:
    """Apply ``func`` to every row band, on a thread pool when ``workers > 1``.

    Results come back in band order regardless of scheduling.
    """
    bands = list(iter_bands(height, band_rows))
    if workers <= 1 or len(bands) <= 1:
        return [func(band) for band in bands]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(func, bands))


def channel_deltas(a: np.ndarray, b: np.ndarray, include_alpha: bool) -> np.ndarray:
    """Absolute per-channel deltas as int16, alpha zeroed unless included."""
    deltas = np.abs(b.astype(np.int16) - a.astype(np.int16))
    if not include_alpha:
        deltas[..., 3] = 0
    return deltas


def _threshold(sums: np.ndarray, tolerance: int) -> Partial:
    over = sums > tolerance
    return int(sums[over].sum(dtype=np.int64)), int(np.count_nonzero(over))


def prepare_buffers(*buffers, names: Tuple[str, ...]) -> Tuple[np.ndarray, ...]:
    out = tuple(as_pixel_buffer(buf, name) for buf, name in zip(buffers, names))
    for buf in out:
        ensure_not_empty(buf)
    check_same_dimensions(*out)
    return out


def _fold(partials: List[Partial], quantity: int) -> CompareResult:
    absolute_error = sum(p[0] for p in partials)
    pixel_error_count = sum(p[1] for p in partials)
    return CompareResult.from_totals(absolute_error, pixel_error_count, quantity)


def diff(
    a,
    b,
    options: Optional[ComparisonOptions] = None,
    *,
    band_rows: int = DEFAULT_BAND_ROWS,
    workers: int = 1,
) -> CompareResult:
    """Compare two equally sized buffers under ``options``.

    A pixel differs when the sum of its absolute R, G, B (and A when alpha is
    included) deltas is strictly greater than ``options.pixel_tolerance``.

    Raises:
        EmptyImageError: either buffer has zero width or height
        DimensionMismatchError: the buffers differ in size
    """
    options = options or DEFAULT_OPTIONS
    a, b = prepare_buffers(a, b, names=("a", "b"))
    include_alpha = options.include_alpha
    tolerance = options.pixel_tolerance
    exact = tolerance == 0 and include_alpha

    def band_partial(rows: slice) -> Partial:
        ra = a[rows]
        rb = b[rows]
        if exact:
            differs = ra.view(np.uint32)[..., 0] != rb.view(np.uint32)[..., 0]
            count = int(np.count_nonzero(differs))
            if count == 0:
                return 0, 0
            deltas = channel_deltas(ra[differs], rb[differs], True)
            return int(deltas.sum(dtype=np.int64)), count
        sums = channel_deltas(ra, rb, include_alpha).sum(axis=-1, dtype=np.int32)
        return _threshold(sums, tolerance)

    width, height = dimensions(a)
    result = _fold(run_bands(band_partial, height, band_rows, workers), width * height)
    logger.debug(
        f"diff {width}x{height} tolerance={tolerance} alpha={include_alpha}: "
        f"{result.pixel_error_count} differing pixel(s), absolute error {result.absolute_error}"
    )
    return result


def diff_with_mask(
    a,
    b,
    mask,
    options: Optional[ComparisonOptions] = None,
    *,
    band_rows: int = DEFAULT_BAND_ROWS,
    workers: int = 1,
) -> CompareResult:
    """Compare two buffers, treating ``mask`` as a per-pixel, per-channel allowance.

    A channel delta contributes to a pixel's sum only when it is strictly
    greater than the mask's value for that channel; the pixel then differs
    when that sum is strictly greater than ``options.pixel_tolerance``. An
    all-zero mask gives the same result as :func:`diff`.
    """
    options = options or DEFAULT_OPTIONS
    a, b, mask = prepare_buffers(a, b, mask, names=("a", "b", "mask"))
    include_alpha = options.include_alpha
    tolerance = options.pixel_tolerance

    def band_partial(rows: slice) -> Partial:
        deltas = channel_deltas(a[rows], b[rows], include_alpha)
        allowance = mask[rows].astype(np.int16)
        contributing = np.where(deltas > allowance, deltas, 0)
        return _threshold(contributing.sum(axis=-1, dtype=np.int32), tolerance)

    width, height = dimensions(a)
    result = _fold(run_bands(band_partial, height, band_rows, workers), width * height)
    logger.debug(
        f"diff_with_mask {width}x{height} tolerance={tolerance} alpha={include_alpha}: "
        f"{result.pixel_error_count} differing pixel(s), absolute error {result.absolute_error}"
    )
    return result


def exceeds_tolerance(
    a,
    b,
    options: Optional[ComparisonOptions] = None,
    *,
    band_rows: int = DEFAULT_BAND_ROWS,
) -> bool:
    """True as soon as one pixel's summed delta exceeds the tolerance.

    Same per-pixel rule as :func:`diff`, but stops at the first band that
    contains a differing pixel.
    """
    options = options or DEFAULT_OPTIONS
    a, b = prepare_buffers(a, b, names=("a", "b"))
    _, height = dimensions(a)
    for rows in iter_bands(height, band_rows):
        ra = a[rows]
        rb = b[rows]
        if options.pixel_tolerance == 0 and options.include_alpha:
            if not np.array_equal(ra, rb):
                return True
            continue
        sums = channel_deltas(ra, rb, options.include_alpha).sum(axis=-1, dtype=np.int32)
        if np.any(sums > options.pixel_tolerance):
            return True
    return False
