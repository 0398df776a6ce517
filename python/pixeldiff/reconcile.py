# python/pixeldiff/reconcile.py
# Dimension reconciliation: pass equal-sized buffers through, reject or grow the rest
# Resized copies are yielded to the caller of `reconciled` and never cached here
# RELEVANT FILES: python/pixeldiff/resample.py, python/pixeldiff/compare.py, tests/test_reconcile.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Tuple

import numpy as np

from .buffer import dimensions, ensure_not_empty
from .config import ComparisonOptions, ResizePolicy
from .errors import DimensionMismatchError
from .resample import resample

logger = logging.getLogger(__name__)


def have_equal_dimensions(*buffers: np.ndarray) -> bool:
    """True when every buffer has the same width and height."""
    if not buffers:
        return True
    first = dimensions(buffers[0])
    return all(dimensions(b) == first for b in buffers[1:])


def target_dimensions(*buffers: np.ndarray) -> Tuple[int, int]:
    """(max width, max height) over all buffers."""
    if not buffers:
        raise ValueError("at least one buffer is required")
    sizes = [dimensions(b) for b in buffers]
    return max(w for w, _ in sizes), max(h for _, h in sizes)


def check_same_dimensions(*buffers: np.ndarray) -> None:
    """Raise DimensionMismatchError unless all buffers share one size."""
    if not have_equal_dimensions(*buffers):
        raise DimensionMismatchError()


def reconcile(
    buffers: Tuple[np.ndarray, ...],
    policy: ResizePolicy | ComparisonOptions = ResizePolicy.REJECT_ON_MISMATCH,
) -> Tuple[Tuple[np.ndarray, ...], bool]:
    """Bring two or three buffers to a common size.

    Returns the (possibly new) buffers and whether resized copies were made.
    Empty buffers fail with EmptyImageError before any size decision; under
    REJECT_ON_MISMATCH a size difference fails with DimensionMismatchError.
    """
    if isinstance(policy, ComparisonOptions):
        policy = policy.resize_policy
    for buffer in buffers:
        ensure_not_empty(buffer)

    if have_equal_dimensions(*buffers):
        return tuple(buffers), False
    if policy is not ResizePolicy.GROW_TO_LARGEST:
        raise DimensionMismatchError()

    width, height = target_dimensions(*buffers)
    sizes = ", ".join(f"{w}x{h}" for w, h in (dimensions(b) for b in buffers))
    logger.debug(f"Growing {sizes} to {width}x{height}")
    grown = tuple(resample(b, width, height) for b in buffers)
    return grown, True


@contextmanager
def reconciled(
    *buffers: np.ndarray,
    policy: ResizePolicy | ComparisonOptions = ResizePolicy.REJECT_ON_MISMATCH,
) -> Iterator[Tuple[np.ndarray, ...]]:
    """Scoped variant of :func:`reconcile`.

    Example:
        with reconciled(a, b, policy=options) as (ra, rb):
            result = diff(ra, rb, options)

    Resized copies are only referenced by the yielded tuple; once the block
    exits and the caller drops its names they are left to the garbage
    collector. Input buffers are never modified.
    """
    out, owned = reconcile(buffers, policy)
    if owned:
        logger.debug(f"Yielding {len(out)} resized buffer(s) to the caller's block")
    yield out
