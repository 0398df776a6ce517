# python/pixeldiff/__init__.py
# Public API: pixel-by-pixel image comparison with tolerance, transparency and resize policies
# RELEVANT FILES: python/pixeldiff/compare.py, python/pixeldiff/engine.py, python/pixeldiff/mask.py
"""Pixel-by-pixel image comparison for visual regression tests.

Example:
    import pixeldiff

    result = pixeldiff.calc_diff("actual.png", "expected.png")
    assert result.pixel_error_count == 0
"""

from .buffer import as_pixel_buffer, dimensions, get_pixel, new_buffer
from .compare import (
    ImageCompare,
    calc_diff,
    calc_diff_mask_image,
    images_are_equal,
    images_have_equal_size,
)
from .config import (
    DEFAULT_OPTIONS,
    ComparisonOptions,
    ResizePolicy,
    TransparencyPolicy,
    load_options,
)
from .engine import diff, diff_with_mask
from .errors import (
    CorruptDataError,
    DecodeError,
    DimensionMismatchError,
    EmptyImageError,
    PixelDiffError,
    UnsupportedFormatError,
    UnsupportedOperationError,
)
from .io import decode, encode_png, save_png
from .mask import synthesize_mask
from .metadata import compare_metadata, diff_metadata, extract_metadata_tags
from .reconcile import have_equal_dimensions, reconcile, reconciled
from .resample import resample
from .result import CompareResult

__version__ = "0.1.0"

__all__ = [
    "CompareResult",
    "ComparisonOptions",
    "CorruptDataError",
    "DEFAULT_OPTIONS",
    "DecodeError",
    "DimensionMismatchError",
    "EmptyImageError",
    "ImageCompare",
    "PixelDiffError",
    "ResizePolicy",
    "TransparencyPolicy",
    "UnsupportedFormatError",
    "UnsupportedOperationError",
    "as_pixel_buffer",
    "calc_diff",
    "calc_diff_mask_image",
    "compare_metadata",
    "decode",
    "diff",
    "diff_metadata",
    "diff_with_mask",
    "dimensions",
    "encode_png",
    "extract_metadata_tags",
    "get_pixel",
    "have_equal_dimensions",
    "images_are_equal",
    "images_have_equal_size",
    "load_options",
    "new_buffer",
    "reconcile",
    "reconciled",
    "resample",
    "save_png",
    "synthesize_mask",
]
