# python/pixeldiff/errors.py
# Typed failures raised by the comparison core and its adapters
# Messages are fixed so test suites can assert on the exact text
# RELEVANT FILES: python/pixeldiff/reconcile.py, python/pixeldiff/engine.py, python/pixeldiff/io.py

from __future__ import annotations

SIZE_DIFFERS_MESSAGE = "Size of images differ."
EMPTY_IMAGE_MESSAGE = "Image is empty."


class PixelDiffError(Exception):
    """Base class for all pixeldiff errors."""


class DimensionMismatchError(PixelDiffError, ValueError):
    """Buffers differ in size and resizing is not allowed."""

    def __init__(self, message: str = SIZE_DIFFERS_MESSAGE):
        super().__init__(message)


class EmptyImageError(PixelDiffError, ValueError):
    """A zero-width or zero-height buffer was supplied."""

    def __init__(self, message: str = EMPTY_IMAGE_MESSAGE):
        super().__init__(message)


class UnsupportedOperationError(PixelDiffError, NotImplementedError):
    """The requested feature is not valid for the given input representation."""


class DecodeError(PixelDiffError):
    """Raw bytes could not be turned into a pixel buffer."""


class UnsupportedFormatError(DecodeError):
    """The data is not in a raster format the decoder recognises."""


class CorruptDataError(DecodeError):
    """The format was recognised but the data could not be decoded."""
