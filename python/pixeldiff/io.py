# python/pixeldiff/io.py
# Decode paths, bytes and streams into pixel buffers; encode buffers as deterministic PNG
# RELEVANT FILES: python/pixeldiff/buffer.py, python/pixeldiff/compare.py, tests/test_io.py

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import Any, BinaryIO, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .buffer import as_pixel_buffer
from .errors import CorruptDataError, UnsupportedFormatError

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
ImageSource = Union[PathLike, bytes, bytearray, memoryview, BinaryIO, np.ndarray, Image.Image]


def is_path(source: Any) -> bool:
    return isinstance(source, (str, os.PathLike))


def is_stream(source: Any) -> bool:
    return hasattr(source, "read") and not isinstance(source, (np.ndarray, Image.Image))


def is_encoded(source: Any) -> bool:
    """True for inputs that still carry their source bytes (paths, bytes, streams)."""
    return is_path(source) or isinstance(source, (bytes, bytearray, memoryview)) or is_stream(source)


def read_stream(stream: BinaryIO) -> bytes:
    """Read a whole binary stream, restoring its position when it is seekable."""
    seekable = bool(getattr(stream, "seekable", lambda: False)())
    if seekable:
        stream.seek(0)
    data = stream.read()
    if seekable:
        stream.seek(0)
    if isinstance(data, str):
        raise TypeError("stream must be opened in binary mode")
    return bytes(data)


def source_bytes(source: Any) -> tuple[bytes, str]:
    """(raw bytes, label) for a path, bytes object or binary stream."""
    if is_path(source):
        return Path(source).read_bytes(), str(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source), "<bytes>"
    if is_stream(source):
        return read_stream(source), str(getattr(source, "name", "<stream>"))
    raise TypeError(f"expected a path, bytes or binary stream, got {type(source).__name__}")


def open_image(data: bytes, label: str) -> Image.Image:
    """Open encoded bytes with Pillow, mapping unrecognised data to UnsupportedFormatError."""
    try:
        return Image.open(io.BytesIO(data))
    except UnidentifiedImageError as exc:
        raise UnsupportedFormatError(f"Unsupported image format: {label}") from exc


def _open_decoded(data: bytes, label: str) -> np.ndarray:
    image = open_image(data, label)
    try:
        with image:
            image.load()
            return as_pixel_buffer(image, label)
    except (OSError, SyntaxError, ValueError) as exc:
        raise CorruptDataError(f"Corrupt image data: {label}: {exc}") from exc


def decode_bytes(data: Union[bytes, bytearray, memoryview], label: str = "<bytes>") -> np.ndarray:
    return _open_decoded(bytes(data), label)


def decode_path(path: PathLike) -> np.ndarray:
    p = Path(path)
    buffer = _open_decoded(p.read_bytes(), str(p))
    logger.debug(f"Decoded {p}: {buffer.shape[1]}x{buffer.shape[0]}")
    return buffer


def decode_stream(stream: BinaryIO) -> np.ndarray:
    label = str(getattr(stream, "name", "<stream>"))
    return _open_decoded(read_stream(stream), label)


def decode(source: ImageSource) -> np.ndarray:
    """Turn any supported image source into an (H, W, 4) uint8 RGBA buffer.

    Raises:
        UnsupportedFormatError: bytes are not a raster format Pillow recognises
        CorruptDataError: the format was recognised but decoding failed
        FileNotFoundError: a path does not exist
    """
    if is_path(source):
        return decode_path(source)
    if is_encoded(source):
        data, label = source_bytes(source)
        return _open_decoded(data, label)
    return as_pixel_buffer(source)


def encode_png(buffer: np.ndarray) -> bytes:
    """Encode an RGBA buffer as PNG bytes deterministically (fixed parameters, no metadata)."""
    arr = as_pixel_buffer(buffer, "buffer")
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format="PNG", optimize=False, compress_level=6)
    return buf.getvalue()


def save_png(path: PathLike, buffer: np.ndarray) -> Path:
    """Write ``buffer`` as PNG to ``path``, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(encode_png(buffer))
    logger.info(f"Saved difference mask: {out}")
    return out
