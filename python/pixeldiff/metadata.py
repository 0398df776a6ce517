# python/pixeldiff/metadata.py
# Metadata tag extraction (EXIF, GPS, format info via Pillow) and key-wise tag diffing
# Independent of the pixel engines; only attached to CompareResult by the facade
# RELEVANT FILES: python/pixeldiff/compare.py, python/pixeldiff/io.py, tests/test_metadata.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from PIL import ExifTags, Image

from .errors import UnsupportedOperationError
from .io import is_encoded, open_image, source_bytes

logger = logging.getLogger(__name__)

MetadataDifferences = Dict[str, Tuple[Optional[str], Optional[str]]]

_IFD0_GROUP = "Exif IFD0"
_SUB_IFD_GROUP = "Exif SubIFD"
_GPS_GROUP = "GPS"
_POINTER_TAGS = {int(ExifTags.IFD.Exif), int(ExifTags.IFD.GPSInfo), int(ExifTags.IFD.Interop)}
_RAW_INFO_KEYS = {"exif"}

_NOT_ENCODED_MESSAGE = (
    "Metadata comparison is not supported for decoded pixel buffers. "
    "Pass file paths, bytes or streams to compare metadata."
)


def _describe(value: Any) -> str:
    if isinstance(value, bytes):
        text = value.rstrip(b"\x00")
        try:
            decoded = text.decode("utf-8")
        except UnicodeDecodeError:
            return f"[{len(value)} bytes]"
        return decoded if decoded.isprintable() else f"[{len(value)} bytes]"
    if isinstance(value, (tuple, list)):
        return ", ".join(_describe(v) for v in value)
    return str(value)


def _tag_items(image: Image.Image) -> Iterable[Tuple[str, str, Any]]:
    fmt = image.format or "Image"
    yield "File Type", "Detected File Type Name", fmt
    yield fmt, "Image Width", f"{image.width} pixels"
    yield fmt, "Image Height", f"{image.height} pixels"
    yield fmt, "Mode", image.mode

    exif = image.getexif()
    for tag_id, value in exif.items():
        if tag_id in _POINTER_TAGS:
            continue
        yield _IFD0_GROUP, ExifTags.TAGS.get(tag_id, f"Unknown tag (0x{tag_id:04x})"), value
    for tag_id, value in exif.get_ifd(ExifTags.IFD.Exif).items():
        yield _SUB_IFD_GROUP, ExifTags.TAGS.get(tag_id, f"Unknown tag (0x{tag_id:04x})"), value
    for tag_id, value in exif.get_ifd(ExifTags.IFD.GPSInfo).items():
        yield _GPS_GROUP, ExifTags.GPSTAGS.get(tag_id, f"Unknown tag (0x{tag_id:04x})"), value

    for key, value in image.info.items():
        if key in _RAW_INFO_KEYS:
            continue
        yield fmt, str(key), value


def extract_metadata_tags(source: Any) -> Dict[str, str]:
    """Read metadata tags from an encoded image as ``{"Group:TagName": description}``.

    Keys are unique ignoring case; a repeated key has its descriptions joined
    with ``"; "``.

    Raises:
        UnsupportedOperationError: ``source`` is an already-decoded array or PIL image
        UnsupportedFormatError: the bytes are not a recognised image format
    """
    if not is_encoded(source):
        raise UnsupportedOperationError(_NOT_ENCODED_MESSAGE)
    data, label = source_bytes(source)

    tags: Dict[str, str] = {}
    canonical: Dict[str, str] = {}
    with open_image(data, label) as image:
        for group, name, value in _tag_items(image):
            key = f"{group}:{name}"
            description = _describe(value)
            existing = canonical.get(key.lower())
            if existing is None:
                canonical[key.lower()] = key
                tags[key] = description
            else:
                tags[existing] = f"{tags[existing]}; {description}"
    logger.debug(f"Extracted {len(tags)} metadata tag(s) from {label}")
    return tags


def diff_metadata(a: Mapping[str, str], b: Mapping[str, str]) -> MetadataDifferences:
    """Keys whose trimmed values differ, mapped to ``(value_in_a, value_in_b)``.

    Keys are matched ignoring case and the result is ordered by key. A key
    present on one side only is reported with ``None`` for the missing value,
    unless the present value is blank.
    """
    lower_a = {k.lower(): (k, v) for k, v in a.items()}
    lower_b = {k.lower(): (k, v) for k, v in b.items()}

    out: MetadataDifferences = {}
    for lowered in sorted(set(lower_a) | set(lower_b)):
        key_a, value_a = lower_a.get(lowered, (None, None))
        key_b, value_b = lower_b.get(lowered, (None, None))
        norm_a = (value_a or "").strip()
        norm_b = (value_b or "").strip()
        if norm_a != norm_b:
            out[key_a if key_a is not None else key_b] = (value_a, value_b)
    return out


def compare_metadata(source_a: Any, source_b: Any) -> MetadataDifferences:
    return diff_metadata(extract_metadata_tags(source_a), extract_metadata_tags(source_b))
