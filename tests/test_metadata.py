# tests/test_metadata.py
# Metadata tag extraction and key-wise diffing
# RELEVANT FILES: python/pixeldiff/metadata.py

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from pixeldiff import UnsupportedOperationError, compare_metadata, diff_metadata, extract_metadata_tags
from _images import solid


def _png_with_text(tmp_path, name: str, software: str):
    info = PngInfo()
    info.add_text("Software", software)
    path = tmp_path / name
    Image.fromarray(solid(3, 2, (10, 20, 30, 255))).save(path, format="PNG", pnginfo=info)
    return path


def _jpeg_with_artist(artist: str) -> bytes:
    exif = Image.Exif()
    exif[0x013B] = artist
    buf = io.BytesIO()
    Image.fromarray(solid(8, 8, (90, 90, 90, 255))[..., :3]).save(buf, format="JPEG", exif=exif)
    return buf.getvalue()


def test_png_tags(tmp_path):
    tags = extract_metadata_tags(_png_with_text(tmp_path, "a.png", "renderer 1.0"))
    assert tags["File Type:Detected File Type Name"] == "PNG"
    assert tags["PNG:Image Width"] == "3 pixels"
    assert tags["PNG:Image Height"] == "2 pixels"
    assert tags["PNG:Software"] == "renderer 1.0"


def test_jpeg_exif_tags():
    tags = extract_metadata_tags(_jpeg_with_artist("Jane Doe"))
    assert tags["File Type:Detected File Type Name"] == "JPEG"
    assert tags["Exif IFD0:Artist"] == "Jane Doe"
    assert not any(key.endswith(":exif") for key in tags)


def test_compare_reports_only_differing_tags(tmp_path):
    a = _png_with_text(tmp_path, "a.png", "renderer 1.0")
    b = _png_with_text(tmp_path, "b.png", "renderer 2.0")
    assert compare_metadata(a, b) == {"PNG:Software": ("renderer 1.0", "renderer 2.0")}
    assert compare_metadata(a, a) == {}


def test_compare_across_formats_reports_one_sided_tags(tmp_path):
    png = _png_with_text(tmp_path, "a.png", "renderer")
    diffs = compare_metadata(png, _jpeg_with_artist("Jane"))
    assert diffs["File Type:Detected File Type Name"] == ("PNG", "JPEG")
    assert diffs["Exif IFD0:Artist"] == (None, "Jane")
    assert diffs["PNG:Software"] == ("renderer", None)


def test_decoded_inputs_are_rejected():
    buf = solid(2, 2, (0, 0, 0, 255))
    with pytest.raises(UnsupportedOperationError) as exc:
        extract_metadata_tags(buf)
    assert isinstance(exc.value, NotImplementedError)
    with pytest.raises(UnsupportedOperationError):
        compare_metadata(Image.fromarray(buf), Image.fromarray(buf))


def test_diff_metadata_rules():
    a = {"Group:Same": "x", "Group:Case": "v1", "Group:Padded": " value ", "Only:A": "a", "Blank:A": "  "}
    b = {"Group:Same": "x", "group:case": "v2", "Group:Padded": "value", "Only:B": "b"}
    diffs = diff_metadata(a, b)
    assert diffs == {
        "Group:Case": ("v1", "v2"),
        "Only:A": ("a", None),
        "Only:B": (None, "b"),
    }
    assert list(diffs) == sorted(diffs, key=str.lower)


def test_stream_position_is_restored(tmp_path):
    path = _png_with_text(tmp_path, "a.png", "renderer")
    stream = io.BytesIO(path.read_bytes())
    extract_metadata_tags(stream)
    assert stream.tell() == 0
    np.testing.assert_array_equal(np.asarray(Image.open(stream).convert("RGBA")), solid(3, 2, (10, 20, 30, 255)))
