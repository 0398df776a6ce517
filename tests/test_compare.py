# tests/test_compare.py
# High-level API over encoded images: calc_diff, mask images, equality and size checks
# RELEVANT FILES: python/pixeldiff/compare.py

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL.PngImagePlugin import PngInfo

from pixeldiff import (
    ComparisonOptions,
    DimensionMismatchError,
    EmptyImageError,
    ImageCompare,
    ResizePolicy,
    TransparencyPolicy,
    UnsupportedOperationError,
    calc_diff,
    calc_diff_mask_image,
    images_are_equal,
    images_have_equal_size,
    save_png,
    synthesize_mask,
)
from _images import checkerboard, solid, with_pixel

GROW = ComparisonOptions(resize_policy=ResizePolicy.GROW_TO_LARGEST)


@pytest.fixture
def black_white(write_png):
    return write_png("black.png", solid(2, 2, (0, 0, 0, 255))), write_png("white.png", solid(2, 2, (255, 255, 255, 255)))


def test_calc_diff_on_files(black_white):
    black, white = black_white
    result = calc_diff(black, white)
    assert result.absolute_error == 3060
    assert result.mean_error == pytest.approx(765.0)
    assert result.pixel_error_count == 4
    assert result.pixel_error_percentage == pytest.approx(100.0)
    assert result.metadata_differences is None


def test_calc_diff_accepts_mixed_sources(black_white):
    black, white = black_white
    with open(white, "rb") as stream:
        result = calc_diff(str(black), stream, compare_metadata=True)
    assert result.pixel_error_count == 4
    assert result.metadata_differences == {}
    assert calc_diff(black.read_bytes(), solid(2, 2, (0, 0, 0, 255))).is_identical


def test_metadata_differences_are_attached(write_png):
    info_a = PngInfo()
    info_a.add_text("Author", "a")
    info_b = PngInfo()
    info_b.add_text("Author", "b")
    pixels = checkerboard(4, 4)
    a = write_png("a.png", pixels, pnginfo=info_a)
    b = write_png("b.png", pixels, pnginfo=info_b)

    result = calc_diff(a, b, compare_metadata=True)
    assert result.pixel_error_count == 0
    assert result.metadata_differences == {"PNG:Author": ("a", "b")}
    assert not result.is_identical
    assert not images_are_equal(a, b, compare_metadata=True)
    assert images_are_equal(a, b)


def test_metadata_requires_encoded_inputs():
    buf = solid(2, 2, (0, 0, 0, 255))
    with pytest.raises(UnsupportedOperationError):
        calc_diff(buf, buf, compare_metadata=True)


def test_size_mismatch_rejected_or_grown(write_png):
    large = write_png("large.png", solid(4, 4, (0, 0, 0, 255)))
    small = write_png("small.png", solid(2, 2, (255, 255, 255, 255)))

    with pytest.raises(DimensionMismatchError, match=r"^Size of images differ\.$"):
        calc_diff(large, small)

    result = calc_diff(large, small, GROW)
    assert result.absolute_error == 12240
    assert result.mean_error == pytest.approx(765.0)
    assert result.pixel_error_count == 16
    assert result.pixel_error_percentage == pytest.approx(100.0)

    mask = calc_diff_mask_image(large, small, GROW)
    assert mask.shape == (4, 4, 4)


def test_empty_buffers_fail():
    empty = np.zeros((0, 5, 4), dtype=np.uint8)
    with pytest.raises(EmptyImageError):
        calc_diff(empty, empty)
    with pytest.raises(EmptyImageError):
        images_are_equal(empty, solid(1, 1, (0, 0, 0, 0)))


def test_images_are_equal():
    base = solid(3, 3, (50, 50, 50, 255))
    nudged = with_pixel(base, 2, 2, (53, 50, 50, 255))

    assert images_are_equal(base, base.copy())
    assert not images_are_equal(base, nudged)
    assert images_are_equal(base, nudged, ComparisonOptions(pixel_tolerance=3))
    # size mismatch is a plain "not equal" unless growing is allowed
    assert images_are_equal(base, solid(4, 4, (50, 50, 50, 255))) is False
    assert images_are_equal(base, solid(4, 4, (50, 50, 50, 255)), GROW) is True


def test_images_are_equal_ignores_alpha_when_asked():
    a = solid(2, 2, (9, 9, 9, 255))
    b = solid(2, 2, (9, 9, 9, 0))
    assert not images_are_equal(a, b)
    assert images_are_equal(a, b, ComparisonOptions(transparency_policy=TransparencyPolicy.IGNORE_ALPHA))


def test_images_have_equal_size(write_png):
    a = write_png("a.png", solid(3, 2, (0, 0, 0, 255)))
    b = write_png("b.png", solid(3, 2, (255, 0, 0, 255)))
    c = write_png("c.png", solid(2, 3, (0, 0, 0, 255)))
    assert images_have_equal_size(a, b)
    assert not images_have_equal_size(a, c)
    assert images_have_equal_size(a, solid(3, 2, (0, 0, 0, 0)))
    assert images_have_equal_size(io.BytesIO(a.read_bytes()), b.read_bytes())


def test_mask_file_tolerates_its_own_differences(tmp_path, write_png, noisy_pair):
    a_buf, b_buf = noisy_pair
    a = write_png("a.png", a_buf)
    b = write_png("b.png", b_buf)
    options = ComparisonOptions(pixel_tolerance=40)

    assert calc_diff(a, b, options).pixel_error_count > 0
    mask_path = save_png(tmp_path / "out" / "mask.png", calc_diff_mask_image(a, b, options))
    result = calc_diff(a, b, options, mask=mask_path)
    assert result.pixel_error_count == 0
    assert result.absolute_error == 0


def test_grown_mask_keeps_allowance_under_zero_alpha():
    a = solid(2, 2, (0, 0, 0, 255))
    b = solid(2, 2, (10, 10, 10, 255))
    options = ComparisonOptions(resize_policy=ResizePolicy.GROW_TO_LARGEST, pixel_tolerance=5)

    mask = synthesize_mask(a, b, options)
    assert mask[0, 0].tolist() == [10, 10, 10, 0]
    assert calc_diff(a, b, options).absolute_error == 120

    small_mask = mask[:1, :1].copy()
    result = calc_diff(a, b, options, mask=small_mask)
    assert result.pixel_error_count == 0
    assert result.absolute_error == 0


def test_grow_keeps_colour_of_transparent_pixels():
    a = solid(2, 1, (0, 0, 0, 0))
    b = solid(1, 2, (50, 0, 0, 0))
    result = calc_diff(a, b, GROW)
    assert result.absolute_error == 200
    assert result.pixel_error_count == 4
    assert not images_are_equal(a, b, GROW)


def test_image_compare_binds_options(black_white):
    black, white = black_white
    comparer = ImageCompare(tolerance=765, transparency="ignore-alpha")
    assert comparer.options.pixel_tolerance == 765
    assert "ImageCompare(" in repr(comparer)
    assert comparer.calc_diff(black, white).pixel_error_count == 0
    assert comparer.images_are_equal(black, white)
    assert comparer.images_have_equal_size(black, white)
    assert np.all(comparer.calc_diff_mask_image(black, white) == 0)

    strict = ImageCompare(ComparisonOptions(), compare_metadata=True)
    result = strict.calc_diff(black, white)
    assert result.pixel_error_count == 4
    assert result.metadata_differences == {}


def test_workers_and_bands_do_not_change_result(noisy_pair):
    a, b = noisy_pair
    options = ComparisonOptions(pixel_tolerance=150)
    assert calc_diff(a, b, options, band_rows=2, workers=3) == calc_diff(a, b, options)
