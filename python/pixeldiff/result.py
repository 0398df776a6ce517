# python/pixeldiff/result.py
# Aggregate outcome of one comparison call
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional, Tuple

MetadataDifferences = Dict[str, Tuple[Optional[str], Optional[str]]]


@dataclass(frozen=True)
class CompareResult:
    """Immutable summary of a pixel comparison.

    Attributes
    ----------
    absolute_error : int
        Sum of the summed channel deltas of every differing pixel.
    mean_error : float
        ``absolute_error`` divided by the total pixel count.
    pixel_error_count : int
        Number of pixels whose summed delta exceeds the tolerance.
    pixel_error_percentage : float
        ``100 * pixel_error_count / pixel count``.
    metadata_differences : Optional[dict]
        ``key -> (value_a, value_b)`` for differing metadata tags, or None when
        metadata was not compared.
    """
    absolute_error: int
    mean_error: float
    pixel_error_count: int
    pixel_error_percentage: float
    metadata_differences: Optional[MetadataDifferences] = None

    @classmethod
    def from_totals(cls, absolute_error: int, pixel_error_count: int, quantity: int) -> "CompareResult":
        if quantity <= 0:
            raise ValueError("pixel quantity must be positive")
        return cls(
            absolute_error=int(absolute_error),
            mean_error=float(absolute_error) / quantity,
            pixel_error_count=int(pixel_error_count),
            pixel_error_percentage=float(pixel_error_count) / quantity * 100,
        )

    def with_metadata(self, differences: Optional[Mapping[str, Tuple[Optional[str], Optional[str]]]]) -> "CompareResult":
        return replace(self, metadata_differences=None if differences is None else dict(differences))

    @property
    def is_identical(self) -> bool:
        return self.pixel_error_count == 0 and not self.metadata_differences

    def to_dict(self) -> dict:
        return {
            "absolute_error": self.absolute_error,
            "mean_error": self.mean_error,
            "pixel_error_count": self.pixel_error_count,
            "pixel_error_percentage": self.pixel_error_percentage,
            "metadata_differences": (
                None
                if self.metadata_differences is None
                else {k: list(v) for k, v in self.metadata_differences.items()}
            ),
        }
