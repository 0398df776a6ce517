# python/pixeldiff/config.py
# Comparison options: resize policy, transparency policy, pixel tolerance
# One immutable value carries every policy into the engines; no call site keeps its own defaults
# RELEVANT FILES: python/pixeldiff/compare.py, python/pixeldiff/cli.py, tests/test_config.py
from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union


class ResizePolicy(Enum):
    """How buffers of different size are reconciled before comparison."""
    REJECT_ON_MISMATCH = "reject-on-mismatch"
    GROW_TO_LARGEST = "grow-to-largest"


class TransparencyPolicy(Enum):
    """Whether the alpha channel takes part in delta computation."""
    INCLUDE_ALPHA = "include-alpha"
    IGNORE_ALPHA = "ignore-alpha"


OptionsSource = Union["ComparisonOptions", Mapping[str, Any], str, Path, None]

_RESIZE_POLICIES: Dict[str, ResizePolicy] = {
    "rejectonmismatch": ResizePolicy.REJECT_ON_MISMATCH,
    "reject": ResizePolicy.REJECT_ON_MISMATCH,
    "dontresize": ResizePolicy.REJECT_ON_MISMATCH,
    "noresize": ResizePolicy.REJECT_ON_MISMATCH,
    "none": ResizePolicy.REJECT_ON_MISMATCH,
    "growtolargest": ResizePolicy.GROW_TO_LARGEST,
    "grow": ResizePolicy.GROW_TO_LARGEST,
    "resize": ResizePolicy.GROW_TO_LARGEST,
}

_TRANSPARENCY_POLICIES: Dict[str, TransparencyPolicy] = {
    "includealpha": TransparencyPolicy.INCLUDE_ALPHA,
    "include": TransparencyPolicy.INCLUDE_ALPHA,
    "comparealpha": TransparencyPolicy.INCLUDE_ALPHA,
    "comparealphachannel": TransparencyPolicy.INCLUDE_ALPHA,
    "alpha": TransparencyPolicy.INCLUDE_ALPHA,
    "ignorealpha": TransparencyPolicy.IGNORE_ALPHA,
    "ignore": TransparencyPolicy.IGNORE_ALPHA,
    "ignorealphachannel": TransparencyPolicy.IGNORE_ALPHA,
    "opaque": TransparencyPolicy.IGNORE_ALPHA,
}

_OVERRIDE_ALIASES: Dict[str, str] = {
    "resize": "resize_policy",
    "resizepolicy": "resize_policy",
    "resizeoption": "resize_policy",
    "transparency": "transparency_policy",
    "transparencypolicy": "transparency_policy",
    "transparencyoptions": "transparency_policy",
    "tolerance": "pixel_tolerance",
    "pixeltolerance": "pixel_tolerance",
    "pixelcolorshifttolerance": "pixel_tolerance",
}


def _normalize_key(value: Any) -> str:
    return "".join(
        c
        for c in str(value).strip().lower()
        if c not in {"-", "_", " ", "."}
    )


def _normalize_choice(value: Any, mapping: Mapping[str, Any], label: str) -> Any:
    key = _normalize_key(value)
    if key not in mapping:
        raise ValueError(f"Unknown {label}: {value!r}")
    return mapping[key]


def _to_resize_policy(value: Any) -> ResizePolicy:
    if isinstance(value, ResizePolicy):
        return value
    if isinstance(value, bool):
        return ResizePolicy.GROW_TO_LARGEST if value else ResizePolicy.REJECT_ON_MISMATCH
    return _normalize_choice(value, _RESIZE_POLICIES, "resize policy")


def _to_transparency_policy(value: Any) -> TransparencyPolicy:
    if isinstance(value, TransparencyPolicy):
        return value
    return _normalize_choice(value, _TRANSPARENCY_POLICIES, "transparency policy")


def _to_tolerance(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("pixel_tolerance must be an integer, got bool")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"pixel_tolerance must be an integer, got {value!r}")
        value = int(value)
    try:
        tolerance = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"pixel_tolerance must be an integer, got {type(value).__name__}") from e
    if tolerance < 0:
        raise ValueError(f"pixel_tolerance must be >= 0, got {tolerance}")
    return tolerance


@dataclass(frozen=True)
class ComparisonOptions:
    """Immutable comparison policy shared by every operation.

    Attributes
    ----------
    resize_policy : ResizePolicy
        Reject buffers of different size, or grow all of them to the largest size.
    transparency_policy : TransparencyPolicy
        Whether alpha deltas contribute to a pixel's summed delta.
    pixel_tolerance : int
        Largest summed channel delta a pixel may have and still count as equal.
    """
    resize_policy: ResizePolicy = ResizePolicy.REJECT_ON_MISMATCH
    transparency_policy: TransparencyPolicy = TransparencyPolicy.INCLUDE_ALPHA
    pixel_tolerance: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "resize_policy", _to_resize_policy(self.resize_policy))
        object.__setattr__(self, "transparency_policy", _to_transparency_policy(self.transparency_policy))
        object.__setattr__(self, "pixel_tolerance", _to_tolerance(self.pixel_tolerance))

    @property
    def include_alpha(self) -> bool:
        return self.transparency_policy is TransparencyPolicy.INCLUDE_ALPHA

    @property
    def grow_to_largest(self) -> bool:
        return self.resize_policy is ResizePolicy.GROW_TO_LARGEST

    def to_dict(self) -> dict:
        return {
            "resize_policy": self.resize_policy.value,
            "transparency_policy": self.transparency_policy.value,
            "pixel_tolerance": self.pixel_tolerance,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], default: Optional["ComparisonOptions"] = None) -> "ComparisonOptions":
        base = default if default is not None else cls()
        changes: Dict[str, Any] = {}
        for key, value in data.items():
            field_name = _OVERRIDE_ALIASES.get(_normalize_key(key))
            if field_name is None:
                raise ValueError(f"Unknown comparison option: {key!r}")
            changes[field_name] = value
        if not changes:
            return base
        return replace(base, **changes)


DEFAULT_OPTIONS = ComparisonOptions()


def _load_from_path(path: Path) -> Mapping[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix in {".json", ""}:
        data = json.loads(text)
        if not isinstance(data, Mapping):
            raise TypeError(f"Comparison options file must hold a JSON object: {path}")
        return data
    raise ValueError(f"Unsupported comparison options file format: {path}")


def load_options(source: OptionsSource = None, overrides: Optional[Mapping[str, Any]] = None) -> ComparisonOptions:
    """Build a ComparisonOptions value from an options value, mapping, JSON path, or defaults."""
    if isinstance(source, ComparisonOptions):
        options = source
    elif isinstance(source, Mapping):
        options = ComparisonOptions.from_mapping(source)
    elif isinstance(source, (str, Path)):
        options = ComparisonOptions.from_mapping(_load_from_path(Path(source)))
    elif source is None:
        options = DEFAULT_OPTIONS
    else:
        raise TypeError("options must be ComparisonOptions, mapping, path, or None")

    if overrides:
        options = ComparisonOptions.from_mapping(overrides, options)
    return options
