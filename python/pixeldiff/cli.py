# python/pixeldiff/cli.py
# Command-line front end: compare two image files or two directories of images
# RELEVANT FILES: python/pixeldiff/compare.py, python/pixeldiff/__main__.py, tests/test_cli.py
"""Compare images pixel-by-pixel from the command line.

Usage
-----
    pixeldiff a.png b.png [--tolerance N] [--resize] [--ignore-alpha] [--diff-mask diff.png]
    pixeldiff dir_a dir_b --dir [--json summary.json]

Exit codes: 0 on success, 2 on usage errors, 3 on fatal errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO

from .compare import calc_diff, calc_diff_mask_image
from .config import ComparisonOptions, load_options
from .errors import PixelDiffError
from .io import save_png
from .result import CompareResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_FATAL = 3

_COMPARE_FAILURES = (PixelDiffError, OSError, ValueError)


@dataclass(frozen=True)
class FileCompareInfo:
    """Outcome of comparing one pair of files; ``result`` is None when unsupported."""
    result: Optional[CompareResult] = None
    unsupported: bool = False
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "result": None if self.result is None else self.result.to_dict(),
            "unsupported": self.unsupported,
            "error_message": self.error_message,
        }


@dataclass
class DirectoryCompareSummary:
    matched_results: Dict[str, Optional[CompareResult]] = field(default_factory=dict)
    only_in_a: List[str] = field(default_factory=list)
    only_in_b: List[str] = field(default_factory=list)
    unsupported_files: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "matched_results": {
                name: None if result is None else result.to_dict()
                for name, result in self.matched_results.items()
            },
            "only_in_a": list(self.only_in_a),
            "only_in_b": list(self.only_in_b),
            "unsupported_files": list(self.unsupported_files),
        }


def compare_files(
    path_a: str | Path,
    path_b: str | Path,
    options: Optional[ComparisonOptions] = None,
    compare_metadata: bool = True,
) -> FileCompareInfo:
    """Compare two image files; failures are reported as unsupported instead of raised."""
    if not str(path_a).strip():
        raise ValueError("path_a is required")
    if not str(path_b).strip():
        raise ValueError("path_b is required")

    absolute_a = Path(path_a).resolve()
    absolute_b = Path(path_b).resolve()
    try:
        result = calc_diff(absolute_a, absolute_b, options, compare_metadata=compare_metadata)
    except _COMPARE_FAILURES as exc:
        logger.debug(f"Could not compare {absolute_a} and {absolute_b}: {exc}")
        return FileCompareInfo(result=None, unsupported=True, error_message=str(exc) or type(exc).__name__)
    return FileCompareInfo(result=result, unsupported=False, error_message=None)


def _file_names(directory: Path) -> Dict[str, str]:
    return {p.name.lower(): p.name for p in directory.iterdir() if p.is_file()}


def compare_directories(
    directory_a: str | Path,
    directory_b: str | Path,
    options: Optional[ComparisonOptions] = None,
    compare_metadata: bool = True,
) -> DirectoryCompareSummary:
    """Compare files matched by name (ignoring case) across two directories."""
    if not str(directory_a).strip():
        raise ValueError("directory_a is required")
    if not str(directory_b).strip():
        raise ValueError("directory_b is required")

    dir_a = Path(directory_a).resolve()
    dir_b = Path(directory_b).resolve()
    for d in (dir_a, dir_b):
        if not d.is_dir():
            raise FileNotFoundError(f"Directory not found: {d}")

    files_a = _file_names(dir_a)
    files_b = _file_names(dir_b)

    summary = DirectoryCompareSummary(
        only_in_a=sorted((files_a[k] for k in files_a.keys() - files_b.keys()), key=str.lower),
        only_in_b=sorted((files_b[k] for k in files_b.keys() - files_a.keys()), key=str.lower),
    )
    for key in sorted(files_a.keys() & files_b.keys()):
        name = files_a[key]
        info = compare_files(dir_a / name, dir_b / files_b[key], options, compare_metadata=compare_metadata)
        summary.matched_results[name] = info.result
        if info.unsupported:
            summary.unsupported_files.append(name)
    return summary


def print_compare_result(
    info: FileCompareInfo,
    writer: Optional[TextIO] = None,
    name_a: Optional[str] = None,
    name_b: Optional[str] = None,
) -> None:
    out = writer if writer is not None else sys.stdout
    print(f"Comparing: {name_a or 'A'} <> {name_b or 'B'}", file=out)

    if info.unsupported or info.result is None:
        print(f"  Unsupported or failed to compare: {info.error_message}", file=out)
        return

    result = info.result
    print(f"  PixelErrorCount: {result.pixel_error_count}", file=out)
    print(f"  PixelErrorPercentage: {result.pixel_error_percentage:.4f}", file=out)
    print(f"  AbsoluteError: {result.absolute_error}", file=out)
    print(f"  MeanError: {result.mean_error:.4f}", file=out)

    if result.metadata_differences is None:
        print("  Metadata comparison disabled.", file=out)
    elif not result.metadata_differences:
        print("  Metadata: no differences.", file=out)
    else:
        print("  Metadata differences:", file=out)
        for key, (value_a, value_b) in result.metadata_differences.items():
            print(f"    {key}: (A: {value_a or ''}, B: {value_b or ''})", file=out)


def _print_names(title: str, names: Sequence[str], out: TextIO) -> None:
    print(file=out)
    print(f"{title}:", file=out)
    if not names:
        print("  (none)", file=out)
    for name in names:
        print(f"  {name}", file=out)


def print_directory_summary(summary: DirectoryCompareSummary, writer: Optional[TextIO] = None) -> None:
    out = writer if writer is not None else sys.stdout
    print("Directory comparison summary:", file=out)
    print(file=out)
    print("Matched files:", file=out)
    if not summary.matched_results:
        print("  (none)", file=out)
    for name in sorted(summary.matched_results, key=str.lower):
        result = summary.matched_results[name]
        print(f"  {name}:", file=out)
        if result is None:
            print("    Unsupported or failed to compare", file=out)
        else:
            print(
                f"    PixelErrorCount: {result.pixel_error_count}, "
                f"PixelErrorPercentage: {result.pixel_error_percentage:.4f}",
                file=out,
            )

    _print_names("Only in A", summary.only_in_a, out)
    _print_names("Only in B", summary.only_in_b, out)
    _print_names("Unsupported files", summary.unsupported_files, out)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pixeldiff", description="Compare images pixel-by-pixel.")
    parser.add_argument("path_a", type=Path, help="First image file or directory")
    parser.add_argument("path_b", type=Path, help="Second image file or directory")
    parser.add_argument("--dir", action="store_true", help="Compare two directories, matching files by name")
    parser.add_argument("--tolerance", type=int, default=None, help="Per-pixel summed channel delta allowed")
    parser.add_argument("--resize", action="store_true", help="Grow images to the largest size instead of failing")
    parser.add_argument("--ignore-alpha", action="store_true", help="Exclude the alpha channel from deltas")
    parser.add_argument("--no-metadata", action="store_true", help="Skip metadata comparison")
    parser.add_argument("--options", type=Path, default=None, help="JSON file with comparison options")
    parser.add_argument("--diff-mask", type=Path, default=None, help="Write the difference mask PNG here (file mode)")
    parser.add_argument("--json", type=Path, dest="json_out", default=None, help="Write results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _options_from_args(args: argparse.Namespace) -> ComparisonOptions:
    overrides: Dict[str, Any] = {}
    if args.resize:
        overrides["resize_policy"] = "grow-to-largest"
    if args.ignore_alpha:
        overrides["transparency_policy"] = "ignore-alpha"
    if args.tolerance is not None:
        overrides["pixel_tolerance"] = args.tolerance
    return load_options(args.options, overrides)


def _write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = _options_from_args(args)
        compare_metadata = not args.no_metadata
        if args.dir:
            summary = compare_directories(args.path_a, args.path_b, options, compare_metadata=compare_metadata)
            print_directory_summary(summary)
            payload = summary.to_dict()
        else:
            info = compare_files(args.path_a, args.path_b, options, compare_metadata=compare_metadata)
            print_compare_result(info, name_a=args.path_a.name, name_b=args.path_b.name)
            payload = info.to_dict()
            if args.diff_mask is not None and not info.unsupported:
                save_png(args.diff_mask, calc_diff_mask_image(args.path_a, args.path_b, options))
                print(f"Saved difference mask to: {args.diff_mask}")
        if args.json_out is not None:
            payload["options"] = options.to_dict()
            _write_json(args.json_out, payload)
    except (PixelDiffError, OSError, ValueError, TypeError) as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return EXIT_FATAL
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
