#!/usr/bin/env python3
"""Examples for converting HEIC/HEIF photos to JPEG through the Python API."""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

import pillow_heif
from PIL import Image

from heic_batch import BatchConfig, convert_file, run_batch
from heic_batch.adapters.deciders import auto_rename
from heic_batch.application.results import Converted, ProgressSnapshot


def _make_sample_tree(root: Path) -> None:
    pillow_heif.register_heif_opener()
    colors = {"a.heic": (220, 40, 40), "trip/b.heic": (40, 220, 40), "trip/c.heif": (40, 40, 220)}
    for rel, color in colors.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", (64, 48), color).save(path, format="HEIF", quality=80)
    (root / "trip" / "notes.txt").write_text("not an image")


def _print_progress(snapshot: ProgressSnapshot) -> None:
    print(f"  {snapshot.processed}/{snapshot.total} {snapshot.current_file}")


def example_directory() -> None:
    """Convert a tree, then run again to show conflict renaming."""
    print("\n" + "=" * 60)
    print("Example 1: Directory batch")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmp:
        source = Path(tmp) / "photos"
        output = Path(tmp) / "jpg"
        _make_sample_tree(source)

        config = BatchConfig(quality=85, concurrency=2)
        first = run_batch(source, output, config, sink=_print_progress)
        print(f"Converted {len(first.converted)} of {first.discovered} files")

        second = run_batch(source, output, config, decider=auto_rename)
        print("Second run outputs:", sorted(c.output_path.name for c in second.converted))
        if not (first.ok and second.ok):
            raise SystemExit("FAIL: batch reported failures.")


def example_single_file() -> None:
    """Convert one file next to its source."""
    print("\n" + "=" * 60)
    print("Example 2: Single file")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmp:
        _make_sample_tree(Path(tmp))
        outcome = convert_file(Path(tmp) / "a.heic", config=BatchConfig(quality=60))
        if not isinstance(outcome, Converted):
            raise SystemExit(f"FAIL: {outcome}")
        print(f"Wrote {outcome.output_path.name}: {outcome.input_bytes} -> {outcome.output_bytes} bytes")


def main() -> int:
    example_directory()
    example_single_file()
    print("\nAll examples completed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
