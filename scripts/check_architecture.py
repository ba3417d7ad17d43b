#!/usr/bin/env python3
"""Architecture boundary checks."""

from __future__ import annotations

from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
PACKAGE = ROOT / "src/heic_batch"


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _assert_no_imports(path: Path, banned: list[str]) -> None:
    text = _read(path)
    for token in banned:
        if token in text:
            raise SystemExit(f"Architecture violation in {path}: found '{token}'")


def main() -> None:
    """Run repository architecture boundary checks."""
    # Only the codec adapter talks to Pillow.
    for path in PACKAGE.rglob("*.py"):
        if path.name == "codecs.py":
            continue
        _assert_no_imports(path, ["from PIL", "import PIL", "pillow_heif"])

    for layer in ("application", "pipeline", "adapters", "infrastructure"):
        for path in (PACKAGE / layer).glob("*.py"):
            _assert_no_imports(
                path, ["import typer", "from typer", "from rich", "import rich", "heic_batch.cli"]
            )

    for path in (PACKAGE / "pipeline").glob("*.py"):
        _assert_no_imports(path, ["application.use_cases", "heic_batch.adapters"])

    print("Architecture checks passed.")


if __name__ == "__main__":
    main()
