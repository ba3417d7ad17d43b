"""Top-level API for HEIC/HEIF to JPEG conversion."""

from __future__ import annotations

from pathlib import Path

from heic_batch.application.options import BatchConfig
from heic_batch.application.ports import ConflictDecider, ProgressSink
from heic_batch.application.results import BatchResult, ConversionOutcome

__version__ = "0.1.0"


def run_batch(
    input_dir: Path,
    output_dir: Path | None = None,
    config: BatchConfig | None = None,
    *,
    decider: ConflictDecider | None = None,
    sink: ProgressSink | None = None,
) -> BatchResult:
    """Convert every HEIC/HEIF file under a directory tree.

    Parameters
    ----------
    input_dir : Path
        Directory searched recursively for ``.heic``/``.heif`` files.
    output_dir : Path | None, default=None
        Where JPEGs are written. When omitted, each JPEG lands next to its
        source file.
    config : BatchConfig | None, default=None
        Quality, metadata and concurrency settings. Defaults to
        ``BatchConfig()``.
    decider : ConflictDecider | None, default=None
        Called for every output path that already exists. Defaults to
        aborting the batch on the first conflict.
    sink : ProgressSink | None, default=None
        Receives throttled progress snapshots.

    Returns
    -------
    BatchResult
        Converted, skipped and failed outcomes.
    """
    from .application.use_cases import run_batch as _impl

    return _impl(
        Path(input_dir),
        Path(output_dir) if output_dir else None,
        config or BatchConfig(),
        decider=decider,
        sink=sink,
    )


def convert_file(
    input_path: Path,
    output_dir: Path | None = None,
    config: BatchConfig | None = None,
    *,
    decider: ConflictDecider | None = None,
) -> ConversionOutcome:
    """Convert a single HEIC/HEIF file.

    Parameters
    ----------
    input_path : Path
        Source file.
    output_dir : Path | None, default=None
        Target directory; defaults to the source's directory.
    config : BatchConfig | None, default=None
        Quality and metadata settings.
    decider : ConflictDecider | None, default=None
        Conflict policy; defaults to aborting when the output exists.

    Returns
    -------
    ConversionOutcome
        ``Converted``, ``Skipped`` or ``Failed``.
    """
    from .application.use_cases import convert_file as _impl

    return _impl(
        Path(input_path),
        Path(output_dir) if output_dir else None,
        config or BatchConfig(),
        decider=decider,
    )


def discover_heic_files(root_dir: Path) -> list[Path]:
    """List HEIC/HEIF files under ``root_dir`` in deterministic order."""
    from .pipeline.discovery import discover_heic_files as _impl

    return _impl(Path(root_dir))


__all__ = [
    "BatchConfig",
    "BatchResult",
    "convert_file",
    "discover_heic_files",
    "run_batch",
]
