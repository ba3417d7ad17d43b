"""Application-layer use-cases and option objects."""

from __future__ import annotations

from pathlib import Path

from heic_batch.application.options import BatchConfig
from heic_batch.application.ports import (
    ConflictDecider,
    ImageDecoder,
    ImageEncoder,
    ProgressSink,
)
from heic_batch.application.results import (
    BatchResult,
    ConflictDecision,
    ConversionOutcome,
    ConversionRequest,
    Converted,
    Failed,
    ProgressSnapshot,
    Skipped,
)


def build_batch_config(
    *,
    quality: int = 90,
    output_dir: Path | str | None = None,
    preserve_metadata: bool = True,
    concurrency: int = 4,
    skip_invalid: bool = False,
    progress_interval: float = 0.1,
) -> BatchConfig:
    """Build a validated config snapshot via lazy use-case import."""
    from heic_batch.application.use_cases import build_batch_config as _impl

    return _impl(
        quality=quality,
        output_dir=output_dir,
        preserve_metadata=preserve_metadata,
        concurrency=concurrency,
        skip_invalid=skip_invalid,
        progress_interval=progress_interval,
    )


def run_batch(
    input_dir: Path,
    output_dir: Path | None,
    config: BatchConfig,
    *,
    decider: ConflictDecider | None = None,
    decoder: ImageDecoder | None = None,
    encoder: ImageEncoder | None = None,
    sink: ProgressSink | None = None,
) -> BatchResult:
    """Run a directory batch via lazy use-case import."""
    from heic_batch.application.use_cases import run_batch as _impl

    return _impl(
        input_dir,
        output_dir,
        config,
        decider=decider,
        decoder=decoder,
        encoder=encoder,
        sink=sink,
    )


def convert_file(
    input_path: Path,
    output_dir: Path | None,
    config: BatchConfig,
    *,
    decider: ConflictDecider | None = None,
    decoder: ImageDecoder | None = None,
    encoder: ImageEncoder | None = None,
) -> ConversionOutcome:
    """Convert one file via lazy use-case import."""
    from heic_batch.application.use_cases import convert_file as _impl

    return _impl(
        input_path,
        output_dir,
        config,
        decider=decider,
        decoder=decoder,
        encoder=encoder,
    )


__all__ = [
    "BatchConfig",
    "BatchResult",
    "ConflictDecision",
    "ConversionOutcome",
    "ConversionRequest",
    "Converted",
    "Failed",
    "ProgressSnapshot",
    "Skipped",
    "build_batch_config",
    "convert_file",
    "run_batch",
]
