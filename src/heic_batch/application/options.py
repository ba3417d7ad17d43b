"""Typed option objects shared across conversion use-cases."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class BatchConfig:
    """Static configuration snapshot for one conversion run."""

    quality: int = 90
    output_dir: Path | None = None
    preserve_metadata: bool = True
    concurrency: int = 4
    skip_invalid: bool = False
    progress_interval: float = 0.1
