"""Application-layer request and result objects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import TypeAlias

from heic_batch.types import ConflictKind, ErrorKind, SkipReason


@dataclass(frozen=True)
class ConversionRequest:
    """One resolved input-to-output conversion."""

    input_path: Path
    output_path: Path
    quality: int = 90
    preserve_metadata: bool = True


@dataclass(frozen=True)
class Converted:
    """File written successfully."""

    input_path: Path
    output_path: Path
    input_bytes: int
    output_bytes: int
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class Skipped:
    """File deliberately not converted."""

    input_path: Path
    reason: SkipReason


@dataclass(frozen=True)
class Failed:
    """File conversion failed."""

    input_path: Path
    error_kind: ErrorKind
    detail: str


ConversionOutcome: TypeAlias = Converted | Skipped | Failed


@dataclass(frozen=True)
class BatchResult:
    """Summary of a finished (or cancelled) batch run."""

    total: int
    converted: tuple[Converted, ...]
    skipped: tuple[Skipped, ...]
    failed: tuple[Failed, ...]
    elapsed: timedelta
    cancelled: bool = False
    discovered: int = 0

    def __post_init__(self) -> None:
        counted = len(self.converted) + len(self.skipped) + len(self.failed)
        if counted != self.total:
            raise ValueError(
                f"batch total {self.total} does not match {counted} recorded outcomes"
            )

    @property
    def ok(self) -> bool:
        """Whether the run finished without failures or cancellation."""
        return not self.failed and not self.cancelled


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time view of batch progress."""

    processed: int
    total: int
    current_file: str
    elapsed: timedelta
    estimated_remaining: timedelta | None = None

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return min(100.0, self.processed * 100.0 / self.total)


@dataclass(frozen=True)
class ConflictDecision:
    """Answer to an output-path conflict.

    Use the ``overwrite``/``rename``/``skip``/``abort`` constructors rather
    than building instances by hand.
    """

    kind: ConflictKind
    new_path: Path | None = None

    OVERWRITE = "overwrite"
    RENAME = "rename"
    SKIP = "skip"
    ABORT = "abort"

    @classmethod
    def overwrite(cls) -> ConflictDecision:
        return cls(cls.OVERWRITE)

    @classmethod
    def rename(cls, new_path: Path | str | None = None) -> ConflictDecision:
        """Rename to ``new_path``; without one, use the next free numbered name."""
        return cls(cls.RENAME, Path(new_path) if new_path is not None else None)

    @classmethod
    def skip(cls) -> ConflictDecision:
        return cls(cls.SKIP)

    @classmethod
    def abort(cls) -> ConflictDecision:
        return cls(cls.ABORT)
