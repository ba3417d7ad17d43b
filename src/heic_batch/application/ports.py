"""Application ports for clean architecture boundaries."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from heic_batch.application.results import ConflictDecision, ProgressSnapshot
from heic_batch.types import PixelImage


@dataclass(frozen=True)
class DecodedImage:
    """Decoder output: pixels plus best-effort EXIF payload."""

    image: PixelImage
    exif: bytes | None = None
    metadata_error: str | None = None


class ImageDecoder(Protocol):
    """Decode HEIC/HEIF bytes into an in-memory image."""

    def decode(self, data: bytes, *, with_metadata: bool = False) -> DecodedImage:
        """Decode payload; raise ``DecodeError`` on failure."""


class ImageEncoder(Protocol):
    """Encode an in-memory image as JPEG."""

    def encode(
        self,
        image: PixelImage,
        quality: int,
        exif: bytes | None = None,
    ) -> bytes:
        """Return JPEG bytes; raise ``EncodeError`` on failure."""


class ConflictDecider(Protocol):
    """Supply a decision for an output path that already exists."""

    def __call__(self, path: Path) -> ConflictDecision:
        """Return how to handle the conflict at ``path``."""


class ProgressSink(Protocol):
    """Receive throttled progress snapshots during a batch."""

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        """Display or record ``snapshot``."""
