"""Shared pytest configuration, marker assignment and codec fakes."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest

from heic_batch.application.ports import DecodedImage
from heic_batch.errors import DecodeError, EncodeError

HEIC_HEADER = b"\x00\x00\x00\x18ftypheic\x00\x00\x00\x00mif1heic"


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Attach suite markers based on test file path."""
    del config
    for item in items:
        path = Path(str(item.fspath))
        parts = set(path.parts)
        if "e2e_tests" in parts:
            item.add_marker(pytest.mark.e2e)
        elif "integration_tests" in parts:
            item.add_marker(pytest.mark.integration)
        elif "unit_tests" in parts:
            item.add_marker(pytest.mark.unit)


@dataclass(frozen=True)
class FakeImage:
    """Stand-in for a decoded image: carries the raw payload."""

    payload: bytes


class FakeDecoder:
    """Decoder driven by marker bytes in the payload.

    ``CORRUPT`` raises ``DecodeError``, ``EXIF`` yields an EXIF block and
    ``BADMETA`` reports a metadata extraction error.
    """

    def __init__(self) -> None:
        self.calls: list[bool] = []
        self._lock = threading.Lock()

    def decode(self, data: bytes, *, with_metadata: bool = False) -> DecodedImage:
        with self._lock:
            self.calls.append(with_metadata)
        if b"CORRUPT" in data:
            raise DecodeError("bitstream is damaged")
        image = FakeImage(data)
        if not with_metadata:
            return DecodedImage(image=image)
        if b"BADMETA" in data:
            return DecodedImage(image=image, metadata_error="exif box truncated")
        if b"EXIF" in data:
            return DecodedImage(image=image, exif=b"Exif\x00\x00fake")
        return DecodedImage(image=image)


class FakeEncoder:
    """Encoder producing a tiny JPEG-like payload.

    ``ENCFAIL`` in the source payload raises ``EncodeError``; with
    ``reject_exif`` any call carrying EXIF raises as well.
    """

    def __init__(self, *, reject_exif: bool = False) -> None:
        self.reject_exif = reject_exif
        self.calls: list[tuple[int, bytes | None]] = []
        self._lock = threading.Lock()

    def encode(self, image: FakeImage, quality: int, exif: bytes | None = None) -> bytes:
        with self._lock:
            self.calls.append((quality, exif))
        if b"ENCFAIL" in image.payload:
            raise EncodeError("encoder ran out of memory")
        if exif is not None and self.reject_exif:
            raise EncodeError("exif block too large")
        return b"\xff\xd8" + f"q={quality}".encode() + (exif or b"") + b"\xff\xd9"


@pytest.fixture
def fake_decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def fake_encoder() -> FakeEncoder:
    return FakeEncoder()


@pytest.fixture
def make_heic() -> Callable[..., Path]:
    """Factory writing a file with a valid HEIC header plus ``body``."""

    def _make(path: Path, body: bytes = b"pixels") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(HEIC_HEADER + body)
        return path

    return _make


@pytest.fixture
def exif_rejecting_encoder() -> FakeEncoder:
    return FakeEncoder(reject_exif=True)
