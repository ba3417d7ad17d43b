"""Single input-to-output conversion job."""

from __future__ import annotations

import logging

from heic_batch.application.ports import DecodedImage, ImageDecoder, ImageEncoder
from heic_batch.application.results import (
    ConversionOutcome,
    ConversionRequest,
    Converted,
    Failed,
    Skipped,
)
from heic_batch.errors import DecodeError, EncodeError, InvalidFormatError
from heic_batch.validate import check_heic_header

logger = logging.getLogger(__name__)


class ConversionJob:
    """Convert one HEIC/HEIF file to JPEG.

    Parameters
    ----------
    decoder : ImageDecoder
        Decodes HEIC/HEIF payloads.
    encoder : ImageEncoder
        Encodes decoded images as JPEG.
    skip_invalid : bool, default=False
        Report files with a bad signature as ``Skipped`` instead of ``Failed``.

    Notes
    -----
    ``execute`` never raises for per-file problems and never retries.
    """

    def __init__(
        self,
        decoder: ImageDecoder,
        encoder: ImageEncoder,
        *,
        skip_invalid: bool = False,
    ) -> None:
        self._decoder = decoder
        self._encoder = encoder
        self._skip_invalid = skip_invalid

    def execute(self, request: ConversionRequest) -> ConversionOutcome:
        """Run the conversion described by ``request``."""
        source = request.input_path
        try:
            data = source.read_bytes()
        except OSError as exc:
            return Failed(source, "read-error", f"cannot read {source}: {exc}")

        try:
            check_heic_header(data[:16])
        except InvalidFormatError as exc:
            if self._skip_invalid:
                return Skipped(source, "not-a-valid-heic")
            return Failed(source, "invalid-format", str(exc))

        try:
            decoded = self._decoder.decode(data, with_metadata=request.preserve_metadata)
        except DecodeError as exc:
            return Failed(source, "decode-error", str(exc))

        try:
            payload, warnings = self._encode(decoded, request)
        except EncodeError as exc:
            return Failed(source, "encode-error", str(exc))

        try:
            request.output_path.write_bytes(payload)
        except OSError as exc:
            return Failed(
                source, "write-error", f"cannot write {request.output_path}: {exc}"
            )

        return Converted(
            input_path=source,
            output_path=request.output_path,
            input_bytes=len(data),
            output_bytes=len(payload),
            warnings=warnings,
        )

    def _encode(
        self,
        decoded: DecodedImage,
        request: ConversionRequest,
    ) -> tuple[bytes, tuple[str, ...]]:
        if not request.preserve_metadata:
            return self._encoder.encode(decoded.image, request.quality), ()

        warnings: list[str] = []
        if decoded.metadata_error:
            warnings.append(f"metadata not preserved: {decoded.metadata_error}")
        elif decoded.exif is not None:
            try:
                payload = self._encoder.encode(
                    decoded.image, request.quality, exif=decoded.exif
                )
                return payload, ()
            except EncodeError as exc:
                warnings.append(f"metadata not preserved: {exc}")

        for warning in warnings:
            logger.warning("%s: %s", request.input_path.name, warning)
        return self._encoder.encode(decoded.image, request.quality), tuple(warnings)
