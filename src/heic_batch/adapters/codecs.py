"""Pillow-based HEIC decoder and JPEG encoder."""

from __future__ import annotations

import io
import logging
from functools import cache

from PIL import Image
from pillow_heif import register_heif_opener

from heic_batch.application.ports import DecodedImage
from heic_batch.errors import DecodeError, EncodeError
from heic_batch.types import PixelImage

logger = logging.getLogger(__name__)


@cache
def _register_heif() -> None:
    register_heif_opener()


class PillowHeifDecoder:
    """Decode HEIC/HEIF payloads through ``pillow-heif``."""

    def __init__(self) -> None:
        _register_heif()

    def decode(self, data: bytes, *, with_metadata: bool = False) -> DecodedImage:
        """Decode ``data`` and optionally pull its EXIF block.

        Parameters
        ----------
        data : bytes
            Full HEIC/HEIF file content.
        with_metadata : bool, default=False
            Whether to extract EXIF. Extraction problems are reported in
            ``DecodedImage.metadata_error`` rather than raised.

        Returns
        -------
        DecodedImage
            Loaded image plus optional EXIF bytes.

        Raises
        ------
        DecodeError
            If the payload cannot be decoded.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except Exception as exc:
            raise DecodeError(f"failed to decode HEIC image: {exc}") from exc

        if not with_metadata:
            return DecodedImage(image=image)

        try:
            exif = image.info.get("exif")
            if exif is None:
                raw = image.getexif()
                exif = raw.tobytes() if len(raw) else None
        except Exception as exc:
            logger.debug("EXIF extraction failed", exc_info=True)
            return DecodedImage(image=image, metadata_error=str(exc))
        return DecodedImage(image=image, exif=exif)


class PillowJpegEncoder:
    """Encode images as baseline JPEG via Pillow."""

    def encode(
        self,
        image: PixelImage,
        quality: int,
        exif: bytes | None = None,
    ) -> bytes:
        """Return JPEG bytes for ``image``.

        Raises
        ------
        EncodeError
            If Pillow cannot encode the image.
        """
        if not 1 <= quality <= 100:
            raise EncodeError(f"JPEG quality must be within 1..100, got {quality}")
        buffer = io.BytesIO()
        try:
            rgb = image if getattr(image, "mode", None) == "RGB" else image.convert("RGB")
            options: dict[str, object] = {"quality": quality}
            if exif:
                options["exif"] = exif
            rgb.save(buffer, format="JPEG", **options)
        except Exception as exc:
            raise EncodeError(f"failed to encode JPEG: {exc}") from exc
        return buffer.getvalue()
