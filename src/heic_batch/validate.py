"""HEIC/HEIF container signature checks."""

from __future__ import annotations

from pathlib import Path

from heic_batch.errors import InvalidFormatError

SIGNATURE_LENGTH = 16
FTYP_MARKER = b"ftyp"
HEIC_BRANDS = frozenset({b"heic", b"heix", b"mif1", b"msf1"})


def check_heic_header(header: bytes) -> None:
    """Validate the leading ``ftyp`` box of a HEIC/HEIF payload.

    Parameters
    ----------
    header : bytes
        At least the first 16 bytes of the file.

    Raises
    ------
    InvalidFormatError
        If the header is too short, lacks ``ftyp`` at offset 4, or carries
        no recognized brand at offset 8 or 12.
    """
    if len(header) < SIGNATURE_LENGTH:
        raise InvalidFormatError("file too small to be a HEIC/HEIF image")
    if header[4:8] != FTYP_MARKER:
        raise InvalidFormatError("not a valid HEIC/HEIF file (missing 'ftyp' signature)")
    if header[8:12] in HEIC_BRANDS or header[12:16] in HEIC_BRANDS:
        return
    raise InvalidFormatError("not a supported HEIC/HEIF variant")


def is_valid_heic(path: Path) -> bool:
    """Return ``True`` when ``path`` starts with a recognized HEIC/HEIF header.

    I/O errors propagate; only format mismatches map to ``False``.
    """
    with path.open("rb") as handle:
        header = handle.read(SIGNATURE_LENGTH)
    try:
        check_heic_header(header)
    except InvalidFormatError:
        return False
    return True
