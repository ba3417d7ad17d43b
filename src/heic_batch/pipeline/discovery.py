"""Recursive discovery of HEIC/HEIF input files."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from heic_batch.errors import DiscoveryError

logger = logging.getLogger(__name__)

HEIC_EXTENSIONS = frozenset({".heic", ".heif"})


def is_heic_name(path: Path) -> bool:
    """Check the file extension, case-insensitively."""
    return path.suffix.lower() in HEIC_EXTENSIONS


def discover_heic_files(root_dir: Path) -> list[Path]:
    """Walk ``root_dir`` and collect HEIC/HEIF files.

    Parameters
    ----------
    root_dir : Path
        Directory to search, including nested subdirectories.

    Returns
    -------
    list[Path]
        Matching files in lexical walk order. Empty when nothing matches.

    Raises
    ------
    DiscoveryError
        If ``root_dir`` does not exist, is not a directory, or cannot be read.
    """
    root = Path(root_dir)
    if not root.exists():
        raise DiscoveryError(f"Input directory does not exist: {root}")
    if not root.is_dir():
        raise DiscoveryError(f"Input path is not a directory: {root}")

    def _on_error(exc: OSError) -> None:
        raise DiscoveryError(f"Cannot read directory {exc.filename}: {exc.strerror}") from exc

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        # Sorting in place fixes the order os.walk descends into children.
        dirnames.sort()
        for name in sorted(filenames):
            candidate = Path(dirpath) / name
            if is_heic_name(candidate) and candidate.is_file():
                found.append(candidate)

    logger.debug("discovered %d HEIC/HEIF files under %s", len(found), root)
    return found
