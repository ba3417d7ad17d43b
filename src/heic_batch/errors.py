"""Error taxonomy for HEIC batch conversion."""

from __future__ import annotations


class HeicBatchError(Exception):
    """Base class for all converter errors.

    Parameters
    ----------
    message : str
        Human-readable error description.
    exit_code : int | None, default=None
        Process exit code used by the CLI. Falls back to the class default.
    """

    exit_code: int = 1

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(HeicBatchError):
    """Invalid batch configuration or settings values."""

    exit_code = 2


class SettingsError(HeicBatchError):
    """Persisted settings could not be read or written."""

    exit_code = 2


class DiscoveryError(HeicBatchError):
    """Input root is missing, not a directory, or cannot be walked."""

    exit_code = 3


class NoFilesFoundError(HeicBatchError):
    """Input directory holds no HEIC/HEIF files."""

    exit_code = 4


class DirectoryCreateError(HeicBatchError):
    """Output directory could not be created."""

    exit_code = 5


class ConflictAbort(HeicBatchError):
    """User chose to cancel the remaining work while resolving a conflict."""

    exit_code = 6


class ConflictLoopError(HeicBatchError):
    """Conflict decider kept returning unusable decisions."""

    exit_code = 7


class InvalidFormatError(HeicBatchError):
    """File does not carry a recognized HEIC/HEIF signature."""


class DecodeError(HeicBatchError):
    """Image payload could not be decoded."""


class EncodeError(HeicBatchError):
    """Decoded image could not be encoded to JPEG."""
