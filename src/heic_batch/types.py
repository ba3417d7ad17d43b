"""Shared type aliases for converter modules."""

from __future__ import annotations

from typing import Literal, Protocol, TypeAlias

ErrorKind: TypeAlias = Literal[
    "invalid-format",
    "read-error",
    "decode-error",
    "encode-error",
    "write-error",
    "internal-error",
]
SkipReason: TypeAlias = Literal["user-chose-skip", "not-a-valid-heic"]
ResolveAction: TypeAlias = Literal["proceed", "skip", "abort", "fail"]
ConflictPolicyName: TypeAlias = Literal["ask", "overwrite", "rename", "skip", "abort"]
ThemeName: TypeAlias = Literal["light", "dark"]
ConflictKind: TypeAlias = Literal["overwrite", "rename", "skip", "abort"]


class PixelImage(Protocol):
    """Marker protocol for decoded in-memory images."""
