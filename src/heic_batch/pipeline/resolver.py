"""Output path computation and conflict resolution.

Each input goes through a small state machine::

    no conflict             -> proceed
    conflict -> overwrite   -> proceed (existing file removed)
                            -> fail (existing file cannot be removed)
             -> rename      -> re-check new path (proceed or conflict again)
             -> skip        -> skip
             -> abort       -> abort (whole batch)

A rename without a name picks the next free ``<stem>_<n>.jpg`` sibling of the
canonical output path.

The decision itself comes from an injected ``ConflictDecider`` so batch runs
can plug in a fixed policy instead of a human prompt.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from pathlib import Path

from heic_batch.application.ports import ConflictDecider
from heic_batch.application.results import ConflictDecision
from heic_batch.errors import ConflictLoopError, DirectoryCreateError
from heic_batch.types import ResolveAction

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = ".jpg"
JPEG_SUFFIXES = frozenset({".jpg", ".jpeg"})
MAX_DECISIONS_PER_FILE = 100


@dataclass(frozen=True)
class Resolution:
    """Final output path and what to do with the input.

    ``detail`` explains a ``fail`` action and is empty otherwise.
    """

    output_path: Path
    action: ResolveAction
    detail: str = ""


def canonical_output_path(input_path: Path, output_dir: Path | None = None) -> Path:
    """Return ``<output_dir>/<stem>.jpg``, defaulting to the input's directory."""
    directory = output_dir if output_dir else input_path.parent
    return Path(directory) / f"{input_path.stem}{OUTPUT_SUFFIX}"


def numbered_sibling(path: Path, index: int) -> Path:
    """Return ``<stem>_<index><suffix>`` next to ``path``."""
    return path.with_name(f"{path.stem}_{index}{path.suffix}")


def ensure_directory(directory: Path) -> None:
    """Create ``directory`` with parents.

    Raises
    ------
    DirectoryCreateError
        If the directory cannot be created.
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateError(
            f"Failed to create output directory {directory}: {exc}"
        ) from exc


class OutputPathResolver:
    """Resolve output paths for a sequence of inputs.

    Parameters
    ----------
    decider : ConflictDecider
        Called with the conflicting path whenever a target is taken.
    output_dir : Path | None, default=None
        Target directory. ``None`` writes next to each input.

    Notes
    -----
    Paths handed out by ``resolve`` are reserved for the lifetime of the
    resolver, so two inputs of one batch never share an output path even
    before either file is written.
    """

    def __init__(
        self,
        decider: ConflictDecider,
        output_dir: Path | None = None,
    ) -> None:
        self._decider = decider
        self._output_dir = Path(output_dir) if output_dir else None
        self._reserved: set[Path] = set()
        self._created: set[Path] = set()

    @property
    def reserved(self) -> frozenset[Path]:
        return frozenset(self._reserved)

    def _ensure_directory(self, directory: Path) -> None:
        if directory in self._created:
            return
        ensure_directory(directory)
        self._created.add(directory)

    def _is_taken(self, path: Path) -> bool:
        return path in self._reserved or path.exists()

    def _next_free(self, path: Path) -> Path:
        for index in itertools.count(1):
            candidate = numbered_sibling(path, index)
            if not self._is_taken(candidate):
                return candidate
        raise AssertionError("unreachable")

    def _rename_target(self, current: Path, new_path: Path) -> Path:
        candidate = new_path if new_path.is_absolute() else current.parent / new_path
        if candidate.suffix.lower() not in JPEG_SUFFIXES:
            candidate = candidate.with_name(candidate.name + OUTPUT_SUFFIX)
        return candidate

    def resolve(self, input_path: Path) -> Resolution:
        """Resolve the output path for ``input_path``.

        Parameters
        ----------
        input_path : Path
            Source HEIC/HEIF file.

        Returns
        -------
        Resolution
            ``proceed`` with a reserved output path, ``skip``, ``abort``, or
            ``fail`` when an existing file chosen for overwrite cannot be
            removed.

        Raises
        ------
        DirectoryCreateError
            If the output directory cannot be created.
        ConflictLoopError
            If the decider keeps answering with unusable decisions.
        """
        canonical = canonical_output_path(input_path, self._output_dir)
        self._ensure_directory(canonical.parent)
        target = canonical

        for _ in range(MAX_DECISIONS_PER_FILE):
            if not self._is_taken(target):
                self._reserved.add(target)
                return Resolution(target, "proceed")

            decision = self._decider(target)
            logger.debug("conflict at %s resolved as %s", target, decision.kind)

            if decision.kind == ConflictDecision.SKIP:
                return Resolution(target, "skip")
            if decision.kind == ConflictDecision.ABORT:
                return Resolution(target, "abort")
            if decision.kind == ConflictDecision.OVERWRITE:
                if target in self._reserved:
                    target = self._next_free(canonical)
                    logger.warning(
                        "%s is already assigned in this batch; writing %s instead",
                        input_path.name,
                        target.name,
                    )
                    continue
                try:
                    target.unlink()
                except FileNotFoundError:
                    pass
                except OSError as exc:
                    logger.warning("cannot remove existing file %s: %s", target, exc)
                    return Resolution(
                        target, "fail", f"cannot overwrite existing file {target}: {exc}"
                    )
                self._reserved.add(target)
                return Resolution(target, "proceed")
            if decision.kind == ConflictDecision.RENAME:
                if decision.new_path is None:
                    target = self._next_free(canonical)
                    continue
                candidate = self._rename_target(target, decision.new_path)
                if candidate == target:
                    logger.warning("new name for %s matches the existing file", target.name)
                    continue
                self._ensure_directory(candidate.parent)
                target = candidate
                continue
            logger.warning("ignoring unusable conflict decision %r", decision)

        raise ConflictLoopError(
            f"No usable conflict decision for {input_path} after "
            f"{MAX_DECISIONS_PER_FILE} attempts"
        )
