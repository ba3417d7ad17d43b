"""Non-interactive conflict policies."""

from __future__ import annotations

from pathlib import Path

from heic_batch.application.ports import ConflictDecider
from heic_batch.application.results import ConflictDecision
from heic_batch.types import ConflictPolicyName


def always_overwrite(path: Path) -> ConflictDecision:
    del path
    return ConflictDecision.overwrite()


def always_skip(path: Path) -> ConflictDecision:
    del path
    return ConflictDecision.skip()


def always_abort(path: Path) -> ConflictDecision:
    del path
    return ConflictDecision.abort()


def auto_rename(path: Path) -> ConflictDecision:
    """Rename to the next free ``<stem>_<n>.jpg`` of the canonical output.

    The resolver picks the number, so paths reserved earlier in the batch are
    skipped as well as files on disk.
    """
    del path
    return ConflictDecision.rename()


_POLICIES: dict[str, ConflictDecider] = {
    "overwrite": always_overwrite,
    "skip": always_skip,
    "abort": always_abort,
    "rename": auto_rename,
}


def policy_decider(name: ConflictPolicyName) -> ConflictDecider | None:
    """Return the decider for a named policy.

    ``"ask"`` maps to ``None``: the caller must supply an interactive decider.

    Raises
    ------
    ValueError
        If ``name`` is not a known policy.
    """
    if name == "ask":
        return None
    try:
        return _POLICIES[name]
    except KeyError as exc:
        known = ", ".join(["ask", *sorted(_POLICIES)])
        raise ValueError(f"Unknown conflict policy '{name}'. Known policies: {known}") from exc
