"""Terminal progress display for batch runs, backed by ``rich.progress``."""

from __future__ import annotations

import threading
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from heic_batch.application.ports import ConflictDecider
from heic_batch.application.results import ConflictDecision, ProgressSnapshot


class RichProgressSink:
    """``ProgressSink`` that mirrors snapshots into a rich progress bar.

    Parameters
    ----------
    console : Console | None, default=None
        Console to render on; a fresh stdout console when omitted.

    Notes
    -----
    Snapshots arrive on the aggregator thread while conflict prompts run on
    the caller's thread. Wrap interactive deciders with ``pausing`` so the
    live display is stopped while a prompt waits for input.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            console=console or Console(),
        )
        self._task = self.progress.add_task("Converting", total=None)
        self._lock = threading.Lock()
        self.active = False

    @property
    def console(self) -> Console:
        return self.progress.console

    def __enter__(self) -> RichProgressSink:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self) -> None:
        with self._lock:
            if not self.active:
                self.progress.start()
                self.active = True

    def stop(self) -> None:
        with self._lock:
            if self.active:
                self.progress.stop()
                self.active = False

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        self.progress.update(
            self._task,
            completed=snapshot.processed,
            total=snapshot.total,
            description=snapshot.current_file[:40] or "Converting",
        )

    def pausing(self, decider: ConflictDecider) -> ConflictDecider:
        """Wrap ``decider`` so the live display is hidden while it runs."""

        def _paused(path: Path) -> ConflictDecision:
            resume = self.active
            self.stop()
            try:
                return decider(path)
            finally:
                if resume:
                    self.start()

        return _paused
