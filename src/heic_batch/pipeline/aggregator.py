"""Single-writer aggregation of worker events into a ``BatchResult``."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from datetime import timedelta

from heic_batch.application.ports import ProgressSink
from heic_batch.application.results import (
    BatchResult,
    ConversionOutcome,
    Converted,
    Failed,
    ProgressSnapshot,
    Skipped,
)
from heic_batch.pipeline.pool import DispatchClosed, JobFinished, JobStarted, PoolEvent

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1


class ProgressAggregator:
    """Merge pool events into live progress and a final ``BatchResult``.

    Parameters
    ----------
    total : int
        Number of outcomes expected unless a ``DispatchClosed`` lowers it.
    sink : ProgressSink | None, default=None
        Receives throttled ``ProgressSnapshot`` updates.
    interval : float, default=0.1
        Minimum seconds between sink updates.
    clock : Callable[[], float], default=time.monotonic
        Time source, injectable for tests.

    Notes
    -----
    This object is the only writer of the result accumulator. Feed it from a
    single thread, either via ``handle`` or via ``consume``/``start``.
    """

    def __init__(
        self,
        total: int,
        sink: ProgressSink | None = None,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._discovered = total
        self._expected = total
        self._sink = sink
        self._interval = interval
        self._clock = clock
        self._started_at = clock()
        self._last_emit: float | None = None
        self._dirty = False
        self._cancelled = False
        self._processed = 0
        self._current_file = ""
        self._converted: list[Converted] = []
        self._skipped: list[Skipped] = []
        self._failed: list[Failed] = []
        self._thread: threading.Thread | None = None
        self._result: BatchResult | None = None
        self._error: BaseException | None = None

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def done(self) -> bool:
        return self._processed >= self._expected

    def snapshot(self) -> ProgressSnapshot:
        """Build a snapshot of the current progress."""
        elapsed = self._clock() - self._started_at
        remaining: timedelta | None = None
        if self._processed > 0:
            projected = elapsed * self._expected / self._processed
            remaining = timedelta(seconds=max(0.0, projected - elapsed))
        return ProgressSnapshot(
            processed=self._processed,
            total=self._expected,
            current_file=self._current_file,
            elapsed=timedelta(seconds=elapsed),
            estimated_remaining=remaining,
        )

    def handle(self, event: PoolEvent) -> bool:
        """Apply one event; return ``True`` once aggregation is complete."""
        if isinstance(event, JobStarted):
            self._current_file = event.input_path.name
            self._dirty = True
        elif isinstance(event, JobFinished):
            self._record(event.outcome)
        elif isinstance(event, DispatchClosed):
            self._expected = event.expected
            self._cancelled = self._cancelled or event.cancelled
            self._dirty = True
        self._maybe_emit()
        return self.done

    def _record(self, outcome: ConversionOutcome) -> None:
        self._processed += 1
        self._current_file = outcome.input_path.name
        self._dirty = True
        if isinstance(outcome, Converted):
            self._converted.append(outcome)
        elif isinstance(outcome, Skipped):
            self._skipped.append(outcome)
        else:
            self._failed.append(outcome)
            logger.debug(
                "failed %s (%s): %s", outcome.input_path, outcome.error_kind, outcome.detail
            )

    def _maybe_emit(self, *, force: bool = False) -> None:
        if self._sink is None or not self._dirty:
            return
        now = self._clock()
        if not force and self._last_emit is not None and now - self._last_emit < self._interval:
            return
        self._last_emit = now
        self._dirty = False
        self._sink(self.snapshot())

    def result(self) -> BatchResult:
        """Freeze the accumulated outcomes into a ``BatchResult``."""
        return BatchResult(
            total=self._processed,
            converted=tuple(self._converted),
            skipped=tuple(self._skipped),
            failed=tuple(self._failed),
            elapsed=timedelta(seconds=self._clock() - self._started_at),
            cancelled=self._cancelled,
            discovered=self._discovered,
        )

    def consume(self, events: queue.Queue[PoolEvent]) -> BatchResult:
        """Drain ``events`` until complete and return the final result."""
        while not self.done:
            try:
                event = events.get(timeout=self._interval)
            except queue.Empty:
                self._maybe_emit()
                continue
            self.handle(event)
        self._dirty = True
        self._maybe_emit(force=True)
        return self.result()

    def start(self, events: queue.Queue[PoolEvent]) -> None:
        """Consume ``events`` on a dedicated thread."""
        if self._thread is not None:
            raise RuntimeError("aggregator already started")

        def _run() -> None:
            try:
                self._result = self.consume(events)
            except BaseException as exc:
                self._error = exc

        self._thread = threading.Thread(target=_run, name="heic-aggregator", daemon=True)
        self._thread.start()

    def wait(self) -> BatchResult:
        """Block until the aggregation thread finishes and return its result."""
        if self._thread is None:
            raise RuntimeError("aggregator was not started")
        self._thread.join()
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result
