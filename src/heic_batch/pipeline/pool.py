"""Fixed-size worker pool running conversion jobs on threads."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, TypeAlias

from heic_batch.application.results import ConversionOutcome, ConversionRequest, Failed

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4


class Job(Protocol):
    """Anything that turns a request into exactly one outcome."""

    def execute(self, request: ConversionRequest) -> ConversionOutcome:
        """Run one request."""


@dataclass(frozen=True)
class JobStarted:
    """A worker picked up a request."""

    input_path: Path


@dataclass(frozen=True)
class JobFinished:
    """Terminal outcome for one request."""

    outcome: ConversionOutcome


@dataclass(frozen=True)
class DispatchClosed:
    """No more work will be published.

    ``expected`` is the number of ``JobFinished`` events the stream will
    carry in total.
    """

    expected: int
    cancelled: bool = False


PoolEvent: TypeAlias = JobStarted | JobFinished | DispatchClosed


def event_capacity(job_count: int) -> int:
    """Queue size holding every event ``job_count`` jobs can produce.

    Each job yields one start and one finish event, plus a single
    ``DispatchClosed``; a queue of this size never blocks a producer.
    """
    return 2 * job_count + 1


class WorkerPool:
    """Threads pulling ``ConversionRequest`` objects from a shared queue.

    Parameters
    ----------
    job : Job
        Executes one request synchronously inside a worker thread.
    concurrency : int, default=4
        Number of worker threads.
    capacity : int, default=0
        Maximum size of the event queue; ``0`` means unbounded.

    Notes
    -----
    Lifecycle is ``start`` -> ``submit``/``publish`` -> ``close`` -> ``join``.
    Once ``join`` returns, every worker thread has exited.
    """

    def __init__(self, job: Job, concurrency: int = DEFAULT_CONCURRENCY, capacity: int = 0) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._job = job
        self._concurrency = concurrency
        self._work: queue.Queue[ConversionRequest | None] = queue.Queue()
        self._events: queue.Queue[PoolEvent] = queue.Queue(maxsize=capacity)
        self._threads: list[threading.Thread] = []
        self._closed = False
        self.submitted = 0

    @property
    def events(self) -> queue.Queue[PoolEvent]:
        return self._events

    @property
    def concurrency(self) -> int:
        return self._concurrency

    def start(self) -> None:
        """Spawn the worker threads."""
        if self._threads:
            raise RuntimeError("worker pool already started")
        for index in range(self._concurrency):
            thread = threading.Thread(
                target=self._worker,
                name=f"heic-worker-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def submit(self, request: ConversionRequest) -> None:
        """Queue one request for the next free worker."""
        if self._closed:
            raise RuntimeError("cannot submit to a closed worker pool")
        self.submitted += 1
        self._work.put(request)

    def publish(self, event: PoolEvent) -> None:
        """Put an event produced outside the workers on the same stream."""
        self._events.put(event)

    def close(self) -> None:
        """Signal that no more requests will be submitted."""
        if self._closed:
            return
        self._closed = True
        for _ in range(self._concurrency):
            self._work.put(None)

    def join(self) -> None:
        """Wait for every worker thread to exit."""
        for thread in self._threads:
            thread.join()

    def _worker(self) -> None:
        while True:
            request = self._work.get()
            if request is None:
                return
            self._events.put(JobStarted(request.input_path))
            self._events.put(JobFinished(self._run(request)))

    def _run(self, request: ConversionRequest) -> ConversionOutcome:
        try:
            return self._job.execute(request)
        except Exception as exc:
            logger.exception("unexpected error converting %s", request.input_path)
            return Failed(request.input_path, "internal-error", str(exc) or type(exc).__name__)


def run_pool(
    requests: Iterable[ConversionRequest],
    job: Job,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> Iterator[PoolEvent]:
    """Run ``requests`` through a worker pool and stream its events.

    Parameters
    ----------
    requests : Iterable[ConversionRequest]
        Requests to convert.
    job : Job
        Executes each request.
    concurrency : int, default=4
        Number of worker threads.

    Yields
    ------
    PoolEvent
        ``JobStarted`` and ``JobFinished`` events in completion order. Exactly
        one ``JobFinished`` is yielded per request.
    """
    pending = list(requests)
    pool = WorkerPool(job, concurrency=concurrency, capacity=event_capacity(len(pending)))
    pool.start()
    try:
        for request in pending:
            pool.submit(request)
    finally:
        pool.close()

    finished = 0
    try:
        while finished < len(pending):
            event = pool.events.get()
            if isinstance(event, JobFinished):
                finished += 1
            yield event
    finally:
        pool.join()
