"""Application use-cases orchestrating conversion workflows."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from heic_batch.adapters.codecs import PillowHeifDecoder, PillowJpegEncoder
from heic_batch.adapters.deciders import always_abort
from heic_batch.application.options import BatchConfig
from heic_batch.application.ports import (
    ConflictDecider,
    ImageDecoder,
    ImageEncoder,
    ProgressSink,
)
from heic_batch.application.results import (
    BatchResult,
    ConversionOutcome,
    ConversionRequest,
    Failed,
    Skipped,
)
from heic_batch.errors import ConfigError, ConflictAbort, NoFilesFoundError
from heic_batch.pipeline.aggregator import ProgressAggregator
from heic_batch.pipeline.discovery import discover_heic_files
from heic_batch.pipeline.job import ConversionJob
from heic_batch.pipeline.pool import (
    DispatchClosed,
    JobFinished,
    WorkerPool,
    event_capacity,
)
from heic_batch.pipeline.resolver import OutputPathResolver, ensure_directory
from heic_batch.schemas import BatchConfigSchema, Settings

logger = logging.getLogger(__name__)


def validate_config(config: BatchConfig) -> BatchConfig:
    """Check ``config`` ranges before any work starts.

    Raises
    ------
    ConfigError
        If quality, concurrency or progress interval are out of range.
    """
    try:
        BatchConfigSchema(
            quality=config.quality,
            output_dir=config.output_dir,
            preserve_metadata=config.preserve_metadata,
            concurrency=config.concurrency,
            skip_invalid=config.skip_invalid,
            progress_interval=config.progress_interval,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid conversion parameters: {exc}") from exc
    return config


def build_batch_config(
    *,
    quality: int = 90,
    output_dir: Path | str | None = None,
    preserve_metadata: bool = True,
    concurrency: int = 4,
    skip_invalid: bool = False,
    progress_interval: float = 0.1,
) -> BatchConfig:
    """Build a validated config snapshot from command/API params."""
    try:
        schema = BatchConfigSchema(
            quality=quality,
            output_dir=output_dir,
            preserve_metadata=preserve_metadata,
            concurrency=concurrency,
            skip_invalid=skip_invalid,
            progress_interval=progress_interval,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid conversion parameters: {exc}") from exc
    return BatchConfig(
        quality=schema.quality,
        output_dir=schema.output_dir,
        preserve_metadata=schema.preserve_metadata,
        concurrency=schema.concurrency,
        skip_invalid=schema.skip_invalid,
        progress_interval=schema.progress_interval,
    )


def config_from_settings(settings: Settings, *, concurrency: int = 4) -> BatchConfig:
    """Turn persisted settings into a config snapshot."""
    return build_batch_config(
        quality=settings.quality,
        output_dir=settings.output_dir or None,
        preserve_metadata=settings.preserve_metadata,
        concurrency=concurrency,
    )


def run_batch(
    input_dir: Path,
    output_dir: Path | None,
    config: BatchConfig,
    *,
    decider: ConflictDecider | None = None,
    decoder: ImageDecoder | None = None,
    encoder: ImageEncoder | None = None,
    sink: ProgressSink | None = None,
) -> BatchResult:
    """Use-case: convert every HEIC/HEIF file under ``input_dir``.

    Parameters
    ----------
    input_dir : Path
        Root of the tree to convert.
    output_dir : Path | None
        Target directory; ``None`` falls back to ``config.output_dir`` and
        then to each input's own directory.
    config : BatchConfig
        Static configuration snapshot.
    decider : ConflictDecider | None, default=None
        Conflict policy. Defaults to aborting on the first conflict.
    decoder, encoder : optional
        Codec adapters; Pillow/pillow-heif when omitted.
    sink : ProgressSink | None, default=None
        Receives throttled progress snapshots.

    Returns
    -------
    BatchResult
        All outcomes, with ``cancelled`` set when a conflict aborted the run.

    Raises
    ------
    ConfigError
        If ``config`` is out of range.
    DiscoveryError
        If ``input_dir`` is not a readable directory.
    NoFilesFoundError
        If ``input_dir`` holds no HEIC/HEIF files.
    DirectoryCreateError
        If the output directory cannot be created.
    """
    validate_config(config)
    files = discover_heic_files(input_dir)
    if not files:
        raise NoFilesFoundError(f"No HEIC/HEIF files found in {input_dir}")

    target_dir = output_dir or config.output_dir
    if target_dir:
        ensure_directory(Path(target_dir))

    resolver = OutputPathResolver(decider or always_abort, target_dir)
    job = ConversionJob(
        decoder or PillowHeifDecoder(),
        encoder or PillowJpegEncoder(),
        skip_invalid=config.skip_invalid,
    )
    pool = WorkerPool(job, concurrency=config.concurrency, capacity=event_capacity(len(files)))
    aggregator = ProgressAggregator(len(files), sink=sink, interval=config.progress_interval)

    logger.info("converting %d files with %d workers", len(files), config.concurrency)
    aggregator.start(pool.events)
    pool.start()
    try:
        expected, cancelled = _dispatch(files, resolver, pool, config)
    except BaseException:
        # Fatal: release the aggregator, let in-flight jobs drain, re-raise.
        pool.close()
        pool.publish(DispatchClosed(expected=0, cancelled=True))
        aggregator.wait()
        pool.join()
        raise
    pool.close()
    pool.publish(DispatchClosed(expected=expected, cancelled=cancelled))

    result = aggregator.wait()
    pool.join()
    logger.info(
        "batch finished: %d converted, %d skipped, %d failed%s",
        len(result.converted),
        len(result.skipped),
        len(result.failed),
        " (cancelled)" if result.cancelled else "",
    )
    return result


def _dispatch(
    files: list[Path],
    resolver: OutputPathResolver,
    pool: WorkerPool,
    config: BatchConfig,
) -> tuple[int, bool]:
    """Resolve conflicts in order and hand each proceed request to the pool.

    Returns the number of outcomes the event stream will carry and whether
    dispatch stopped on an abort decision.
    """
    expected = 0
    for path in files:
        resolution = resolver.resolve(path)
        if resolution.action == "abort":
            logger.info("conflict at %s aborted the batch", resolution.output_path)
            return expected, True
        expected += 1
        if resolution.action == "skip":
            pool.publish(JobFinished(Skipped(path, "user-chose-skip")))
            continue
        if resolution.action == "fail":
            pool.publish(JobFinished(Failed(path, "write-error", resolution.detail)))
            continue
        pool.submit(
            ConversionRequest(
                input_path=path,
                output_path=resolution.output_path,
                quality=config.quality,
                preserve_metadata=config.preserve_metadata,
            )
        )
    return expected, False


def convert_file(
    input_path: Path,
    output_dir: Path | None,
    config: BatchConfig,
    *,
    decider: ConflictDecider | None = None,
    decoder: ImageDecoder | None = None,
    encoder: ImageEncoder | None = None,
) -> ConversionOutcome:
    """Use-case: convert one HEIC/HEIF file.

    Raises
    ------
    ConflictAbort
        If the conflict decider chose to cancel.
    """
    validate_config(config)
    source = Path(input_path)
    resolver = OutputPathResolver(decider or always_abort, output_dir or config.output_dir)
    resolution = resolver.resolve(source)
    if resolution.action == "abort":
        raise ConflictAbort(f"Conversion of {source} cancelled by user")
    if resolution.action == "skip":
        return Skipped(source, "user-chose-skip")
    if resolution.action == "fail":
        return Failed(source, "write-error", resolution.detail)

    job = ConversionJob(
        decoder or PillowHeifDecoder(),
        encoder or PillowJpegEncoder(),
        skip_invalid=config.skip_invalid,
    )
    return job.execute(
        ConversionRequest(
            input_path=source,
            output_path=resolution.output_path,
            quality=config.quality,
            preserve_metadata=config.preserve_metadata,
        )
    )
