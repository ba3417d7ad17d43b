"""Unit tests for application use-cases."""

from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import TypeAlias

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from heic_batch.adapters.deciders import always_overwrite, always_skip, auto_rename
from heic_batch.application.options import BatchConfig
from heic_batch.application.results import (
    BatchResult,
    ConflictDecision,
    Converted,
    Failed,
    Skipped,
)
from heic_batch.application.use_cases import (
    build_batch_config,
    config_from_settings,
    convert_file,
    run_batch,
)
from heic_batch.errors import (
    ConfigError,
    ConflictAbort,
    DirectoryCreateError,
    DiscoveryError,
    NoFilesFoundError,
)
from heic_batch.schemas import Settings

Runner: TypeAlias = Callable[..., BatchResult]


@pytest.fixture
def run(fake_decoder, fake_encoder) -> Runner:
    """Run a batch with the fake codecs."""

    def _run(input_dir: Path, output_dir: Path | None = None, **kwargs: object) -> BatchResult:
        config = kwargs.pop("config", BatchConfig(concurrency=2))
        return run_batch(
            input_dir,
            output_dir,
            config,
            decoder=fake_decoder,
            encoder=fake_encoder,
            **kwargs,
        )

    return _run


def test_batch_converts_heic_and_heif_only(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Convert a.heic and b.heif and ignore c.txt."""
    make_heic(tmp_path / "in" / "a.heic")
    make_heic(tmp_path / "in" / "b.heif")
    (tmp_path / "in" / "c.txt").write_text("notes")

    result = run(tmp_path / "in", tmp_path / "out")

    assert result.total == 2
    assert len(result.converted) == 2
    assert result.ok
    assert (tmp_path / "out" / "a.jpg").exists()
    assert (tmp_path / "out" / "b.jpg").exists()
    assert not (tmp_path / "out" / "c.jpg").exists()


def test_batch_without_output_dir_writes_next_to_inputs(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Fall back to each input's directory."""
    make_heic(tmp_path / "nested" / "a.heic")

    result = run(tmp_path)

    assert result.converted[0].output_path == tmp_path / "nested" / "a.jpg"


def test_batch_continues_past_invalid_file(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """A corrupted signature fails one file and the rest still convert."""
    make_heic(tmp_path / "a.heic")
    (tmp_path / "b.heic").write_bytes(b"garbage bytes, no signature")
    make_heic(tmp_path / "c.heic", b"CORRUPT")

    result = run(tmp_path, tmp_path / "out")

    kinds = sorted(f.error_kind for f in result.failed)
    assert kinds == ["decode-error", "invalid-format"]
    assert [c.input_path.name for c in result.converted] == ["a.heic"]
    assert not result.ok


def test_skip_invalid_reports_skip(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Report invalid signatures as skipped when requested."""
    make_heic(tmp_path / "a.heic")
    (tmp_path / "b.heic").write_bytes(b"garbage bytes, no signature")

    result = run(tmp_path, tmp_path / "out", config=BatchConfig(skip_invalid=True))

    assert result.skipped == (Skipped(tmp_path / "b.heic", "not-a-valid-heic"),)
    assert result.ok


def test_default_policy_aborts_on_conflict(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Cancel the batch on the first conflict when no decider is given."""
    for name in ("a", "b", "c"):
        make_heic(tmp_path / "in" / f"{name}.heic")
    out = tmp_path / "out"
    out.mkdir()
    (out / "b.jpg").write_bytes(b"old")

    result = run(tmp_path / "in", out, config=BatchConfig(concurrency=1))

    assert result.cancelled is True
    assert result.discovered == 3
    assert result.total == 1
    assert [c.input_path.name for c in result.converted] == ["a.heic"]
    assert (out / "b.jpg").read_bytes() == b"old"
    assert not (out / "c.jpg").exists()


def test_skip_policy_records_user_skip(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Record skipped conflicts without touching the existing file."""
    make_heic(tmp_path / "in" / "a.heic")
    make_heic(tmp_path / "in" / "b.heic")
    out = tmp_path / "out"
    out.mkdir()
    (out / "a.jpg").write_bytes(b"old")

    result = run(tmp_path / "in", out, decider=always_skip)

    assert result.skipped == (Skipped(tmp_path / "in" / "a.heic", "user-chose-skip"),)
    assert (out / "a.jpg").read_bytes() == b"old"
    assert result.total == 2


def test_overwrite_policy_replaces_existing_output(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Overwrite an existing JPEG with the new conversion."""
    make_heic(tmp_path / "in" / "a.heic")
    out = tmp_path / "out"
    out.mkdir()
    (out / "a.jpg").write_bytes(b"old")

    result = run(tmp_path / "in", out, decider=always_overwrite)

    assert len(result.converted) == 1
    assert (out / "a.jpg").read_bytes().startswith(b"\xff\xd8")


def test_same_stem_in_different_folders_never_collide(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Two inputs flattening to one name get distinct outputs."""
    make_heic(tmp_path / "in" / "x" / "a.heic")
    make_heic(tmp_path / "in" / "y" / "a.heic")
    out = tmp_path / "out"

    result = run(tmp_path / "in", out, decider=auto_rename)

    outputs = {c.output_path for c in result.converted}
    assert outputs == {out / "a.jpg", out / "a_1.jpg"}


def test_auto_rename_numbers_many_same_stem_inputs(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Four same-stem inputs get plain numbered names, never stacked suffixes."""
    for folder in ("w", "x", "y", "z"):
        make_heic(tmp_path / "in" / folder / "a.heic")
    out = tmp_path / "out"

    result = run(tmp_path / "in", out, decider=auto_rename)

    assert len(result.converted) == 4
    outputs = {c.output_path for c in result.converted}
    assert outputs == {out / "a.jpg", out / "a_1.jpg", out / "a_2.jpg", out / "a_3.jpg"}


def test_rename_mid_batch_writes_new_name_and_keeps_existing(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """A rename answer redirects only the conflicting file."""
    make_heic(tmp_path / "in" / "a.heic")
    make_heic(tmp_path / "in" / "b.heic")
    out = tmp_path / "out"
    out.mkdir()
    (out / "a.jpg").write_bytes(b"old")
    asked: list[Path] = []

    def _rename(path: Path) -> ConflictDecision:
        asked.append(path)
        return ConflictDecision.rename("a_copy.jpg")

    result = run(tmp_path / "in", out, decider=_rename)

    assert result.ok
    assert asked == [out / "a.jpg"]
    outputs = {c.input_path.name: c.output_path for c in result.converted}
    assert outputs == {"a.heic": out / "a_copy.jpg", "b.heic": out / "b.jpg"}
    assert (out / "a.jpg").read_bytes() == b"old"
    assert (out / "a_copy.jpg").read_bytes().startswith(b"\xff\xd8")


def test_failed_overwrite_is_a_per_file_failure(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """An output that cannot be removed fails that file while siblings convert."""
    make_heic(tmp_path / "in" / "a.heic")
    make_heic(tmp_path / "in" / "b.heic")
    make_heic(tmp_path / "in" / "c.heic")
    out = tmp_path / "out"
    (out / "a.jpg").mkdir(parents=True)

    result = run(tmp_path / "in", out, decider=always_overwrite)

    assert not result.cancelled
    assert result.total == 3
    assert [(f.input_path.name, f.error_kind) for f in result.failed] == [
        ("a.heic", "write-error")
    ]
    assert "cannot overwrite" in result.failed[0].detail
    assert sorted(c.input_path.name for c in result.converted) == ["b.heic", "c.heic"]
    assert (out / "a.jpg").is_dir()
    assert (out / "b.jpg").exists()


def test_sink_receives_final_snapshot(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Deliver progress, ending with a complete snapshot."""
    make_heic(tmp_path / "a.heic")
    make_heic(tmp_path / "b.heic")
    seen = []

    run(tmp_path, tmp_path / "out", sink=seen.append)

    assert seen
    assert seen[-1].processed == seen[-1].total == 2


def test_no_files_found(tmp_path: Path, run: Runner) -> None:
    """Raise NoFilesFoundError on a directory without HEIC files."""
    (tmp_path / "c.txt").write_text("notes")
    with pytest.raises(NoFilesFoundError):
        run(tmp_path)


def test_missing_input_dir(tmp_path: Path, run: Runner) -> None:
    """Propagate discovery errors."""
    with pytest.raises(DiscoveryError):
        run(tmp_path / "missing")


@pytest.mark.parametrize("quality", [0, 101])
def test_out_of_range_quality_is_rejected(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner, quality: int
) -> None:
    """Reject quality outside 1..100 before any file is written."""
    make_heic(tmp_path / "a.heic")
    with pytest.raises(ConfigError):
        run(tmp_path, tmp_path / "out", config=BatchConfig(quality=quality))
    assert not (tmp_path / "out").exists()


def test_uncreatable_output_dir_is_fatal(
    tmp_path: Path, make_heic: Callable[..., Path], run: Runner
) -> None:
    """Fail the whole batch when the output directory cannot be created."""
    make_heic(tmp_path / "in" / "a.heic")
    blocker = tmp_path / "blocker"
    blocker.write_text("file")

    with pytest.raises(DirectoryCreateError):
        run(tmp_path / "in", blocker / "out")


@settings(
    max_examples=15,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(
    good=st.integers(min_value=0, max_value=6),
    bad=st.integers(min_value=0, max_value=4),
    workers=st.integers(min_value=1, max_value=5),
)
def test_outcome_counts_add_up(
    make_heic: Callable[..., Path], run: Runner, good: int, bad: int, workers: int
) -> None:
    """converted + skipped + failed always equals total."""
    if good + bad == 0:
        return
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        for index in range(good):
            make_heic(root / f"g{index}.heic")
        for index in range(bad):
            make_heic(root / f"b{index}.heic", b"CORRUPT")

        result = run(root, root / "out", config=BatchConfig(concurrency=workers))

    assert result.total == good + bad
    assert len(result.converted) + len(result.skipped) + len(result.failed) == result.total
    assert len(result.converted) == good


def test_convert_file_rename_keeps_existing(
    tmp_path: Path, make_heic: Callable[..., Path], fake_decoder, fake_encoder
) -> None:
    """Renaming leaves a.jpg untouched and writes a_copy.jpg."""
    source = make_heic(tmp_path / "a.heic")
    (tmp_path / "a.jpg").write_bytes(b"old")

    outcome = convert_file(
        source,
        None,
        BatchConfig(),
        decider=lambda path: ConflictDecision.rename("a_copy.jpg"),
        decoder=fake_decoder,
        encoder=fake_encoder,
    )

    assert isinstance(outcome, Converted)
    assert outcome.output_path == tmp_path / "a_copy.jpg"
    assert (tmp_path / "a.jpg").read_bytes() == b"old"


def test_convert_file_abort_raises(
    tmp_path: Path, make_heic: Callable[..., Path], fake_decoder, fake_encoder
) -> None:
    """Raise ConflictAbort when the decider cancels."""
    source = make_heic(tmp_path / "a.heic")
    (tmp_path / "a.jpg").write_bytes(b"old")

    with pytest.raises(ConflictAbort):
        convert_file(source, None, BatchConfig(), decoder=fake_decoder, encoder=fake_encoder)


def test_convert_file_reports_failure(tmp_path: Path, fake_decoder, fake_encoder) -> None:
    """Return a Failed outcome for a file that is not HEIC."""
    source = tmp_path / "a.heic"
    source.write_bytes(b"not an image at all")

    outcome = convert_file(
        source, tmp_path / "out", BatchConfig(), decoder=fake_decoder, encoder=fake_encoder
    )

    assert isinstance(outcome, Failed)
    assert outcome.error_kind == "invalid-format"


def test_convert_file_failed_overwrite_reports_write_error(
    tmp_path: Path, make_heic: Callable[..., Path], fake_decoder, fake_encoder
) -> None:
    """Return a write-error when the existing output cannot be replaced."""
    source = make_heic(tmp_path / "a.heic")
    (tmp_path / "a.jpg").mkdir()

    outcome = convert_file(
        source,
        None,
        BatchConfig(),
        decider=always_overwrite,
        decoder=fake_decoder,
        encoder=fake_encoder,
    )

    assert isinstance(outcome, Failed)
    assert outcome.error_kind == "write-error"


def test_build_batch_config_normalizes_values(tmp_path: Path) -> None:
    """Coerce string paths and keep defaults."""
    config = build_batch_config(quality=70, output_dir=str(tmp_path))

    assert config.quality == 70
    assert config.output_dir == tmp_path
    assert config.concurrency == 4
    assert build_batch_config(output_dir="  ").output_dir is None


@pytest.mark.parametrize(
    "kwargs",
    [{"quality": 0}, {"quality": 101}, {"concurrency": 0}, {"progress_interval": 0}],
)
def test_build_batch_config_rejects_bad_values(kwargs: dict[str, object]) -> None:
    """Map validation failures to ConfigError."""
    with pytest.raises(ConfigError):
        build_batch_config(**kwargs)


def test_config_from_settings_uses_sibling_output_when_blank() -> None:
    """An empty output_dir setting means write next to inputs."""
    config = config_from_settings(Settings(quality=80), concurrency=2)

    assert config.quality == 80
    assert config.output_dir is None
    assert config.concurrency == 2
