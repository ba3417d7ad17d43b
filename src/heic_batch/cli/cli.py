#!/usr/bin/env python3
"""
heic_batch.cli.cli

Typer-based CLI for converting HEIC/HEIF images to JPEG.

Examples
--------
Convert one file next to its source:

    heic-batch file IMG_0001.HEIC

Convert a whole tree into another directory, renaming on conflicts:

    heic-batch dir ~/Photos --output-dir ~/Pictures/jpg --on-conflict rename

Run the interactive menu:

    heic-batch menu
"""

from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path

import typer

from heic_batch.adapters.deciders import policy_decider
from heic_batch.application.ports import ConflictDecider
from heic_batch.application.results import (
    BatchResult,
    ConflictDecision,
    Converted,
    Failed,
    Skipped,
)
from heic_batch.errors import ConflictAbort, HeicBatchError
from heic_batch.schemas import DEFAULT_CONCURRENCY, Settings

app = typer.Typer(
    name="heic-batch",
    help="Convert HEIC/HEIF images to JPEG, one file or a whole directory tree.",
    no_args_is_help=True,
)
settings_app = typer.Typer(help="Show or change persisted settings.", no_args_is_help=True)
app.add_typer(settings_app, name="settings")

WORKERS_ENV = "HEIC_BATCH_WORKERS"
CONFLICT_HELP = "What to do when the JPEG already exists: ask, overwrite, rename, skip, abort."
OUTPUT_DIR_HELP = "Directory for JPEG output (defaults to settings, then the source directory)."
QUALITY_HELP = "JPEG quality 1-100 (defaults to settings)."
METADATA_HELP = "Copy EXIF metadata into the JPEG (defaults to settings)."
WORKERS_HELP = "Concurrent conversions."


# -----------------------------
# Helpers
# -----------------------------
def _settings_store():
    from heic_batch.infrastructure.settings_store import SettingsStore

    return SettingsStore()


def _print_conversion_error(exc: Exception, debug: bool) -> int:
    """Print a user-friendly error and return the process exit code.

    Parameters
    ----------
    exc : Exception
        Exception raised by the pipeline.
    debug : bool
        Whether to include traceback details.

    Returns
    -------
    int
        Process exit code.
    """
    label = typer.style(f"✗ {type(exc).__name__}:", fg=typer.colors.RED, bold=True)
    typer.echo(f"{label} {exc}", err=True)
    if debug:
        typer.echo("\nTraceback:", err=True)
        typer.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int) and code > 0:
        return code
    return 1


def prompt_conflict(path: Path) -> ConflictDecision:
    """Ask the user how to handle an existing output file."""
    typer.echo(f"\n⚠️  File already exists: {path.name}")
    typer.echo("1. Overwrite the existing file")
    typer.echo("2. Save with a different name")
    typer.echo("3. Skip this file")
    typer.echo("4. Cancel all")
    while True:
        choice = typer.prompt("Enter your choice (1-4)", default="", show_default=False).strip()
        if choice == "1":
            return ConflictDecision.overwrite()
        if choice == "2":
            new_name = typer.prompt(
                f"New filename (without extension, e.g. {path.stem}_copy; "
                "empty for next free number)",
                default="",
                show_default=False,
            )
            return ConflictDecision.rename(new_name.strip() or None)
        if choice == "3":
            return ConflictDecision.skip()
        if choice == "4":
            return ConflictDecision.abort()
        typer.echo("Invalid choice. Please enter a number between 1 and 4.")


def _resolve_decider(on_conflict: str) -> ConflictDecider:
    try:
        decider = policy_decider(on_conflict)  # type: ignore[arg-type]
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return decider or prompt_conflict


def _build_config(
    settings: Settings,
    *,
    quality: int | None,
    output_dir: Path | None,
    metadata: bool | None,
    workers: int = DEFAULT_CONCURRENCY,
    skip_invalid: bool = False,
):
    from heic_batch.application.use_cases import build_batch_config

    return build_batch_config(
        quality=quality if quality is not None else settings.quality,
        output_dir=output_dir or settings.output_dir or None,
        preserve_metadata=metadata if metadata is not None else settings.preserve_metadata,
        concurrency=workers,
        skip_invalid=skip_invalid,
    )


def print_summary(result: BatchResult) -> None:
    """Print counts plus one line per skipped or failed file."""
    typer.echo("")
    status = "Cancelled" if result.cancelled else "Finished"
    typer.echo(
        f"{status} in {result.elapsed.total_seconds():.1f}s: "
        f"{len(result.converted)} converted, {len(result.skipped)} skipped, "
        f"{len(result.failed)} failed (of {result.discovered} found)"
    )
    for item in result.converted:
        for warning in item.warnings:
            typer.secho(f"  ! {item.input_path}: {warning}", fg=typer.colors.YELLOW)
    for skipped in result.skipped:
        typer.echo(f"  - skipped {skipped.input_path} ({skipped.reason})")
    for failed in result.failed:
        typer.secho(
            f"  ✗ {failed.input_path} [{failed.error_kind}] {failed.detail}",
            fg=typer.colors.RED,
        )


def _echo_outcome(outcome: Converted | Skipped | Failed) -> int:
    if isinstance(outcome, Converted):
        typer.secho(f"✓ Saved: {outcome.output_path}", fg=typer.colors.GREEN)
        for warning in outcome.warnings:
            typer.secho(f"  ! {warning}", fg=typer.colors.YELLOW)
        return 0
    if isinstance(outcome, Skipped):
        typer.echo(f"- Skipped {outcome.input_path} ({outcome.reason})")
        return 0
    typer.secho(
        f"✗ {outcome.input_path} [{outcome.error_kind}] {outcome.detail}",
        fg=typer.colors.RED,
        err=True,
    )
    return 1


def _run_file(
    input_path: Path,
    settings: Settings,
    *,
    output_dir: Path | None,
    quality: int | None,
    metadata: bool | None,
    decider: ConflictDecider,
) -> int:
    from heic_batch.application.use_cases import convert_file

    config = _build_config(settings, quality=quality, output_dir=output_dir, metadata=metadata)
    outcome = convert_file(input_path, output_dir, config, decider=decider)
    return _echo_outcome(outcome)


def _run_dir(
    input_dir: Path,
    settings: Settings,
    *,
    output_dir: Path | None,
    quality: int | None,
    metadata: bool | None,
    workers: int,
    skip_invalid: bool,
    decider: ConflictDecider,
) -> int:
    from heic_batch.application.use_cases import run_batch
    from heic_batch.cli.progress import RichProgressSink

    config = _build_config(
        settings,
        quality=quality,
        output_dir=output_dir,
        metadata=metadata,
        workers=workers,
        skip_invalid=skip_invalid,
    )

    with RichProgressSink() as sink:
        if decider is prompt_conflict:
            decider = sink.pausing(decider)
        result = run_batch(input_dir, output_dir, config, decider=decider, sink=sink)
    print_summary(result)
    if result.cancelled:
        return ConflictAbort.exit_code
    return 1 if result.failed else 0


# -----------------------------
# Global options
# -----------------------------
@app.callback()
def _main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Show full tracebacks and debug logs."),
) -> None:
    """Initialize shared CLI state.

    Parameters
    ----------
    ctx : typer.Context
        Typer context object used to store shared state.
    debug : bool, default=False
        Whether to enable debug error output.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"debug": debug}


# -----------------------------
# Commands
# -----------------------------
@app.command("file")
def file_cmd(
    ctx: typer.Context,
    input_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Path to a .heic/.heif file.",
    ),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help=OUTPUT_DIR_HELP),
    quality: int | None = typer.Option(None, "--quality", "-q", min=1, max=100, help=QUALITY_HELP),
    metadata: bool | None = typer.Option(None, "--metadata/--no-metadata", help=METADATA_HELP),
    on_conflict: str = typer.Option("ask", "--on-conflict", help=CONFLICT_HELP),
) -> None:
    """Convert a single HEIC/HEIF file to JPEG."""
    debug: bool = bool(ctx.obj.get("debug", False))
    decider = _resolve_decider(on_conflict)
    try:
        code = _run_file(
            input_path,
            _settings_store().load(),
            output_dir=output_dir,
            quality=quality,
            metadata=metadata,
            decider=decider,
        )
    except HeicBatchError as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))
    except Exception as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))
    if code:
        raise typer.Exit(code=code)


@app.command("dir")
def dir_cmd(
    ctx: typer.Context,
    input_dir: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        help="Directory searched recursively for .heic/.heif files.",
    ),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help=OUTPUT_DIR_HELP),
    quality: int | None = typer.Option(None, "--quality", "-q", min=1, max=100, help=QUALITY_HELP),
    metadata: bool | None = typer.Option(None, "--metadata/--no-metadata", help=METADATA_HELP),
    workers: int = typer.Option(
        DEFAULT_CONCURRENCY, "--workers", "-w", min=1, envvar=WORKERS_ENV, help=WORKERS_HELP
    ),
    on_conflict: str = typer.Option("ask", "--on-conflict", help=CONFLICT_HELP),
    skip_invalid: bool = typer.Option(
        False,
        "--skip-invalid",
        help="Report files without a HEIC signature as skipped instead of failed.",
    ),
) -> None:
    """Convert every HEIC/HEIF file under a directory tree."""
    debug: bool = bool(ctx.obj.get("debug", False))
    decider = _resolve_decider(on_conflict)
    try:
        code = _run_dir(
            input_dir,
            _settings_store().load(),
            output_dir=output_dir,
            quality=quality,
            metadata=metadata,
            workers=workers,
            skip_invalid=skip_invalid,
            decider=decider,
        )
    except HeicBatchError as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))
    except Exception as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))
    if code:
        raise typer.Exit(code=code)


def _show_settings(settings: Settings, path: Path) -> None:
    typer.echo(f"Settings file: {path}")
    typer.echo(f"1. Image Quality: {settings.quality}%")
    typer.echo(f"2. Output Directory: {settings.output_dir or '<next to source>'}")
    typer.echo(f"3. Theme: {settings.theme.title()}")
    typer.echo(f"4. Preserve Metadata: {settings.preserve_metadata}")


@settings_app.command("show")
def settings_show_cmd(ctx: typer.Context) -> None:
    """Print the persisted settings."""
    debug: bool = bool(ctx.obj.get("debug", False)) if ctx.obj else False
    store = _settings_store()
    try:
        _show_settings(store.load(), store.path)
    except HeicBatchError as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))


@settings_app.command("set")
def settings_set_cmd(
    ctx: typer.Context,
    quality: int | None = typer.Option(None, "--quality", "-q", help="JPEG quality 1-100."),
    output_dir: str | None = typer.Option(
        None, "--output-dir", "-o", help="Default output directory ('' for next to source)."
    ),
    theme: str | None = typer.Option(None, "--theme", help="light or dark."),
    metadata: bool | None = typer.Option(None, "--metadata/--no-metadata", help=METADATA_HELP),
) -> None:
    """Change one or more persisted settings."""
    debug: bool = bool(ctx.obj.get("debug", False)) if ctx.obj else False
    changes: dict[str, object] = {}
    if quality is not None:
        changes["quality"] = quality
    if output_dir is not None:
        changes["output_dir"] = output_dir
    if theme is not None:
        changes["theme"] = theme
    if metadata is not None:
        changes["preserve_metadata"] = metadata
    if not changes:
        raise typer.BadParameter("Pass at least one setting to change.")
    store = _settings_store()
    try:
        _show_settings(store.update(**changes), store.path)
    except HeicBatchError as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))


@settings_app.command("reset")
def settings_reset_cmd(ctx: typer.Context) -> None:
    """Restore default settings."""
    debug: bool = bool(ctx.obj.get("debug", False)) if ctx.obj else False
    store = _settings_store()
    try:
        _show_settings(store.reset(), store.path)
    except HeicBatchError as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))


def _settings_menu(store) -> None:
    while True:
        settings = store.load()
        typer.echo("")
        _show_settings(settings, store.path)
        typer.echo("5. Reset to Defaults")
        typer.echo("6. Back to Main Menu")
        choice = typer.prompt("Select an option (1-6)", default="", show_default=False).strip()
        try:
            if choice == "1":
                value = typer.prompt("Enter new quality (1-100, 90 recommended)", type=int)
                store.update(quality=value)
            elif choice == "2":
                value = typer.prompt("Enter new output directory ('' for next to source)", default="")
                store.update(output_dir=value)
            elif choice == "3":
                store.update(theme="light" if settings.theme == "dark" else "dark")
            elif choice == "4":
                store.update(preserve_metadata=not settings.preserve_metadata)
            elif choice == "5":
                store.reset()
            elif choice == "6":
                return
            else:
                typer.echo("Invalid option. Please try again.")
        except HeicBatchError as exc:
            _print_conversion_error(exc, debug=False)


@app.command("menu")
def menu_cmd(
    ctx: typer.Context,
    workers: int = typer.Option(
        DEFAULT_CONCURRENCY, "--workers", "-w", min=1, envvar=WORKERS_ENV, help=WORKERS_HELP
    ),
) -> None:
    """Interactive menu: convert a file, convert a directory, settings, exit."""
    debug: bool = bool(ctx.obj.get("debug", False))
    store = _settings_store()
    while True:
        typer.echo("\nHEIC to JPG converter")
        typer.echo("1. Convert a file")
        typer.echo("2. Convert a directory")
        typer.echo("3. Settings")
        typer.echo("4. Exit")
        choice = typer.prompt("Select an option (1-4)", default="", show_default=False).strip()
        if choice == "4":
            typer.echo("Goodbye!")
            return
        if choice == "3":
            _settings_menu(store)
            continue
        if choice not in {"1", "2"}:
            typer.echo("Invalid option. Please try again.")
            continue

        target = Path(typer.prompt("Path").strip().strip('"')).expanduser()
        try:
            settings = store.load()
            if choice == "1":
                if not target.is_file():
                    typer.echo(f"Not a file: {target}")
                    continue
                _run_file(
                    target,
                    settings,
                    output_dir=None,
                    quality=None,
                    metadata=None,
                    decider=prompt_conflict,
                )
            else:
                _run_dir(
                    target,
                    settings,
                    output_dir=None,
                    quality=None,
                    metadata=None,
                    workers=workers,
                    skip_invalid=False,
                    decider=prompt_conflict,
                )
        except HeicBatchError as exc:
            _print_conversion_error(exc, debug)


@app.command("doctor")
def doctor_cmd() -> None:
    """Print installed toolchain versions and HEIF support status."""
    import importlib.metadata as metadata

    modules = ["pillow", "pillow-heif", "pydantic", "rich", "typer"]

    typer.echo(f"Python: {sys.version.split()[0]}")
    for module in modules:
        try:
            version = metadata.version(module)
            typer.echo(f"{module}: {version}")
        except metadata.PackageNotFoundError:
            typer.echo(f"{module}: <not installed>")

    try:
        from heic_batch.adapters.codecs import PillowHeifDecoder

        PillowHeifDecoder()
        typer.echo("heif decoder: available")
    except Exception:
        typer.echo("heif decoder: <unavailable>")


if __name__ == "__main__":
    app()
