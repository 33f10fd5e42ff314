"""Command-line interface for clip-batch.

Uses Typer for a modern, type-hinted CLI experience.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console

# Load environment variables (CLIP_BATCH_CONFIG) from a local .env file
load_dotenv()
from rich.markup import escape
from rich.table import Table

from clip_batch import __version__
from clip_batch.config import (
    ClipBatchConfig,
    DEFAULT_CONFIG_NAME,
    ScriptDialect,
    ScriptSettings,
    load_config,
    resolve_config_path,
    save_config,
)
from clip_batch.errors import (
    ClipBatchError,
    ErrorContext,
    ResourceError,
    ValidationError,
    format_error_for_display,
)
from clip_batch.logging import LogLevel, enable_file_logging, get_logger, set_verbosity
from clip_batch.models.clip import ErrorClip, ParseOutcome, ReadyClip
from clip_batch.script.generator import ScriptGenerator, compute_window, default_script_name
from clip_batch.table.parser import TableParser
from clip_batch.timecode import to_text

logger = get_logger(__name__)

# Create the main Typer app
app = typer.Typer(
    name="clip-batch",
    help="Turn pasted clip tables into ffmpeg extraction scripts.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"clip-batch version {__version__}")
        raise typer.Exit()


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(format_error_for_display(error))}")
    raise typer.Exit(1)


def _read_input(source: str) -> str:
    """Read table text from a file path, or stdin for ``-``."""
    if source == "-":
        return sys.stdin.read()

    path = Path(source)
    if not path.is_file():
        raise ResourceError(f"Input file not found: {path}", context={"path": str(path)})
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError(
            f"Input file is not UTF-8 text: {path}", context={"path": str(path)}
        ) from e


def _load_config(config_path: Path | None) -> ClipBatchConfig:
    path = resolve_config_path(config_path)
    if path is not None:
        logger.info(f"Using config file {path}")
    return load_config(path)


def _script_settings(
    config: ClipBatchConfig,
    padding: float | None = None,
    dialect: ScriptDialect | None = None,
) -> ScriptSettings:
    """Apply command-line overrides on top of the configured script settings."""
    overrides = {}
    if padding is not None:
        overrides["padding"] = padding
    if dialect is not None:
        overrides["dialect"] = dialect

    try:
        return ScriptSettings.model_validate({**config.script.model_dump(), **overrides})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid script options: {e}", context=overrides) from e


def _print_table_errors(outcome: ParseOutcome) -> None:
    for error in outcome.errors:
        console.print(f"[red]Error:[/red] {escape(error)}")


def _print_row_errors(outcome: ParseOutcome) -> None:
    for clip in outcome.error_clips:
        console.print(
            f"[yellow]Warning:[/yellow] {escape(clip.source_file_name)}: {escape(clip.error_message)}"
        )


def _format_window(clip: ReadyClip, padding: float) -> str:
    window = compute_window(clip, padding)
    end = to_text(window.end) if window.end is not None else "end"
    return f"{to_text(window.start)} - {end}"


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show informational log messages")
    ] = False,
    debug: Annotated[
        bool, typer.Option("--debug", help="Show debug log messages")
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Only log errors")
    ] = False,
    log_file: Annotated[
        Optional[Path], typer.Option("--log-file", help="Also write full logs to this file")
    ] = None,
) -> None:
    """Clip Batch - cut lists to ffmpeg extraction scripts.

    Paste a table of [bold]file[/bold] / [bold]time range[/bold] / [bold]description[/bold]
    rows from a spreadsheet, markdown or plain text, and get back a script
    that cuts every clip with ffmpeg stream copy.
    """
    if debug:
        set_verbosity(LogLevel.DEBUG)
    elif verbose:
        set_verbosity(LogLevel.VERBOSE)
    elif quiet:
        set_verbosity(LogLevel.QUIET)

    if log_file is not None:
        enable_file_logging(log_file)


@app.command()
def parse(
    source: Annotated[str, typer.Argument(help="Table text file, or - for stdin")],
    padding: Annotated[
        Optional[float],
        typer.Option("--padding", "-p", min=0.0, help="Padding used for the window column"),
    ] = None,
    config_path: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Path to a clip-batch JSON config")
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the parse result as JSON")
    ] = False,
) -> None:
    """Show how a clip table is parsed."""
    try:
        config = _load_config(config_path)
        text = _read_input(source)
        settings = _script_settings(config, padding)
    except ClipBatchError as e:
        _fail(e)

    outcome = TableParser(config.parser).parse(text)

    if as_json:
        console.print_json(data=outcome.to_dict())
        if outcome.errors:
            raise typer.Exit(1)
        return

    if outcome.errors:
        _print_table_errors(outcome)
        raise typer.Exit(1)

    if not outcome.clips:
        console.print("[yellow]No clip rows found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", justify="right")
    table.add_column("File", style="cyan")
    table.add_column("Range")
    table.add_column("Window", style="green")
    table.add_column("Description")
    table.add_column("Status")

    for position, clip in enumerate(outcome.clips, start=1):
        if isinstance(clip, ErrorClip):
            window = "-"
            status = f"[red]{escape(clip.error_message)}[/red]"
        else:
            window = _format_window(clip, settings.padding)
            status = "[green]ready[/green]"

        table.add_row(
            str(position),
            escape(clip.source_file_name),
            escape(clip.start_time_str),
            window,
            escape(clip.description),
            status,
        )

    console.print(table)
    console.print(
        f"{len(outcome.ready_clips)} ready, {len(outcome.error_clips)} with errors "
        f"(format: {outcome.strategy.value})"
    )


@app.command()
def generate(
    source: Annotated[str, typer.Argument(help="Table text file, or - for stdin")],
    padding: Annotated[
        Optional[float],
        typer.Option("--padding", "-p", min=0.0, help="Seconds added before and after each clip"),
    ] = None,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Script path (default: run_cuts_<n>_clips.bat)")
    ] = None,
    dialect: Annotated[
        Optional[ScriptDialect], typer.Option("--dialect", "-d", help="Script dialect")
    ] = None,
    config_path: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Path to a clip-batch JSON config")
    ] = None,
    to_stdout: Annotated[
        bool, typer.Option("--stdout", help="Print the script instead of writing a file")
    ] = False,
) -> None:
    """Generate an ffmpeg extraction script from a clip table."""
    try:
        config = _load_config(config_path)
        text = _read_input(source)
        settings = _script_settings(config, padding, dialect)
    except ClipBatchError as e:
        _fail(e)

    outcome = TableParser(config.parser).parse(text)
    if outcome.errors:
        _print_table_errors(outcome)
        raise typer.Exit(1)

    _print_row_errors(outcome)

    if not outcome.ready_clips:
        console.print("[red]Error:[/red] No valid clips to extract.")
        raise typer.Exit(1)

    script = ScriptGenerator(settings).generate(outcome.clips)

    if to_stdout:
        typer.echo(script, nl=False)
        return

    script_path = output or Path(default_script_name(len(outcome.clips), settings.dialect))

    def _remove_partial() -> None:
        script_path.unlink(missing_ok=True)

    try:
        with ErrorContext("write script", cleanup=_remove_partial, context={"path": str(script_path)}):
            script_path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps CRLF endings of batch scripts intact
            with open(script_path, "w", encoding="utf-8", newline="") as f:
                f.write(script)
    except OSError as e:
        _fail(ResourceError(f"Could not write script: {e}", context={"path": str(script_path)}))

    console.print(
        f"[green]Wrote {len(outcome.ready_clips)} clip commands to {script_path}[/green]"
    )


@app.command()
def init_config(
    path: Annotated[
        Path, typer.Argument(help="Where to write the config file")
    ] = Path(DEFAULT_CONFIG_NAME),
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing file")
    ] = False,
) -> None:
    """Write a config file with the default keywords and script settings."""
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {path} already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    save_config(path, ClipBatchConfig())
    console.print(f"[green]Wrote default config to {path}[/green]")


if __name__ == "__main__":
    app()
