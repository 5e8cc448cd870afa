"""Command-line interface for canscope."""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from canscope import __version__
from canscope.config import VALID_LOG_LEVELS, Settings, load_settings
from canscope.core.identifier import normalize
from canscope.database.dbc import load_database
from canscope.database.profiles import default_store
from canscope.database.store import SignalDescriptorStore
from canscope.decoder.frame_decoder import FrameDecoder
from canscope.errors import CanScopeError
from canscope.trace.reader import Trace, read_trace
from canscope.trace.writer import write_trace
from canscope.visualization.console import ConsoleVisualizer


console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _load_trace(path: str) -> Trace:
    try:
        return read_trace(path)
    except CanScopeError as e:
        raise click.ClickException(f"{path}: {e}") from e


def _load_store(settings: Settings, database: Optional[str]) -> SignalDescriptorStore:
    path = database or settings.output.database_path
    if path is None:
        return default_store()
    try:
        return load_database(path)
    except (CanScopeError, OSError) as e:
        raise click.ClickException(f"Cannot load database {path}: {e}") from e


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (overrides CANSCOPE_LOG_LEVEL)",
)
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="JSON settings file")
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str], config_path: Optional[str]) -> None:
    """canscope - CAN trace decoding and inspection."""
    try:
        settings = load_settings(config_path)
    except CanScopeError as e:
        raise click.ClickException(str(e)) from e
    if log_level:
        settings.output.log_level = log_level.upper()
    _configure_logging(settings.output.log_level)
    ctx.obj = settings


@main.command("normalize")
@click.argument("identifiers", nargs=-1, required=True)
def normalize_command(identifiers: tuple[str, ...]) -> None:
    """Print the canonical form of each identifier.

    Plain digits are read as decimal; prefix hex values with 0x.
    """
    failed = False
    for raw in identifiers:
        try:
            console.print(f"{raw} -> [cyan]{normalize(raw)}[/cyan]")
        except CanScopeError as e:
            console.print(f"{raw} -> [red]{e}[/red]")
            failed = True
    if failed:
        raise SystemExit(1)


@main.command()
@click.argument("trace_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", "-n", default=None, type=int, help="Show at most this many frames")
def show(trace_file: str, limit: Optional[int]) -> None:
    """Print the frames of a trace file as a table."""
    trace = _load_trace(trace_file)
    visualizer = ConsoleVisualizer(console)

    frames = trace.frames if limit is None else trace.frames[:limit]
    visualizer.print_frame_table(frames, title=Path(trace_file).name)
    visualizer.print_diagnostics(trace.diagnostics)


@main.command()
@click.argument("trace_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--database", "-d", type=click.Path(exists=True, dir_okay=False), help="DBC or JSON signal database")
@click.option("--id", "only_id", default=None, help="Only decode this identifier (0x-prefixed hex or decimal)")
@click.pass_obj
def decode(settings: Settings, trace_file: str, database: Optional[str], only_id: Optional[str]) -> None:
    """Decode the signals of every frame in a trace."""
    store = _load_store(settings, database)
    trace = _load_trace(trace_file)
    visualizer = ConsoleVisualizer(console)

    frames = trace.frames
    if only_id is not None:
        try:
            wanted = normalize(only_id)
        except CanScopeError as e:
            raise click.BadParameter(str(e), param_hint="--id") from e
        frames = tuple(f for f in frames if f.identifier == wanted)

    decoder = FrameDecoder(store)
    decoded = decoder.decode_batch(frames)
    for message in decoded:
        visualizer.print_decoded(message)

    console.print(f"\n[bold]Decoded {len(decoded)} of {len(frames)} frames[/bold]")
    unknown = sorted(decoder.unknown_ids, key=lambda i: i.value)
    if unknown:
        console.print("[yellow]No descriptor for:[/yellow] " + ", ".join(f"0x{i}" for i in unknown))


@main.command()
@click.argument("trace_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path())
def reformat(trace_file: str, output: str) -> None:
    """Parse a trace and write it back in canonical layout.

    OUTPUT may be a directory, in which case a Trace_<start>.trc name is used.
    """
    trace = _load_trace(trace_file)
    path = write_trace(output, trace.frames, trace.capture_start)
    console.print(f"[green]Wrote {len(trace)} frames[/green] to {path}")
    if trace.skipped:
        console.print(f"[yellow]Dropped {trace.skipped} malformed line(s)[/yellow]")


@main.command()
@click.argument("trace_file", type=click.Path(exists=True, dir_okay=False))
def info(trace_file: str) -> None:
    """Print trace metadata and frame counts per identifier."""
    trace = _load_trace(trace_file)
    visualizer = ConsoleVisualizer(console)

    visualizer.print_trace_info(trace)
    visualizer.print_identifier_table(trace.frames)


if __name__ == "__main__":
    main()
