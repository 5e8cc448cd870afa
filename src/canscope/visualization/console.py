"""Console-based visualization using Rich."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from canscope.core.frame import Frame
from canscope.decoder.frame_decoder import DecodedMessage
from canscope.errors import MalformedTraceLine
from canscope.trace.reader import Trace


class ConsoleVisualizer:
    """Renders frames, decoded messages and trace metadata to the console."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def print_frame_table(self, frames: Iterable[Frame], title: str = "Trace") -> None:
        """Print frames as a table with per-identifier count and period."""
        table = Table(title=title)

        table.add_column("#", justify="right", style="dim")
        table.add_column("Time (s)", justify="right")
        table.add_column("ID", style="cyan")
        table.add_column("Dir")
        table.add_column("DLC", justify="right")
        table.add_column("Data", style="green")
        table.add_column("Count", justify="right")
        table.add_column("Period", justify="right")

        for i, frame in enumerate(frames, start=1):
            table.add_row(
                str(i),
                f"{frame.timestamp_s:.3f}",
                frame.display_id,
                frame.direction.value,
                str(frame.dlc),
                frame.hex_data(),
                str(frame.count),
                f"{frame.period_ms:.1f}ms" if frame.count > 1 else "-",
            )

        self.console.print(table)

    def print_decoded(self, message: DecodedMessage) -> None:
        """Print a decoded message; failed signals show ``ERR`` in red."""
        parts = []
        for name, result in message.results.items():
            color = "green" if result.ok else "red"
            parts.append(f"{name}=[{color}]{result.render()}[/{color}]")

        self.console.print(
            f"[dim]{message.timestamp_ms / 1000.0:10.3f}[/dim] "
            f"[bold cyan]{message.name}[/bold cyan] "
            f"[dim][0x{message.identifier}][/dim] "
            + " | ".join(parts)
        )

    def print_identifier_table(self, frames: Iterable[Frame]) -> None:
        """Print frame counts per identifier."""
        counts = Counter(frame.identifier for frame in frames)
        table = Table(title="Identifiers")

        table.add_column("ID", style="cyan")
        table.add_column("Count", justify="right")

        for identifier in sorted(counts, key=lambda i: i.value):
            table.add_row(f"0x{identifier}", str(counts[identifier]))

        self.console.print(table)

    def print_trace_info(self, trace: Trace) -> None:
        """Print trace header metadata."""
        if trace.start_time is not None:
            started = datetime.fromtimestamp(trace.start_time, tz=timezone.utc).isoformat()
        else:
            started = "unknown"
        duration = trace.frames[-1].timestamp_s - trace.frames[0].timestamp_s if trace.frames else 0.0

        panel = Panel(
            f"Version: {trace.version or 'unknown'}\n"
            f"Start Time: {started}\n"
            f"Columns: {','.join(trace.columns) or '-'}\n"
            f"Frames: {len(trace)}\n"
            f"Skipped Lines: {trace.skipped}\n"
            f"Duration: {duration:.3f}s",
            title="Trace Info",
        )
        self.console.print(panel)

    def print_diagnostics(self, diagnostics: Iterable[MalformedTraceLine]) -> None:
        """Print skipped trace lines."""
        for diagnostic in diagnostics:
            self.console.print(f"[yellow]SKIPPED[/yellow] line {diagnostic.line_number}: {diagnostic.reason}")
