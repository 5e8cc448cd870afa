"""Trace file rendering."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union

from canscope.core.frame import Frame

logger = logging.getLogger(__name__)

FILE_VERSION = "2.0"
COLUMNS = ("N", "O", "T", "I", "d", "l", "D")
FRAME_TYPE = "DT"
TRACE_SUFFIX = ".trc"

# Field widths of a data row.
SEQ_WIDTH = 7
TIME_WIDTH = 8
TYPE_WIDTH = 6
ID_WIDTH = 12
DIR_WIDTH = 3
DLC_WIDTH = 2

Timestamp = Union[float, datetime]


def _epoch_seconds(value: Timestamp) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return float(value)


def render_header(capture_start: Timestamp) -> list[str]:
    """Header block lines (without newlines)."""
    return [
        f";$FILEVERSION={FILE_VERSION}",
        f";$STARTTIME={_epoch_seconds(capture_start):.12f}",
        f";$COLUMNS={','.join(COLUMNS)}",
        ";",
    ]


def render_row(sequence: int, frame: Frame) -> str:
    """One fixed-width data row (without newline)."""
    row = (
        f" {sequence:>{SEQ_WIDTH}}"
        f"  {frame.timestamp_s:>{TIME_WIDTH}.3f}"
        f"  {FRAME_TYPE:>{TYPE_WIDTH}}"
        f"  {frame.identifier:>{ID_WIDTH}}"
        f"  {frame.direction.value:>{DIR_WIDTH}}"
        f" {frame.dlc:>{DLC_WIDTH}}"
    )
    if frame.data:
        row += "  " + " ".join(frame.hex_bytes())
    return row


def render_trace(frames: Iterable[Frame], capture_start: Timestamp) -> str:
    """Serialize ``frames`` in input order, numbered from 1.

    Time offsets are written in seconds with three decimals, so sub-
    millisecond precision is dropped. ``capture_start`` is epoch seconds or
    a datetime (naive datetimes are taken as UTC).
    """
    lines = render_header(capture_start)
    lines.extend(render_row(i, frame) for i, frame in enumerate(frames, start=1))
    return "\n".join(lines) + "\n"


def default_trace_filename(capture_start: Timestamp, prefix: str = "Trace") -> str:
    """``Trace_2024-05-01_13-45-10.trc`` style name from the UTC start time."""
    start = datetime.fromtimestamp(_epoch_seconds(capture_start), tz=timezone.utc)
    return f"{prefix}_{start:%Y-%m-%d_%H-%M-%S}{TRACE_SUFFIX}"


def write_trace(
    path: Union[str, Path],
    frames: Iterable[Frame],
    capture_start: Optional[Timestamp] = None,
) -> Path:
    """Write ``frames`` to ``path``.

    If ``path`` is a directory a default file name is used. Without
    ``capture_start`` the first frame's capture instant anchors the trace.

    Raises:
        ValueError: if ``frames`` is empty and no ``capture_start`` is given.
    """
    frames = list(frames)
    if capture_start is None:
        if not frames:
            raise ValueError("capture_start is required for an empty trace")
        capture_start = frames[0].absolute_time - frames[0].timestamp_s

    path = Path(path)
    if path.is_dir():
        path = path / default_trace_filename(capture_start)

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(render_trace(frames, capture_start))
    logger.info("Wrote %d frames to %s", len(frames), path)
    return path
