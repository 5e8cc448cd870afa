"""Trace file parsing.

A trace is line oriented. Lines starting with ``;`` are header/comments;
``;$KEY=value`` lines carry metadata (``FILEVERSION``, ``STARTTIME`` in
epoch seconds, ``COLUMNS``). Every other non-blank line is a frame row::

     1)     0.125  DT      18305040  Rx  8  01 02 03 04 05 06 07 08

Columns are whitespace separated; exact offsets do not matter. The DLC is
authoritative: extra byte tokens are ignored, missing ones make the row
malformed.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union

from canscope.core.frame import CAN_CLASSIC_MAX_DLC, Direction, Frame
from canscope.core.identifier import normalize_hex
from canscope.core.timing import OccurrenceTracker
from canscope.errors import InvalidIdentifierFormat, MalformedTraceLine, NoValidRecords

logger = logging.getLogger(__name__)

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_ROW_RE = re.compile(
    r"^\s*(?P<seq>\d+)\)?"
    r"\s+(?P<time>\d+(?:\.\d*)?)"
    r"\s+(?P<type>[A-Z]{2})"
    r"\s+(?P<id>(?:0x)?[0-9A-F]+)"
    r"\s+(?P<dir>Rx|Tx)"
    r"\s+(?P<dlc>\d+)"
    r"(?:\s+(?P<data>.*))?$",
    re.IGNORECASE,
)
_BYTE_RE = re.compile(r"^[0-9A-F]{2}$", re.IGNORECASE)


@dataclass(frozen=True)
class Trace:
    """Result of parsing a trace: frames plus header metadata and diagnostics."""

    frames: tuple[Frame, ...]
    start_time: Optional[float] = None
    version: Optional[str] = None
    columns: tuple[str, ...] = ()
    diagnostics: tuple[MalformedTraceLine, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    @property
    def capture_start(self) -> float:
        """Header start time, or the anchor the frame times were placed on."""
        if self.start_time is not None:
            return self.start_time
        if self.frames:
            return self.frames[0].absolute_time - self.frames[0].timestamp_s
        return 0.0

    @property
    def skipped(self) -> int:
        return len(self.diagnostics)


@dataclass
class _Header:
    start_time: Optional[float] = None
    version: Optional[str] = None
    columns: tuple[str, ...] = ()

    def consume(self, line_number: int, line: str) -> None:
        body = line.lstrip()[1:].strip()
        if not body.startswith("$") or "=" not in body:
            return
        key, _, value = body[1:].partition("=")
        key = key.strip().upper()
        value = value.strip()
        if key == "FILEVERSION":
            self.version = value
        elif key == "STARTTIME":
            try:
                self.start_time = float(value)
            except ValueError:
                logger.warning("line %d: ignoring unreadable STARTTIME %r", line_number, value)
        elif key == "COLUMNS":
            self.columns = tuple(c.strip() for c in value.split(",") if c.strip())


def _parse_row(line_number: int, line: str) -> tuple[float, str, Direction, bytes]:
    match = _ROW_RE.match(line)
    if match is None:
        raise MalformedTraceLine(line_number, line, "does not match the row grammar")

    dlc = int(match.group("dlc"))
    if dlc > CAN_CLASSIC_MAX_DLC:
        raise MalformedTraceLine(line_number, line, f"data length {dlc} exceeds {CAN_CLASSIC_MAX_DLC}")

    tokens = (match.group("data") or "").split()[:dlc]
    if len(tokens) < dlc:
        raise MalformedTraceLine(line_number, line, f"expected {dlc} data bytes, found {len(tokens)}")
    for token in tokens:
        if not _BYTE_RE.match(token):
            raise MalformedTraceLine(line_number, line, f"invalid data byte {token!r}")

    try:
        identifier = normalize_hex(match.group("id"))
    except InvalidIdentifierFormat as e:
        raise MalformedTraceLine(line_number, line, str(e)) from e

    seconds = float(match.group("time"))
    return seconds, identifier, Direction.parse(match.group("dir")), bytes(int(t, 16) for t in tokens)


def parse_trace(text: str, *, now: Optional[float] = None) -> Trace:
    """Parse trace text into frames.

    Relative timestamps are the row time in milliseconds. Absolute times
    are anchored on the header ``STARTTIME``, or on ``now`` (default: the
    current wall-clock time) when the header has none.

    Raises:
        NoValidRecords: if no row parses. Malformed rows alone do not raise;
            they are returned in :attr:`Trace.diagnostics`.
    """
    header = _Header()
    rows: list[tuple[float, str, Direction, bytes]] = []
    diagnostics: list[MalformedTraceLine] = []

    if text.startswith("\ufeff"):
        text = text[1:]

    for line_number, line in enumerate(_LINE_SPLIT_RE.split(text), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(";"):
            header.consume(line_number, line)
            continue
        try:
            rows.append(_parse_row(line_number, line))
        except MalformedTraceLine as e:
            logger.warning("Skipping trace %s", e)
            diagnostics.append(e)

    if diagnostics:
        logger.info("Skipped %d malformed trace line(s)", len(diagnostics))
    if not rows:
        raise NoValidRecords(diagnostics=diagnostics)

    anchor = header.start_time if header.start_time is not None else (time.time() if now is None else now)
    tracker = OccurrenceTracker()
    frames = []
    for seconds, identifier, direction, data in rows:
        timestamp_ms = seconds * 1000.0
        count, period = tracker.track(identifier, timestamp_ms)
        frames.append(
            Frame(
                identifier=identifier,
                data=data,
                timestamp_ms=timestamp_ms,
                absolute_time=anchor + seconds,
                direction=direction,
                count=count,
                period_ms=period,
            )
        )

    logger.debug("Parsed %d trace frames (version %s)", len(frames), header.version)
    return Trace(
        frames=tuple(frames),
        start_time=header.start_time,
        version=header.version,
        columns=header.columns,
        diagnostics=tuple(diagnostics),
    )


def read_trace(path: Union[str, Path], *, now: Optional[float] = None) -> Trace:
    """Read and parse a ``.trc`` file."""
    path = Path(path)
    with open(path, encoding="utf-8", errors="replace", newline="") as f:
        text = f.read()
    logger.info("Reading trace %s", path)
    return parse_trace(text, now=now)
