"""Trace file codec."""

from canscope.trace.reader import Trace, parse_trace, read_trace
from canscope.trace.writer import default_trace_filename, render_trace, write_trace

__all__ = [
    "Trace",
    "parse_trace",
    "read_trace",
    "default_trace_filename",
    "render_trace",
    "write_trace",
]
