"""canscope - CAN identifier normalization, signal decoding and trace files."""

__version__ = "0.1.0"

from canscope.core import CanonicalId, Direction, Frame, normalize, normalize_hex, normalize_or_empty
from canscope.database import DescriptorLibrary, MessageDescriptor, SignalDescriptor, SignalDescriptorStore
from canscope.decoder import DecodeResult, FrameDecoder, decode_frame, decode_signal
from canscope.errors import CanScopeError
from canscope.session import CaptureSession
from canscope.trace import Trace, parse_trace, read_trace, render_trace, write_trace

__all__ = [
    "__version__",
    "CanonicalId",
    "Direction",
    "Frame",
    "normalize",
    "normalize_hex",
    "normalize_or_empty",
    "DescriptorLibrary",
    "MessageDescriptor",
    "SignalDescriptor",
    "SignalDescriptorStore",
    "DecodeResult",
    "FrameDecoder",
    "decode_frame",
    "decode_signal",
    "CanScopeError",
    "CaptureSession",
    "Trace",
    "parse_trace",
    "read_trace",
    "render_trace",
    "write_trace",
]
