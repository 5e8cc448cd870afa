"""Signal decoding."""

from canscope.decoder.bitfield import (
    ERROR_SENTINEL,
    DecodeResult,
    PhysicalValue,
    decode_signal,
    extract_raw,
    render_signal,
)
from canscope.decoder.frame_decoder import DecodedMessage, FrameDecoder, decode_frame

__all__ = [
    "ERROR_SENTINEL",
    "DecodeResult",
    "PhysicalValue",
    "decode_signal",
    "extract_raw",
    "render_signal",
    "DecodedMessage",
    "FrameDecoder",
    "decode_frame",
]
