"""Bitfield extraction and physical scaling.

The payload is read as one 64-bit integer, zero-padded up to 8 bytes:
little-endian signals index from the LSB of byte 0, big-endian signals from
the MSB of byte 0. Decoding is pure and never raises into the caller;
failures come back as a :class:`DecodeResult` holding a
:class:`SignalDecodeError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from canscope.core.frame import payload_bytes
from canscope.database.schema import PAYLOAD_BITS, SignalDescriptor
from canscope.errors import InvalidPayload, SignalDecodeError

PAYLOAD_BYTES = PAYLOAD_BITS // 8
ERROR_SENTINEL = "ERR"

Payload = Union[bytes, bytearray, Iterable[Union[int, str]]]


def _coerce_payload(payload: Payload, signal_name: Optional[str] = None) -> bytes:
    try:
        data = payload_bytes(payload)
    except InvalidPayload as e:
        raise SignalDecodeError(str(e), reason=e.reason, signal_name=signal_name, data=payload) from e

    if len(data) > PAYLOAD_BYTES:
        raise SignalDecodeError(
            f"Payload has {len(data)} bytes, at most {PAYLOAD_BYTES} allowed",
            reason="payload_too_long",
            signal_name=signal_name,
            data=payload,
        )
    return data


def extract_raw(payload: Payload, signal: SignalDescriptor) -> int:
    """Extract the signal's raw integer, sign-extended if the signal is signed.

    Raises:
        SignalDecodeError: if the payload is invalid or the signal does not
            fit in 64 bits.
    """
    data = _coerce_payload(payload, signal.name)

    start, length = signal.start_bit, signal.length
    if start < 0 or length < 1 or start + length > PAYLOAD_BITS:
        raise SignalDecodeError(
            f"{signal.name}: bits {start}..{start + length - 1} fall outside the payload",
            reason="signal_out_of_bounds",
            signal_name=signal.name,
            data=payload,
        )

    padded = data.ljust(PAYLOAD_BYTES, b"\x00")
    mask = (1 << length) - 1
    if signal.is_little_endian:
        whole = int.from_bytes(padded, byteorder="little")
        raw = (whole >> start) & mask
    else:
        whole = int.from_bytes(padded, byteorder="big")
        raw = (whole >> (PAYLOAD_BITS - (start + length))) & mask

    if signal.is_signed and raw & (1 << (length - 1)):
        raw -= 1 << length
    return raw


def format_physical(value: float, unit: str = "") -> str:
    """Two-decimal display text, e.g. ``10.00 Kms`` or ``-1.00``."""
    text = f"{value:.2f}"
    return f"{text} {unit}" if unit else text


@dataclass(frozen=True)
class PhysicalValue:
    """A decoded signal value."""

    name: str
    raw: int
    value: float
    unit: str = ""

    def render(self) -> str:
        return format_physical(self.value, self.unit)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one signal: either ``value`` or ``error`` is set."""

    signal: SignalDescriptor
    value: Optional[PhysicalValue] = None
    error: Optional[SignalDecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PhysicalValue:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        if self.value is None:
            raise SignalDecodeError("No value was decoded", reason="no_value", signal_name=self.signal.name)
        return self.value

    def render(self, sentinel: str = ERROR_SENTINEL) -> str:
        """Display text, or ``sentinel`` on failure."""
        if self.value is None:
            return sentinel
        return self.value.render()


def decode_signal(payload: Payload, signal: SignalDescriptor) -> DecodeResult:
    """Decode ``signal`` from ``payload`` into a physical value.

    ``raw * scale + offset``, without clamping to the advisory min/max.
    """
    try:
        raw = extract_raw(payload, signal)
        physical = raw * signal.scale + signal.offset
    except SignalDecodeError as e:
        return DecodeResult(signal=signal, error=e)
    except OverflowError as e:
        return DecodeResult(
            signal=signal,
            error=SignalDecodeError(str(e), reason="overflow", signal_name=signal.name, data=payload),
        )
    return DecodeResult(
        signal=signal,
        value=PhysicalValue(name=signal.name, raw=raw, value=physical, unit=signal.unit),
    )


def render_signal(payload: Payload, signal: SignalDescriptor) -> str:
    """Display text for one signal, ``ERR`` when it cannot be decoded."""
    return decode_signal(payload, signal).render()
