"""CAN frame representation."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Union

from canscope.core.identifier import CanonicalId, display_id, normalize
from canscope.errors import InvalidPayload

CAN_CLASSIC_MAX_DLC = 8


class Direction(Enum):
    """Frame direction as seen by the capture tool."""

    RX = "Rx"
    TX = "Tx"

    @classmethod
    def parse(cls, token: Union[str, "Direction"]) -> "Direction":
        """Case-insensitive lookup of ``Rx``/``Tx``."""
        if isinstance(token, Direction):
            return token
        lowered = token.strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        raise ValueError(f"Unknown direction: {token!r}")


def payload_bytes(data: Union[bytes, bytearray, Iterable[Union[int, str]]]) -> bytes:
    """Coerce bytes, ints or one/two-hex-digit strings into ``bytes``.

    A bare string is not a payload; pass a list of tokens instead.

    Raises:
        InvalidPayload: with reason ``bad_payload``, ``bad_byte_token`` or
            ``byte_out_of_range``.
    """
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        raise InvalidPayload(
            f"Payload must be a sequence of bytes, not a string: {data!r}", reason="bad_payload", data=data
        )
    try:
        items = iter(data)
    except TypeError:
        raise InvalidPayload(f"Payload is not a byte sequence: {data!r}", reason="bad_payload", data=data) from None

    out = bytearray()
    for item in items:
        if isinstance(item, str):
            token = item.strip()
            if not (1 <= len(token) <= 2 and all(c in string.hexdigits for c in token)):
                raise InvalidPayload(f"Invalid byte token {item!r}", reason="bad_byte_token", data=data)
            item = int(token, 16)
        if isinstance(item, bool) or not isinstance(item, int) or not 0 <= item <= 0xFF:
            raise InvalidPayload(f"Payload byte out of range: {item!r}", reason="byte_out_of_range", data=data)
        out.append(item)
    return bytes(out)


@dataclass(frozen=True)
class Frame:
    """A single captured CAN frame.

    Attributes:
        identifier: Canonical hex identifier. Any form accepted by
            :func:`normalize` is converted on construction, so pass
            ``"0x123"`` or a ``CanonicalId`` for hex values.
        data: Payload bytes; length equals ``dlc``.
        timestamp_ms: Milliseconds since the first frame of the session.
        absolute_time: Wall-clock capture instant, seconds since the epoch.
        direction: Received or transmitted.
        count: Running occurrence count of this identifier in the session.
        period_ms: Milliseconds since the previous frame with this identifier.
    """

    identifier: CanonicalId
    data: bytes = field(default_factory=bytes)
    timestamp_ms: float = 0.0
    absolute_time: float = 0.0
    direction: Direction = Direction.RX
    count: int = 1
    period_ms: float = 0.0
    dlc: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifier", normalize(self.identifier))
        object.__setattr__(self, "data", payload_bytes(self.data))
        object.__setattr__(self, "direction", Direction.parse(self.direction))

        if len(self.data) > CAN_CLASSIC_MAX_DLC:
            raise ValueError(
                f"CAN frame data cannot exceed {CAN_CLASSIC_MAX_DLC} bytes, got {len(self.data)}"
            )
        if self.dlc is None:
            object.__setattr__(self, "dlc", len(self.data))
        elif not (0 <= self.dlc <= CAN_CLASSIC_MAX_DLC):
            raise ValueError(f"dlc out of range for Classic CAN: {self.dlc}")
        elif self.dlc != len(self.data):
            raise ValueError(f"dlc ({self.dlc}) does not match data length ({len(self.data)})")

        if self.timestamp_ms < 0:
            raise ValueError("timestamp_ms must be non-negative")

    @property
    def can_id(self) -> int:
        return self.identifier.value

    @property
    def display_id(self) -> str:
        return display_id(self.identifier)

    @property
    def timestamp_s(self) -> float:
        return self.timestamp_ms / 1000.0

    @property
    def captured_at(self) -> datetime:
        """Absolute capture time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.absolute_time, tz=timezone.utc)

    def hex_bytes(self) -> list[str]:
        """Payload as two-digit uppercase hex tokens."""
        return [f"{b:02X}" for b in self.data]

    def hex_data(self) -> str:
        return self.data.hex().upper()

    def __repr__(self) -> str:
        return (
            f"Frame(id={self.display_id}, data={self.hex_data()}, dlc={self.dlc}, "
            f"t={self.timestamp_ms:.3f}ms, {self.direction.value})"
        )
