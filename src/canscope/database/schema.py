"""Signal and message descriptor definitions."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from canscope.errors import DescriptorError

PAYLOAD_BITS = 64
MAX_DLC = 8


class ByteOrder(Enum):
    """Bit numbering convention of a signal."""

    LITTLE_ENDIAN = "little_endian"  # Intel
    BIG_ENDIAN = "big_endian"        # Motorola


@dataclass(frozen=True)
class SignalDescriptor:
    """A named bitfield within an 8-byte payload.

    For ``LITTLE_ENDIAN`` signals ``start_bit`` is the LSB position in the
    payload read as a little-endian 64-bit integer. For ``BIG_ENDIAN``
    signals it counts from the MSB of byte 0, so bit 0 is the top bit of
    the first byte and the signal occupies ``start_bit`` to
    ``start_bit + length - 1`` in that numbering.

    ``min_value`` and ``max_value`` are advisory; decoding never clamps.
    """

    name: str
    start_bit: int
    length: int
    byte_order: ByteOrder = ByteOrder.LITTLE_ENDIAN
    is_signed: bool = False
    scale: float = 1.0
    offset: float = 0.0
    unit: str = ""
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise DescriptorError("Signal name must be non-empty")
        if not isinstance(self.byte_order, ByteOrder):
            object.__setattr__(self, "byte_order", ByteOrder(self.byte_order))
        if not (0 <= self.start_bit < PAYLOAD_BITS):
            raise DescriptorError(
                f"{self.name}: start_bit must be 0-{PAYLOAD_BITS - 1}, got {self.start_bit}",
                signal_name=self.name,
            )
        if not (1 <= self.length <= PAYLOAD_BITS):
            raise DescriptorError(
                f"{self.name}: length must be 1-{PAYLOAD_BITS}, got {self.length}",
                signal_name=self.name,
            )
        if self.start_bit + self.length > PAYLOAD_BITS:
            raise DescriptorError(
                f"{self.name}: start_bit + length ({self.start_bit + self.length}) "
                f"exceeds the {PAYLOAD_BITS}-bit payload",
                signal_name=self.name,
            )
        if not (math.isfinite(self.scale) and math.isfinite(self.offset)):
            raise DescriptorError(f"{self.name}: scale and offset must be finite", signal_name=self.name)
        if self.unit is None:
            object.__setattr__(self, "unit", "")

    @property
    def is_little_endian(self) -> bool:
        return self.byte_order is ByteOrder.LITTLE_ENDIAN

    @classmethod
    def from_dict(cls, name: str, d: Mapping[str, Any]) -> SignalDescriptor:
        """Build from the camelCase attribute mapping used in database files."""
        try:
            return cls(
                name=str(d.get("name", name)),
                start_bit=int(d["startBit"]),
                length=int(d["length"]),
                byte_order=(
                    ByteOrder.LITTLE_ENDIAN if d.get("isLittleEndian", True) else ByteOrder.BIG_ENDIAN
                ),
                is_signed=bool(d.get("isSigned", False)),
                scale=float(d.get("scale", 1.0)),
                offset=float(d.get("offset", 0.0)),
                unit=str(d.get("unit") or ""),
                min_value=_optional_float(d.get("min")),
                max_value=_optional_float(d.get("max")),
            )
        except DescriptorError:
            raise
        except KeyError as e:
            raise DescriptorError(f"{name}: missing attribute {e.args[0]!r}", signal_name=name) from e
        except (TypeError, ValueError) as e:
            raise DescriptorError(f"{name}: {e}", signal_name=name) from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "startBit": self.start_bit,
            "length": self.length,
            "isLittleEndian": self.is_little_endian,
            "isSigned": self.is_signed,
            "scale": self.scale,
            "offset": self.offset,
            "min": self.min_value,
            "max": self.max_value,
            "unit": self.unit,
        }


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class MessageDescriptor:
    """A message definition: name, declared DLC and its signals in order."""

    name: str
    dlc: int = MAX_DLC
    signals: tuple[SignalDescriptor, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "signals", tuple(self.signals))
        if not (0 <= self.dlc <= MAX_DLC):
            raise DescriptorError(f"{self.name}: dlc must be 0-{MAX_DLC}, got {self.dlc}", message_name=self.name)
        seen: set[str] = set()
        for signal in self.signals:
            if signal.name in seen:
                raise DescriptorError(
                    f"{self.name}: duplicate signal name {signal.name!r}",
                    message_name=self.name,
                    signal_name=signal.name,
                )
            seen.add(signal.name)

    @property
    def signal_names(self) -> list[str]:
        return [s.name for s in self.signals]

    def get_signal(self, name: str) -> Optional[SignalDescriptor]:
        """Get a signal by name."""
        for signal in self.signals:
            if signal.name == name:
                return signal
        return None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> MessageDescriptor:
        name = str(d.get("name", ""))
        raw_signals = d.get("signals", {})
        if isinstance(raw_signals, Mapping):
            items: Iterable[tuple[str, Mapping[str, Any]]] = raw_signals.items()
        else:
            items = ((str(s.get("name", "")), s) for s in raw_signals)
        try:
            signals = tuple(SignalDescriptor.from_dict(key, attrs) for key, attrs in items)
        except DescriptorError as e:
            e.message_name = name
            raise
        try:
            dlc = int(d.get("dlc", MAX_DLC))
        except (TypeError, ValueError) as e:
            raise DescriptorError(f"{name}: invalid dlc {d.get('dlc')!r}", message_name=name) from e
        return cls(name=name, dlc=dlc, signals=signals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dlc": self.dlc,
            "signals": {s.name: s.to_dict() for s in self.signals},
        }
