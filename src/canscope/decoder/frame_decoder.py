"""Decoding whole frames against a descriptor store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from canscope.core.frame import Frame
from canscope.core.identifier import CanonicalId
from canscope.database.store import SignalDescriptorStore
from canscope.decoder.bitfield import DecodeResult, decode_signal


@dataclass
class DecodedMessage:
    """Every signal of one frame, decoded."""

    identifier: CanonicalId
    name: str
    timestamp_ms: float
    results: dict[str, DecodeResult] = field(default_factory=dict)
    raw_data: bytes = field(default_factory=bytes)

    def get(self, signal_name: str) -> Optional[DecodeResult]:
        """Get a signal result by name."""
        return self.results.get(signal_name)

    @property
    def values(self) -> dict[str, float]:
        """Physical values of the signals that decoded cleanly."""
        return {name: r.value.value for name, r in self.results.items() if r.value is not None}

    @property
    def errors(self) -> dict[str, DecodeResult]:
        return {name: r for name, r in self.results.items() if not r.ok}

    def rendered(self) -> dict[str, str]:
        """Display text per signal, ``ERR`` for failures."""
        return {name: r.render() for name, r in self.results.items()}

    def __repr__(self) -> str:
        sig_str = ", ".join(f"{name}={text}" for name, text in self.rendered().items())
        return f"{self.name}[0x{self.identifier}]: {sig_str}"


def decode_frame(frame: Frame, store: SignalDescriptorStore) -> Optional[DecodedMessage]:
    """Decode all signals of ``frame``; ``None`` if the store has no descriptor."""
    message = store.get(frame.identifier)
    if message is None:
        return None
    return DecodedMessage(
        identifier=frame.identifier,
        name=message.name,
        timestamp_ms=frame.timestamp_ms,
        results={signal.name: decode_signal(frame.data, signal) for signal in message.signals},
        raw_data=frame.data,
    )


class FrameDecoder:
    """Turns frames into decoded messages using an explicit store.

    Identifiers seen without a descriptor are remembered in
    :attr:`unknown_ids`.
    """

    def __init__(self, store: SignalDescriptorStore) -> None:
        self._store = store
        self._unknown_ids: set[CanonicalId] = set()

    @property
    def store(self) -> SignalDescriptorStore:
        return self._store

    @property
    def unknown_ids(self) -> set[CanonicalId]:
        """Identifiers seen without a descriptor."""
        return self._unknown_ids.copy()

    def use_store(self, store: SignalDescriptorStore) -> None:
        """Switch to another store, e.g. after a library reload."""
        self._store = store
        self._unknown_ids.clear()

    def decode(self, frame: Frame) -> Optional[DecodedMessage]:
        decoded = decode_frame(frame, self._store)
        if decoded is None:
            self._unknown_ids.add(frame.identifier)
        return decoded

    def decode_batch(self, frames: Iterable[Frame]) -> list[DecodedMessage]:
        """Decode multiple frames, skipping unknown IDs."""
        results = []
        for frame in frames:
            decoded = self.decode(frame)
            if decoded is not None:
                results.append(decoded)
        return results

    def clear_unknown(self) -> None:
        self._unknown_ids.clear()
