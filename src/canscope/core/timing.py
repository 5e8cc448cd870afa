"""Per-identifier occurrence counting."""

from __future__ import annotations

from dataclasses import dataclass, field

from canscope.core.identifier import CanonicalId


@dataclass
class OccurrenceTracker:
    """Running count and inter-arrival period per identifier.

    The period is 0 for the first frame of an identifier.
    """

    _counts: dict[CanonicalId, int] = field(default_factory=dict)
    _last_seen_ms: dict[CanonicalId, float] = field(default_factory=dict)

    def track(self, identifier: CanonicalId, timestamp_ms: float) -> tuple[int, float]:
        last = self._last_seen_ms.get(identifier, timestamp_ms)
        self._last_seen_ms[identifier] = timestamp_ms
        count = self._counts.get(identifier, 0) + 1
        self._counts[identifier] = count
        return count, round(timestamp_ms - last, 3)

    def count(self, identifier: CanonicalId) -> int:
        return self._counts.get(identifier, 0)

    @property
    def counts(self) -> dict[CanonicalId, int]:
        return dict(self._counts)

    def reset(self) -> None:
        self._counts.clear()
        self._last_seen_ms.clear()
