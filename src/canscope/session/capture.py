"""Live capture session: turns raw bridge triples into frames."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from canscope.config import SessionConfig
from canscope.core.frame import CAN_CLASSIC_MAX_DLC, Direction, Frame, payload_bytes
from canscope.core.identifier import CanonicalId, RawIdentifier, normalize
from canscope.core.timing import OccurrenceTracker
from canscope.errors import InvalidIdentifierFormat
from canscope.trace.reader import Trace
from canscope.trace.writer import render_trace

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class RejectedInput:
    """A raw triple that could not become a frame."""

    raw_id: object
    dlc: object
    data: object
    reason: str


class CaptureSession:
    """Assigns session timing to frames arriving from a live source.

    Each accepted frame gets a relative timestamp (ms since the first frame
    of the session), the wall-clock capture time, a running per-identifier
    count and the period since the previous frame of that identifier. The
    frame buffer is bounded; the oldest frame is evicted first.

    A malformed input is recorded in :attr:`rejected` and never raises, so
    one bad frame does not stop the stream. Only the most recent rejections
    are kept, up to the buffer size.

    Frames loaded from a trace stay in place until the next live frame
    arrives, which starts a new session.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        clock: Clock = time.monotonic,
        wall_clock: Clock = time.time,
    ) -> None:
        self._config = config or SessionConfig()
        self._clock = clock
        self._wall_clock = wall_clock
        self._frames: deque[Frame] = deque(maxlen=self._config.buffer_size)
        self._latest: dict[CanonicalId, Frame] = {}
        self._tracker = OccurrenceTracker()
        self._rejected: deque[RejectedInput] = deque(maxlen=self._config.buffer_size)
        self._session_start: Optional[float] = None
        self._loaded = False
        self._paused = False
        self._total = 0
        self._lock = threading.Lock()

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def frames(self) -> tuple[Frame, ...]:
        """Snapshot of the buffered frames, oldest first."""
        with self._lock:
            return tuple(self._frames)

    @property
    def frame_count(self) -> int:
        """Frames accepted since the session started (including evicted ones)."""
        return self._total

    @property
    def rejected(self) -> list[RejectedInput]:
        return list(self._rejected)

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def unique_ids(self) -> set[CanonicalId]:
        return set(self._tracker.counts)

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def _reject(self, raw_id: object, dlc: object, data: object, reason: str) -> None:
        logger.warning("Rejected frame id=%r dlc=%r: %s", raw_id, dlc, reason)
        self._rejected.append(RejectedInput(raw_id, dlc, data, reason))

    def ingest(
        self,
        raw_id: RawIdentifier,
        dlc: int,
        data: Union[bytes, Iterable[Union[int, str]]],
        direction: Direction = Direction.RX,
    ) -> Optional[Frame]:
        """Accept one observed frame.

        ``raw_id`` may be any form accepted by :func:`normalize`; note that
        an all-digit string is read as decimal, so bridges should prefix
        hex identifiers with ``0x``. ``data`` is bytes, ints or two-digit
        hex strings and is cut to ``dlc`` bytes.

        Returns the new frame, or ``None`` if the session is paused, the
        identifier is zero and suppressed, or the input is malformed.
        """
        if self._paused:
            return None

        try:
            identifier = normalize(raw_id)
        except InvalidIdentifierFormat as e:
            self._reject(raw_id, dlc, data, str(e))
            return None
        if identifier.value == 0 and self._config.suppress_zero_ids:
            return None

        try:
            length = int(dlc)
            payload = payload_bytes(data)
        except (TypeError, ValueError) as e:
            self._reject(raw_id, dlc, data, f"bad payload: {e}")
            return None
        if not (0 <= length <= CAN_CLASSIC_MAX_DLC) or len(payload) < length:
            self._reject(raw_id, dlc, data, f"dlc {dlc!r} does not fit {len(payload)} data bytes")
            return None
        payload = payload[:length]

        now = self._clock()
        with self._lock:
            if self._session_start is None:
                if self._loaded:
                    self._frames.clear()
                    self._latest.clear()
                    self._tracker.reset()
                    self._total = 0
                    self._loaded = False
                self._session_start = now
            timestamp_ms = (now - self._session_start) * 1000.0
            count, period = self._tracker.track(identifier, timestamp_ms)
            frame = Frame(
                identifier=identifier,
                data=payload,
                dlc=length,
                timestamp_ms=timestamp_ms,
                absolute_time=self._wall_clock(),
                direction=direction,
                count=count,
                period_ms=period,
            )
            self._frames.append(frame)
            self._latest[identifier] = frame
            self._total += 1
        return frame

    def latest_frames(self) -> dict[CanonicalId, Frame]:
        """Most recent frame per identifier."""
        with self._lock:
            return dict(self._latest)

    def latest(self, identifier: RawIdentifier) -> Optional[Frame]:
        try:
            return self._latest.get(normalize(identifier))
        except InvalidIdentifierFormat:
            return None

    def clear(self) -> None:
        """Start a new session: drop frames, counters and timing origin."""
        with self._lock:
            self._frames.clear()
            self._latest.clear()
            self._tracker.reset()
            self._rejected.clear()
            self._session_start = None
            self._loaded = False
            self._total = 0

    def load(self, trace: Trace) -> None:
        """Replace the session contents with a parsed trace.

        The next live frame discards the loaded frames and starts timing
        from zero.
        """
        with self._lock:
            self._frames = deque(trace.frames, maxlen=self._config.buffer_size)
            self._latest = {frame.identifier: frame for frame in trace.frames}
            self._tracker.reset()
            for frame in trace.frames:
                self._tracker.track(frame.identifier, frame.timestamp_ms)
            self._rejected.clear()
            self._session_start = None
            self._loaded = True
            self._total = len(trace.frames)
        logger.info("Session loaded %d frames from trace", len(trace.frames))

    @property
    def capture_start(self) -> Optional[float]:
        """Wall-clock time of the first buffered frame's session origin."""
        frames = self.frames
        if not frames:
            return None
        return frames[0].absolute_time - frames[0].timestamp_s

    def export_trace(self) -> str:
        """Render the buffered frames as trace text.

        Raises:
            ValueError: if there are no frames to export.
        """
        frames = self.frames
        if not frames:
            raise ValueError("No frames to export")
        return render_trace(frames, frames[0].absolute_time - frames[0].timestamp_s)

    def summary(self) -> dict[str, object]:
        frames = self.frames
        return {
            "total_frames": self._total,
            "buffered_frames": len(frames),
            "unique_ids": len(self._tracker.counts),
            "rejected": len(self._rejected),
            "duration_ms": frames[-1].timestamp_ms - frames[0].timestamp_ms if frames else 0.0,
        }

