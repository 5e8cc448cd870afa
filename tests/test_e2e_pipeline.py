from __future__ import annotations

import threading
from pathlib import Path

from canscope.config import SessionConfig
from canscope.database.profiles import default_library
from canscope.database.schema import MessageDescriptor, SignalDescriptor
from canscope.database.store import SignalDescriptorStore
from canscope.decoder.frame_decoder import FrameDecoder
from canscope.session.capture import CaptureSession
from canscope.trace.reader import read_trace
from canscope.trace.writer import write_trace


BRIDGE_FRAMES = [
    # (raw id as sent by the bridge, dlc, byte tokens)
    ("0x18305040", 8, ["03", "E8", "5A", "64", "00", "00", "00", "00"]),
    ("0x10390050", 8, ["10", "27", "9C", "FF", "55", "41", "00", "00"]),
    ("0x0", 8, ["00"] * 8),
    ("0x1827FF81", 8, ["E8", "03", "00", "00", "10", "27", "00", "00"]),
    ("0x18305040", 8, ["FF", "FF", "5A", "64", "00", "00", "00", "00"]),
    ("bogus", 8, ["00"] * 8),
]


class _StepClock:
    def __init__(self, start: float, step: float) -> None:
        self._now = start - step
        self._step = step

    def __call__(self) -> float:
        self._now += self._step
        return self._now


def _capture(frames: list[tuple[str, int, list[str]]]) -> CaptureSession:
    session = CaptureSession(
        config=SessionConfig(buffer_size=100),
        clock=_StepClock(0.0, 0.010),
        wall_clock=_StepClock(1_700_000_000.0, 0.010),
    )
    for raw_id, dlc, data in frames:
        session.ingest(raw_id, dlc, data)
    return session


def test_capture_export_reload_decode(tmp_path: Path) -> None:
    session = _capture(BRIDGE_FRAMES)

    assert session.frame_count == 4
    assert len(session.rejected) == 1

    path = write_trace(tmp_path, session.frames)
    trace = read_trace(path)

    assert [f.identifier for f in trace] == [f.identifier for f in session.frames]
    assert [f.data for f in trace] == [f.data for f in session.frames]
    assert [f.count for f in trace] == [1, 1, 1, 2]

    decoder = FrameDecoder(default_library().store)
    decoded = decoder.decode_batch(trace)

    assert [m.name for m in decoded] == ["MCU_Status", "Battery_Status", "Odometer", "MCU_Status"]
    assert decoded[0].rendered()["Motor Speed"] == "1000.00 rpm"
    assert decoded[3].rendered()["Motor Speed"] == "-1.00 rpm"
    assert decoded[2].rendered() == {"Odometer": "1000.00 Kms", "Trip": "100.00 Kms"}
    assert decoder.unknown_ids == set()


def test_reloaded_session_matches_capture(tmp_path: Path) -> None:
    session = _capture(BRIDGE_FRAMES)
    path = write_trace(tmp_path / "capture.trc", session.frames)

    replay = CaptureSession()
    replay.load(read_trace(path))

    assert replay.export_trace() == session.export_trace()


def test_library_sync_during_decode() -> None:
    # Decoders hold a store; a library sync publishes a new one without
    # disturbing decodes already in flight.
    library = default_library()
    session = _capture(BRIDGE_FRAMES * 20)
    errors: list[str] = []

    def decode_all() -> None:
        decoder = FrameDecoder(library.store)
        for message in decoder.decode_batch(session.frames):
            if message.errors:
                errors.append(message.name)

    workers = [threading.Thread(target=decode_all) for _ in range(4)]
    for w in workers:
        w.start()
    library.sync(
        SignalDescriptorStore(
            {"0x18305040": MessageDescriptor(name="MCU_Status", signals=(SignalDescriptor("Raw", 0, 64),))}
        )
    )
    for w in workers:
        w.join()

    assert errors == []
    assert library.store["0x18305040"].signal_names == ["Raw"]
    assert library.store.get("0x1827FF81") is not None
