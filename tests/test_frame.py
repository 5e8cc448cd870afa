"""Tests for the frame record."""

from datetime import timezone

import pytest

from canscope.core.frame import Direction, Frame, payload_bytes
from canscope.core.identifier import CanonicalId, normalize
from canscope.core.timing import OccurrenceTracker
from canscope.errors import InvalidPayload


class TestFrame:
    """Tests for Frame class."""

    def test_create_basic_frame(self) -> None:
        """Test creating a basic frame."""
        frame = Frame(
            identifier=normalize("0x100"),
            data=bytes([0x01, 0x02, 0x03, 0x04]),
        )

        assert frame.identifier == "100"
        assert frame.can_id == 0x100
        assert frame.dlc == 4
        assert frame.direction is Direction.RX
        assert frame.count == 1

    def test_identifier_normalized(self) -> None:
        """Test raw identifiers are converted on construction."""
        assert Frame(identifier="0x18305040").identifier == "18305040"
        assert isinstance(Frame(identifier=0x7FF).identifier, CanonicalId)

    def test_plain_digits_are_decimal(self) -> None:
        """Test a plain digit string is read as decimal."""
        assert Frame(identifier="291").identifier == "123"

    def test_hex_data(self) -> None:
        """Test hex data representation."""
        frame = Frame(identifier="0x100", data=bytes([0xDE, 0xAD, 0xBE, 0xEF]))

        assert frame.hex_data() == "DEADBEEF"
        assert frame.hex_bytes() == ["DE", "AD", "BE", "EF"]

    def test_empty_data(self) -> None:
        """Test frame with empty data."""
        frame = Frame(identifier="0x100")

        assert frame.dlc == 0
        assert frame.hex_data() == ""

    def test_data_from_tokens(self) -> None:
        """Test hex string tokens are accepted as data."""
        frame = Frame(identifier="0x100", data=["01", "ff", "0A"])
        assert frame.data == b"\x01\xff\x0a"

    def test_data_too_long(self) -> None:
        """Test that data longer than 8 bytes raises error."""
        with pytest.raises(ValueError, match="cannot exceed 8 bytes"):
            Frame(identifier="0x100", data=bytes(9))

    def test_dlc_must_match_data(self) -> None:
        """Test dlc and data length agree."""
        assert Frame(identifier="0x100", data=bytes(3), dlc=3).dlc == 3
        with pytest.raises(ValueError, match="does not match"):
            Frame(identifier="0x100", data=bytes(3), dlc=4)
        with pytest.raises(ValueError, match="out of range"):
            Frame(identifier="0x100", dlc=9)

    def test_negative_timestamp(self) -> None:
        """Test relative timestamps cannot be negative."""
        with pytest.raises(ValueError):
            Frame(identifier="0x100", timestamp_ms=-1.0)

    def test_immutable(self) -> None:
        """Test frames cannot be modified."""
        frame = Frame(identifier="0x100")
        with pytest.raises(AttributeError):
            frame.count = 2  # type: ignore[misc]

    def test_times(self) -> None:
        """Test relative and absolute time helpers."""
        frame = Frame(identifier="0x100", timestamp_ms=1250.0, absolute_time=1_700_000_000.5)

        assert frame.timestamp_s == 1.25
        assert frame.captured_at.tzinfo is timezone.utc
        assert frame.captured_at.year == 2023

    def test_display_id(self) -> None:
        """Test 0x-prefixed display form."""
        assert Frame(identifier="0x1fff").display_id == "0x1FFF"

    def test_direction_text(self) -> None:
        """Test direction accepts its text form."""
        frame = Frame(identifier="0x100", direction="tx")  # type: ignore[arg-type]
        assert frame.direction is Direction.TX


class TestDirection:
    """Tests for Direction parsing."""

    def test_parse(self) -> None:
        assert Direction.parse("Rx") is Direction.RX
        assert Direction.parse("TX") is Direction.TX
        assert Direction.parse(Direction.RX) is Direction.RX

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown direction"):
            Direction.parse("Xx")


class TestPayloadBytes:
    """Tests for payload coercion."""

    def test_mixed_inputs(self) -> None:
        assert payload_bytes([1, "ff"]) == b"\x01\xff"
        assert payload_bytes(bytearray(b"\x10")) == b"\x10"

    def test_bad_token(self) -> None:
        with pytest.raises(ValueError):
            payload_bytes(["1FF"])
        with pytest.raises(ValueError):
            payload_bytes(["zz"])

    def test_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            payload_bytes([256])

    def test_sign_prefixed_token(self) -> None:
        with pytest.raises(InvalidPayload) as exc_info:
            payload_bytes(["+1"])
        assert exc_info.value.reason == "bad_byte_token"

    @pytest.mark.parametrize("data", ["FF", None, 7])
    def test_not_a_sequence(self, data: object) -> None:
        """Test a bare string or scalar is not read as a payload."""
        with pytest.raises(InvalidPayload) as exc_info:
            payload_bytes(data)  # type: ignore[arg-type]
        assert exc_info.value.reason == "bad_payload"


class TestOccurrenceTracker:
    """Tests for per-identifier counting."""

    def test_first_sighting_has_zero_period(self) -> None:
        tracker = OccurrenceTracker()
        assert tracker.track(normalize("0x100"), 10.0) == (1, 0.0)

    def test_count_and_period(self) -> None:
        tracker = OccurrenceTracker()
        a, b = normalize("0x100"), normalize("0x200")

        tracker.track(a, 0.0)
        tracker.track(b, 5.0)
        assert tracker.track(a, 100.25) == (2, 100.25)
        assert tracker.track(a, 150.0) == (3, 49.75)
        assert tracker.count(b) == 1
        assert tracker.counts == {a: 3, b: 1}

    def test_reset(self) -> None:
        tracker = OccurrenceTracker()
        tracker.track(normalize("0x100"), 0.0)
        tracker.reset()
        assert tracker.counts == {}
        assert tracker.count(normalize("0x100")) == 0
