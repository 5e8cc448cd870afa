"""Loading descriptor stores from JSON databases and DBC files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

import cantools

from canscope.core.identifier import normalize
from canscope.database.schema import ByteOrder, MessageDescriptor, SignalDescriptor
from canscope.database.store import SignalDescriptorStore
from canscope.errors import DescriptorError

logger = logging.getLogger(__name__)


def motorola_start_bit(dbc_start: int) -> int:
    """Convert a DBC Motorola start bit to MSB-first payload numbering.

    DBC files give the position of a big-endian signal's most significant
    bit in per-byte LSB-first numbering (bit 7 is the top bit of byte 0).
    The decoder counts from the top bit of byte 0 instead.
    """
    return (dbc_start // 8) * 8 + (7 - dbc_start % 8)


def _signal_from_cantools(signal: Any) -> SignalDescriptor:
    big_endian = signal.byte_order == "big_endian"
    start = motorola_start_bit(signal.start) if big_endian else signal.start
    return SignalDescriptor(
        name=signal.name,
        start_bit=start,
        length=signal.length,
        byte_order=ByteOrder.BIG_ENDIAN if big_endian else ByteOrder.LITTLE_ENDIAN,
        is_signed=bool(signal.is_signed),
        scale=float(signal.scale),
        offset=float(signal.offset),
        unit=signal.unit or "",
        min_value=signal.minimum,
        max_value=signal.maximum,
    )


def store_from_cantools(db: Any) -> SignalDescriptorStore:
    """Convert a loaded ``cantools`` database into a store.

    Messages longer than 8 bytes (CAN FD) are skipped with a warning.
    """
    messages = {}
    for message in db.messages:
        if message.length > 8:
            logger.warning("Skipping %s (0x%X): %d-byte payload", message.name, message.frame_id, message.length)
            continue
        signals = tuple(_signal_from_cantools(s) for s in message.signals)
        messages[normalize(message.frame_id)] = MessageDescriptor(
            name=message.name,
            dlc=message.length,
            signals=signals,
        )
    return SignalDescriptorStore(messages)


def load_dbc(path: Union[str, Path]) -> SignalDescriptorStore:
    """Load a ``.dbc`` file through cantools."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"DBC file not found: {path}")
    logger.info("Loading DBC file: %s", path)
    try:
        db = cantools.database.load_file(str(path), database_format="dbc")
    except (cantools.database.UnsupportedDatabaseFormatError, ValueError) as e:
        raise DescriptorError(f"Failed to parse DBC file {path}: {e}") from e
    store = store_from_cantools(db)
    logger.info("DBC loaded: %d messages", len(store))
    return store


def load_json(path: Union[str, Path]) -> SignalDescriptorStore:
    """Load a JSON database in the serialized store shape."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DescriptorError(f"Invalid JSON database {path}: {e}") from e
    if not isinstance(data, dict):
        raise DescriptorError(f"{path}: top level must be an object keyed by identifier")
    store = SignalDescriptorStore.from_mapping(data)
    logger.info("JSON database loaded from %s: %d messages", path, len(store))
    return store


def save_json(store: SignalDescriptorStore, path: Union[str, Path]) -> None:
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(store.to_mapping(), f, indent=2)


def load_database(path: Union[str, Path]) -> SignalDescriptorStore:
    """Load a store from ``.dbc`` or ``.json`` based on the file suffix."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".dbc":
        return load_dbc(path)
    if suffix == ".json":
        return load_json(path)
    raise DescriptorError(f"Unsupported database format: {path.suffix or path.name}")
