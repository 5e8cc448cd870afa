"""CAN identifier normalization.

Identifiers arrive as decimal strings (signal database keys), ``0x`` hex
strings, bare hex strings (trace files) or plain integers. All of them are
folded into one canonical form: uppercase hex, no prefix, no leading zeros.
"""

from __future__ import annotations

import re
from typing import Union

from canscope.errors import InvalidIdentifierFormat

CAN_STD_ID_MAX = 0x7FF          # 11-bit
CAN_EXT_ID_MAX = 0x1FFFFFFF     # 29-bit

_DECIMAL_RE = re.compile(r"^[0-9]+$")
_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")


class CanonicalId(str):
    """An identifier already in canonical form.

    Normalizing a ``CanonicalId`` returns it unchanged, so a canonical
    value made only of digits (``"123"``) is never re-read as decimal.
    """

    __slots__ = ()

    @property
    def value(self) -> int:
        return int(self, 16)

    def __repr__(self) -> str:
        return f"CanonicalId({str.__repr__(self)})"


RawIdentifier = Union[str, int, CanonicalId]


def _from_int(value: int, raw: object) -> CanonicalId:
    if value < 0 or value > CAN_EXT_ID_MAX:
        raise InvalidIdentifierFormat(
            f"Identifier out of range (0-0x{CAN_EXT_ID_MAX:X}): {raw!r}", value=raw
        )
    return CanonicalId(f"{value:X}")


def normalize(raw: RawIdentifier) -> CanonicalId:
    """Return the canonical uppercase hex form of ``raw``.

    ``"291"`` -> ``"123"``, ``"0x123"`` -> ``"123"``, ``"7ff"`` -> ``"7FF"``,
    ``0`` -> ``"0"``. All-digit strings are decimal; use
    :func:`normalize_hex` for columns that are known to hold hex.

    Raises:
        InvalidIdentifierFormat: on empty, ``None``, unrecognized or
            out-of-range input.
    """
    if isinstance(raw, CanonicalId):
        return raw
    if raw is None:
        raise InvalidIdentifierFormat("Identifier is missing", value=raw)
    if isinstance(raw, bool):
        raise InvalidIdentifierFormat(f"Not an identifier: {raw!r}", value=raw)
    if isinstance(raw, int):
        return _from_int(raw, raw)
    if not isinstance(raw, str):
        raise InvalidIdentifierFormat(
            f"Unsupported identifier type: {type(raw).__name__}", value=raw
        )

    text = raw.strip()
    if not text:
        raise InvalidIdentifierFormat("Identifier is empty", value=raw)

    if text[:2].lower() == "0x":
        digits = text[2:]
        if not _HEX_RE.match(digits):
            raise InvalidIdentifierFormat(f"Malformed hex identifier: {raw!r}", value=raw)
        return _from_int(int(digits, 16), raw)

    if _DECIMAL_RE.match(text):
        return _from_int(int(text, 10), raw)

    if _HEX_RE.match(text):
        return _from_int(int(text, 16), raw)

    raise InvalidIdentifierFormat(f"Unrecognized identifier: {raw!r}", value=raw)


def normalize_hex(token: str) -> CanonicalId:
    """Normalize a token that is always hexadecimal, with or without ``0x``."""
    if isinstance(token, CanonicalId):
        return token
    if not isinstance(token, str):
        return normalize(token)
    text = token.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not text or not _HEX_RE.match(text):
        raise InvalidIdentifierFormat(f"Malformed hex identifier: {token!r}", value=token)
    return _from_int(int(text, 16), token)


def normalize_or_empty(raw: RawIdentifier) -> str:
    """Like :func:`normalize` but returns ``""`` for invalid input.

    For display code that hides frames without a usable identifier.
    """
    try:
        return normalize(raw)
    except InvalidIdentifierFormat:
        return ""


def identifier_value(raw: RawIdentifier) -> int:
    """Numeric value of an identifier in any accepted form."""
    return normalize(raw).value


def same_identifier(a: RawIdentifier, b: RawIdentifier) -> bool:
    """True if both inputs name the same message."""
    return normalize(a) == normalize(b)


def display_id(raw: RawIdentifier) -> str:
    """``0x``-prefixed form used in listings, e.g. ``0x18305040``."""
    return f"0x{normalize(raw)}"


def is_extended(raw: RawIdentifier) -> bool:
    """True if the identifier needs the 29-bit extended format."""
    return identifier_value(raw) > CAN_STD_ID_MAX
