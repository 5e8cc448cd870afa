"""Exception types raised and returned by canscope."""

from __future__ import annotations

from typing import Any, Optional, Sequence


class CanScopeError(Exception):
    """Base class for all canscope errors."""


class InvalidIdentifierFormat(CanScopeError, ValueError):
    """An identifier is empty, malformed, or outside the 29-bit range.

    Attributes:
        value: The rejected input.
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.value = value


class DescriptorError(CanScopeError, ValueError):
    """A signal or message descriptor is misconfigured.

    Raised when a descriptor is built, never while decoding payloads.
    """

    def __init__(
        self,
        message: str,
        message_name: Optional[str] = None,
        signal_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message_name = message_name
        self.signal_name = signal_name


class SignalDecodeError(CanScopeError):
    """A bitfield could not be extracted from a payload.

    Attributes:
        reason: Short machine-readable code, e.g. ``byte_out_of_range``.
        signal_name: Name of the signal being decoded (if known).
        data: The payload as received.
    """

    def __init__(
        self,
        message: str,
        reason: str,
        signal_name: Optional[str] = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.signal_name = signal_name
        self.data = data


class InvalidPayload(CanScopeError, ValueError):
    """A payload is not a sequence of byte values.

    Attributes:
        reason: Short machine-readable code, e.g. ``bad_byte_token``.
        data: The payload as received.
    """

    def __init__(self, message: str, reason: str, data: Any = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.data = data


class MalformedTraceLine(CanScopeError):
    """A non-comment trace line did not match the row grammar.

    Parsing continues past these; they are collected as diagnostics.
    """

    def __init__(self, line_number: int, line: str, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.line = line
        self.reason = reason


class NoValidRecords(CanScopeError):
    """A trace contained no parseable data line."""

    def __init__(
        self,
        message: str = "No valid trace records found",
        diagnostics: Sequence[MalformedTraceLine] = (),
    ) -> None:
        super().__init__(message)
        self.diagnostics = list(diagnostics)


class ConfigurationError(CanScopeError):
    """Invalid settings value."""

    def __init__(
        self,
        message: str,
        setting_name: Optional[str] = None,
        setting_value: Any = None,
    ) -> None:
        super().__init__(message)
        self.setting_name = setting_name
        self.setting_value = setting_value
