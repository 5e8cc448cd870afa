"""Configuration for canscope.

Settings come from, in increasing precedence:
    1. Defaults
    2. An optional JSON file (``{"session": {...}, "output": {...}}``)
    3. ``CANSCOPE_*`` environment variables

Environment variables:
    CANSCOPE_BUFFER_SIZE        -> session.buffer_size
    CANSCOPE_SUPPRESS_ZERO_IDS  -> session.suppress_zero_ids
    CANSCOPE_LOG_LEVEL          -> output.log_level
    CANSCOPE_DATABASE           -> output.database_path
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from canscope.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 5000
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class SessionConfig:
    """Capture session settings.

    Attributes:
        buffer_size: Frames kept in memory; the oldest is evicted beyond this.
        suppress_zero_ids: Drop frames whose identifier is zero.
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    suppress_zero_ids: bool = True

    def validate(self) -> list[str]:
        errors = []
        if not isinstance(self.buffer_size, int) or self.buffer_size < 1:
            errors.append("buffer_size must be a positive integer")
        return errors


@dataclass
class OutputConfig:
    """Logging and database location."""

    log_level: str = "WARNING"
    database_path: Optional[str] = None

    def validate(self) -> list[str]:
        errors = []
        if str(self.log_level).upper() not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")
        return errors


@dataclass
class Settings:
    session: SessionConfig = field(default_factory=SessionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> list[str]:
        return self.session.validate() + self.output.validate()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}", setting_name=name, setting_value=value)


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {value!r}", setting_name=name, setting_value=value
        ) from None


def _apply_file(settings: Settings, data: Mapping[str, Any]) -> None:
    for section_name in ("session", "output"):
        section = getattr(settings, section_name)
        for key, value in dict(data.get(section_name, {})).items():
            if not hasattr(section, key):
                logger.warning("Ignoring unknown setting %s.%s", section_name, key)
                continue
            setattr(section, key, value)


def _apply_env(settings: Settings, env: Mapping[str, str]) -> None:
    if "CANSCOPE_BUFFER_SIZE" in env:
        settings.session.buffer_size = _parse_int("CANSCOPE_BUFFER_SIZE", env["CANSCOPE_BUFFER_SIZE"])
    if "CANSCOPE_SUPPRESS_ZERO_IDS" in env:
        settings.session.suppress_zero_ids = _parse_bool(
            "CANSCOPE_SUPPRESS_ZERO_IDS", env["CANSCOPE_SUPPRESS_ZERO_IDS"]
        )
    if "CANSCOPE_LOG_LEVEL" in env:
        settings.output.log_level = env["CANSCOPE_LOG_LEVEL"].strip().upper()
    if "CANSCOPE_DATABASE" in env:
        settings.output.database_path = env["CANSCOPE_DATABASE"] or None


def load_settings(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build validated settings from defaults, a JSON file and the environment.

    Raises:
        ConfigurationError: on unreadable files or invalid values.
    """
    settings = Settings()

    if path is not None:
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read settings file {path}: {e}", setting_name="path") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {path} must contain a JSON object")
        _apply_file(settings, data)

    _apply_env(settings, os.environ if env is None else env)

    errors = settings.validate()
    if errors:
        raise ConfigurationError("Invalid settings: " + "; ".join(errors))
    return settings
