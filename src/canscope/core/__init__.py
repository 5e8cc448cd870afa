"""Core frame and identifier types."""

from canscope.core.identifier import CanonicalId, normalize, normalize_hex, normalize_or_empty
from canscope.core.frame import Direction, Frame

__all__ = ["CanonicalId", "normalize", "normalize_hex", "normalize_or_empty", "Direction", "Frame"]
