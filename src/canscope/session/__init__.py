"""Live capture sessions."""

from canscope.session.capture import CaptureSession, RejectedInput

__all__ = ["CaptureSession", "RejectedInput"]
