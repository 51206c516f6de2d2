"""One-shot speech capture session."""

from wordy.capture.session import CaptureConfig, CaptureResult, CaptureSession, CaptureState

__all__ = ["CaptureConfig", "CaptureResult", "CaptureSession", "CaptureState"]
