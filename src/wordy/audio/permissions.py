"""Microphone authorization tracking."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

try:
    import sounddevice as sd
except (ImportError, OSError):
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class PermissionState(Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"


class MicrophonePermission:
    """Holds the authorization flag every listening entry point checks.

    `request()` probes the input device: a usable device is AUTHORIZED, a
    device the host refuses is DENIED, and a machine without an audio stack
    is RESTRICTED.
    """

    def __init__(self, device: Optional[int] = None, state: PermissionState = PermissionState.NOT_DETERMINED):
        self.device = device
        self.state = state

    @property
    def authorized(self) -> bool:
        return self.state is PermissionState.AUTHORIZED

    def request(self) -> PermissionState:
        if sd is None:
            self.state = PermissionState.RESTRICTED
        else:
            try:
                sd.check_input_settings(device=self.device, channels=1)
                self.state = PermissionState.AUTHORIZED
            except Exception as exc:
                logger.warning("Microphone not usable: %s", exc)
                self.state = PermissionState.DENIED
        logger.info("Microphone permission: %s", self.state.value)
        return self.state
