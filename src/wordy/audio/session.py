"""Shared audio-session handle.

There is one audio session per process. Components claim it on entry to
their active phase; the most recent claim decides whether the session is set
up for recording, playback, or both. Claims are idempotent.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

try:
    import sounddevice as sd
except (ImportError, OSError):
    sd = None  # type: ignore

from wordy.audio.config import AudioConfig
from wordy.errors import EngineStartFailure

logger = logging.getLogger(__name__)


class SessionMode(Enum):
    RECORD = "record"
    PLAY_AND_RECORD = "play_and_record"
    PLAYBACK = "playback"

    @property
    def records(self) -> bool:
        return self is not SessionMode.PLAYBACK

    @property
    def plays(self) -> bool:
        return self is not SessionMode.RECORD


class AudioSession:
    """Explicit claim/release protocol over the process audio configuration."""

    def __init__(self, config: Optional[AudioConfig] = None, check_devices: bool = True):
        self.config = config or AudioConfig()
        self.check_devices = check_devices
        self._mode: Optional[SessionMode] = None
        self._owner: Optional[str] = None

    @property
    def mode(self) -> Optional[SessionMode]:
        return self._mode

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    @property
    def active(self) -> bool:
        return self._mode is not None

    def claim(self, owner: str, mode: SessionMode) -> None:
        """Configure the session for `mode` on behalf of `owner`.

        Raises EngineStartFailure when the devices cannot serve the mode.
        """
        if self._owner == owner and self._mode is mode:
            return
        if self.check_devices and mode is not self._mode:
            self._check(mode)
        if mode is not self._mode:
            logger.debug("Audio session: %s -> %s (%s)", self._mode and self._mode.value, mode.value, owner)
        self._mode = mode
        self._owner = owner

    def release(self, owner: str) -> None:
        """Deactivate the session if `owner` made the last claim."""
        if self._owner != owner:
            return
        logger.debug("Audio session released by %s", owner)
        self._owner = None
        self._mode = None

    def _check(self, mode: SessionMode) -> None:
        if sd is None:
            raise EngineStartFailure("sounddevice is not available")
        try:
            if mode.records:
                sd.check_input_settings(
                    device=self.config.input_device,
                    channels=self.config.channels,
                    samplerate=self.config.device_rate,
                )
            if mode.plays:
                sd.check_output_settings(device=self.config.output_device)
        except Exception as exc:
            raise EngineStartFailure(f"Audio session setup failed: {exc}") from exc
