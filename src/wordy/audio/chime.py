"""Short acknowledgment tone played when the wake phrase is heard."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

try:
    import sounddevice as sd
except (ImportError, OSError):
    sd = None  # type: ignore

from wordy.audio.config import AudioConfig

logger = logging.getLogger(__name__)

CHIME_RATE = 22_050


def make_chime(freq_hz: float, duration_sec: float, volume: float, sample_rate: int = CHIME_RATE) -> np.ndarray:
    """Sine burst with a Hann envelope (no clicks at either end)."""
    n = max(1, int(duration_sec * sample_rate))
    t = np.arange(n, dtype=np.float32) / sample_rate
    tone = np.sin(2 * np.pi * freq_hz * t) * np.hanning(n)
    return (volume * tone).astype(np.float32)


class Chime:
    """Callable acknowledgment; never blocks the caller."""

    def __init__(self, config: Optional[AudioConfig] = None):
        self.config = config or AudioConfig()
        self._tone = make_chime(self.config.chime_hz, self.config.chime_sec, self.config.chime_volume)

    def __call__(self) -> None:
        if sd is None:
            logger.debug("Chime skipped: sounddevice not available")
            return
        try:
            sd.play(self._tone, CHIME_RATE, device=self.config.output_device, blocking=False)
        except Exception as exc:
            logger.warning("Chime failed: %s", exc)
