"""Centralized audio configuration.

Encoding standards:
- Recognition audio: mono 16 kHz float32
- Capture: device native rate when it cannot record at 16 kHz, resampled
- Blocks: 64 ms per microphone callback
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AudioConfig:
    """Audio input/output configuration."""

    # Recognition input
    sample_rate: int = 16_000
    channels: int = 1  # mono
    dtype: str = "float32"
    block_ms: float = 64.0

    # Device selection (None = system default)
    input_device: Optional[int] = None
    output_device: Optional[int] = None

    # Rate the microphone is opened at; None records at sample_rate directly
    capture_rate: Optional[int] = None

    # Acknowledgment chime
    chime_hz: float = 880.0
    chime_sec: float = 0.12
    chime_volume: float = 0.3

    @property
    def device_rate(self) -> int:
        """Rate the input stream is opened at."""
        return self.capture_rate or self.sample_rate

    @property
    def block_size(self) -> int:
        """Frames per microphone callback at the device rate."""
        return int(self.device_rate * self.block_ms / 1000)
