"""Process-wide microphone with a single writable tap.

The wake-phrase monitor and the capture session are mutually exclusive
consumers of this one input engine: whoever installs the tap receives every
audio block until it removes it. A second install_tap raises MicrophoneBusy.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Callable, Optional

import numpy as np
from scipy.signal import resample_poly

try:
    import sounddevice as sd
except (ImportError, OSError):
    sd = None  # type: ignore

from wordy.audio.config import AudioConfig
from wordy.errors import EngineStartFailure, MicrophoneBusy

logger = logging.getLogger(__name__)

TapCallback = Callable[[np.ndarray], None]
StreamFactory = Callable[..., Any]


def _default_stream_factory(**kwargs: Any) -> Any:
    if sd is None:
        raise EngineStartFailure("sounddevice is required for recording. pip install sounddevice")
    return sd.InputStream(**kwargs)


class Microphone:
    """Streams mono float32 blocks at the recognition rate to one tap."""

    def __init__(
        self,
        config: Optional[AudioConfig] = None,
        stream_factory: Optional[StreamFactory] = None,
    ):
        self.config = config or AudioConfig()
        self._stream_factory = stream_factory or _default_stream_factory
        self._stream: Any = None
        self._tap: Optional[TapCallback] = None
        self._tap_owner: Optional[str] = None
        self._lock = threading.Lock()

        g = math.gcd(self.config.sample_rate, self.config.device_rate)
        self._up = self.config.sample_rate // g
        self._down = self.config.device_rate // g

    # ----------------- tap -----------------
    @property
    def tap_owner(self) -> Optional[str]:
        return self._tap_owner

    def install_tap(self, owner: str, callback: TapCallback) -> None:
        """Route audio blocks to `callback`. Only one owner at a time."""
        with self._lock:
            if self._tap_owner is not None and self._tap_owner != owner:
                raise MicrophoneBusy(owner, self._tap_owner)
            self._tap = callback
            self._tap_owner = owner
        logger.debug("Microphone tap installed by %s", owner)

    def remove_tap(self, owner: str) -> None:
        """Remove the tap if `owner` holds it; no-op otherwise."""
        with self._lock:
            if self._tap_owner != owner:
                return
            self._tap = None
            self._tap_owner = None
        logger.debug("Microphone tap removed by %s", owner)

    # ----------------- engine -----------------
    @property
    def is_running(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """Open and start the input stream. No-op when already running."""
        if self._stream is not None:
            return
        try:
            stream = self._stream_factory(
                samplerate=self.config.device_rate,
                channels=self.config.channels,
                dtype="float32",
                blocksize=self.config.block_size,
                device=self.config.input_device,
                callback=self._on_block,
            )
            stream.start()
        except EngineStartFailure:
            raise
        except Exception as exc:
            raise EngineStartFailure(f"Audio engine failed to start: {exc}") from exc
        self._stream = stream
        logger.debug("Microphone started at %d Hz", self.config.device_rate)

    def stop(self) -> None:
        """Stop and close the input stream. Safe to call when stopped."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as exc:
            logger.warning("Microphone did not close cleanly: %s", exc)
        logger.debug("Microphone stopped")

    def _on_block(self, indata: np.ndarray, _frames: int, _time: object, status: object) -> None:
        if status:
            logger.debug("Microphone status: %s", status)
        block = np.asarray(indata, dtype=np.float32).copy()
        if block.ndim > 1:
            block = block.mean(axis=1)
        if self._up != self._down:
            block = resample_poly(block, self._up, self._down).astype(np.float32)
        with self._lock:
            tap = self._tap
        if tap is not None:
            tap(block)
