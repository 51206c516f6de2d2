"""One-shot speech capture with partial-result streaming.

A capture resolves exactly once, whichever comes first:
  - the engine reports a final result, or
  - `finalize_delay` seconds pass after the first non-empty partial
    (force-finalize with the best transcript so far), or
  - `no_speech_timeout_sec` passes without any non-empty partial
    (resolve with an empty transcript), or
  - the engine fails (resolve with what we have plus the error).
cancel() resolves nothing. An empty transcript is "nothing heard", not an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from wordy.audio.microphone import Microphone
from wordy.audio.session import AudioSession, SessionMode
from wordy.dispatch import MainQueue, ScheduledCall
from wordy.errors import EngineStartFailure, RecognitionFailure
from wordy.recognition.engine import RecognitionResult, StreamingRecognizer
from wordy.recognition.session import ListeningSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureConfig:
    """Capture finalize policy."""

    # Seconds to wait before force-finalizing
    finalize_delay_sec: float = 1.5
    # Count the delay from the first non-empty partial (else from capture start)
    timeout_after_first_result: bool = True
    # Give up on a capture that has heard nothing at all after this long
    no_speech_timeout_sec: float = 6.0


@dataclass(frozen=True)
class CaptureResult:
    transcript: str
    error: Optional[Exception] = None

    @property
    def heard(self) -> bool:
        return bool(self.transcript.strip())


@dataclass
class CaptureState:
    active: bool
    partial_transcript: str = ""


class CaptureSession(ListeningSession):
    """
    Interface:
      capture = CaptureSession(recognizer, microphone, audio_session, main_queue)
      capture.start(on_complete=handle_result, on_partial=show)
      capture.cancel()    # no on_complete afterwards
    """

    owner = "speech-capture"
    session_mode = SessionMode.PLAY_AND_RECORD

    def __init__(
        self,
        recognizer: StreamingRecognizer,
        microphone: Microphone,
        audio_session: AudioSession,
        main_queue: MainQueue,
        *,
        config: Optional[CaptureConfig] = None,
    ):
        super().__init__(recognizer, microphone, audio_session, main_queue)
        self.config = config or CaptureConfig()
        self._state: Optional[CaptureState] = None
        self._on_complete: Optional[Callable[[CaptureResult], None]] = None
        self._on_partial: Optional[Callable[[str], None]] = None
        self._finalize_timer: Optional[ScheduledCall] = None
        self._silence_timer: Optional[ScheduledCall] = None
        self._finalize_delay = self.config.finalize_delay_sec

    @property
    def state(self) -> Optional[CaptureState]:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is not None and self._state.active

    def start(
        self,
        on_complete: Callable[[CaptureResult], None],
        on_partial: Optional[Callable[[str], None]] = None,
        *,
        finalize_delay: Optional[float] = None,
        timeout_after_first_result: Optional[bool] = None,
    ) -> None:
        """Begin capturing. Raises EngineStartFailure (nothing left claimed)."""
        self.cancel()
        if timeout_after_first_result is None:
            timeout_after_first_result = self.config.timeout_after_first_result
        self._finalize_delay = self.config.finalize_delay_sec if finalize_delay is None else finalize_delay
        try:
            self._engage()
        except EngineStartFailure:
            self.cancel()
            raise
        self._state = CaptureState(active=True)
        self._on_complete = on_complete
        self._on_partial = on_partial
        if not timeout_after_first_result:
            self._arm_finalize_timer()
        self._silence_timer = self._main.post_after(self.config.no_speech_timeout_sec, self._on_silence_timer)
        logger.debug("Capture started")

    def stop(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        """Tear down audio and recognition, discard any pending result."""
        if self._finalize_timer is not None:
            self._finalize_timer.cancel()
            self._finalize_timer = None
        self._cancel_silence_timer()
        self._teardown()
        if self._state is not None:
            logger.debug("Capture cancelled")
        self._state = None
        self._on_complete = None
        self._on_partial = None

    # ----------------- engine events -----------------
    def _handle_result(self, result: RecognitionResult) -> None:
        if not self.active:
            return
        self._state.partial_transcript = result.text
        if self._on_partial is not None:
            self._on_partial(result.text)
        if result.is_final:
            self._finalize()
        elif result.text.strip():
            self._cancel_silence_timer()
            if self._finalize_timer is None:
                self._arm_finalize_timer()

    def _handle_error(self, exc: Exception) -> None:
        if not self.active:
            return
        logger.warning("Capture recognition error: %s", exc)
        if not isinstance(exc, RecognitionFailure):
            exc = RecognitionFailure(f"Recognition error: {exc}")
        self._finalize(exc)

    def _arm_finalize_timer(self) -> None:
        self._finalize_timer = self._main.post_after(self._finalize_delay, self._on_finalize_timer)

    def _on_finalize_timer(self) -> None:
        self._finalize_timer = None
        if self.active:
            logger.debug("Capture force-finalized after %.2fs", self._finalize_delay)
            self._finalize()

    def _cancel_silence_timer(self) -> None:
        if self._silence_timer is not None:
            self._silence_timer.cancel()
            self._silence_timer = None

    def _on_silence_timer(self) -> None:
        self._silence_timer = None
        if self.active and not self._state.partial_transcript.strip():
            logger.info("No speech heard after %.1fs", self.config.no_speech_timeout_sec)
            self._finalize()

    def _finalize(self, error: Optional[Exception] = None) -> None:
        transcript = self._state.partial_transcript if self._state else ""
        on_complete = self._on_complete
        self.cancel()
        if on_complete is not None:
            on_complete(CaptureResult(transcript, error))
