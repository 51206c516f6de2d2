"""Ordered speech output with pre-emption.

At most one utterance is in flight. ``speak`` pre-empts it (the pre-empted
utterance reports ``on_cancelled(utterance, reason)`` and never
``on_finished``);
``enqueue_sequence`` replaces any pending sequence and speaks its texts in
order, continuing off each ``finished`` after a pause. Backend events arrive
on synthesizer threads and are marshalled onto the main queue.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, Optional

from wordy.audio.session import AudioSession, SessionMode
from wordy.dispatch import MainQueue, ScheduledCall
from wordy.errors import SynthesisInterrupted
from wordy.speech.synthesizer import DEFAULT_VOICE, NORMAL_RATE, SpeechSynthesizer, Utterance

logger = logging.getLogger(__name__)

UtteranceCallback = Callable[[Utterance], None]
CancelCallback = Callable[[Utterance, SynthesisInterrupted], None]


@dataclass(frozen=True)
class SpeechConfig:
    """Speech output parameters."""

    voice: str = DEFAULT_VOICE
    rate: float = NORMAL_RATE
    # Slightly slower for definitions
    definition_rate: float = 0.45
    pause_between_sec: float = 0.5


class SynthesisQueue:
    """
    Interface:
      speech = SynthesisQueue(SpeechSynthesizer(), main_queue)
      speech.on_finished = handler          # single slot
      u = speech.speak("Yes?")              # pre-empts anything in flight
      speech.enqueue_sequence(["one", "two"], pause_between=0.5)
      speech.stop()
    """

    owner = "speech-synthesis"

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        main_queue: MainQueue,
        audio_session: Optional[AudioSession] = None,
        config: Optional[SpeechConfig] = None,
    ):
        self.config = config or SpeechConfig()
        self._synth = synthesizer
        self._main = main_queue
        self._audio_session = audio_session

        self.on_started: Optional[UtteranceCallback] = None
        self.on_finished: Optional[UtteranceCallback] = None
        self.on_cancelled: Optional[CancelCallback] = None

        self._current: Optional[Utterance] = None
        self._pending: Deque[Utterance] = deque()
        self._sequence = 0
        self._sequence_ids: set = set()
        self._gap: Optional[ScheduledCall] = None
        self._pause = self.config.pause_between_sec

        synthesizer.on_start = lambda u: self._main.post(self._handle_started, u)
        synthesizer.on_finish = lambda u: self._main.post(self._handle_finished, u)
        synthesizer.on_cancel = lambda u: self._main.post(self._handle_cancelled, u)

    @property
    def current(self) -> Optional[Utterance]:
        return self._current

    def is_speaking(self, utterance: Optional[Utterance] = None) -> bool:
        """True if anything (or the given utterance) is in flight."""
        if utterance is None:
            return self._current is not None
        return self._current is not None and self._current.id == utterance.id

    @property
    def pending(self) -> int:
        """Sequence items not yet started."""
        return len(self._pending)

    # ----------------- commands -----------------
    def speak(self, text: str, rate: Optional[float] = None, voice: Optional[str] = None) -> Utterance:
        """Interrupt everything and speak `text` now.

        Raises EngineStartFailure if the audio session cannot play.
        """
        self._abort_sequence()
        utterance = Utterance(text, self.config.rate if rate is None else rate, voice or self.config.voice)
        self._start(utterance)
        return utterance

    def enqueue_sequence(
        self,
        texts: Iterable[str],
        rate: Optional[float] = None,
        pause_between: Optional[float] = None,
    ) -> None:
        """Replace any queued speech with `texts`, spoken in order."""
        self._abort_sequence()
        self._interrupt_current("Replaced by a new sequence")
        rate = self.config.rate if rate is None else rate
        self._pause = self.config.pause_between_sec if pause_between is None else pause_between
        self._pending.extend(Utterance(t, rate, self.config.voice) for t in texts)
        self._sequence_ids = {u.id for u in self._pending}
        self._speak_next(self._sequence)

    def stop(self) -> None:
        """Cancel the current utterance and drop everything queued."""
        self._abort_sequence()
        self._interrupt_current("Speech stopped")
        if self._audio_session is not None:
            self._audio_session.release(self.owner)

    # ----------------- internals -----------------
    def _start(self, utterance: Utterance) -> None:
        self._interrupt_current(f"Pre-empted by #{utterance.id}")
        if self._audio_session is not None:
            self._audio_session.claim(self.owner, SessionMode.PLAY_AND_RECORD)
        self._current = utterance
        logger.debug("Speaking #%d: %r", utterance.id, utterance.text)
        self._synth.speak(utterance)

    def _interrupt_current(self, reason: str) -> None:
        utterance, self._current = self._current, None
        if utterance is None:
            return
        self._synth.stop()
        self._cancelled(utterance, SynthesisInterrupted(reason, utterance.id))

    def _abort_sequence(self) -> None:
        self._sequence += 1
        self._pending.clear()
        self._sequence_ids = set()
        if self._gap is not None:
            self._gap.cancel()
            self._gap = None

    def _speak_next(self, sequence: int) -> None:
        self._gap = None
        if sequence != self._sequence or not self._pending:
            return
        self._start(self._pending.popleft())

    def _handle_started(self, utterance: Utterance) -> None:
        if self.is_speaking(utterance):
            self._emit(self.on_started, utterance)

    def _handle_finished(self, utterance: Utterance) -> None:
        if not self.is_speaking(utterance):
            # Pre-empted; its cancellation was already reported.
            return
        self._current = None
        sequence = self._sequence
        in_sequence = utterance.id in self._sequence_ids
        self._emit(self.on_finished, utterance)
        if in_sequence and sequence == self._sequence:
            if self._pending:
                self._gap = self._main.post_after(self._pause, self._speak_next, sequence)
            elif self._audio_session is not None:
                self._audio_session.release(self.owner)
        elif self._current is None and self._audio_session is not None:
            self._audio_session.release(self.owner)

    def _handle_cancelled(self, utterance: Utterance) -> None:
        if not self.is_speaking(utterance):
            return
        self._current = None
        self._abort_sequence()
        if self._audio_session is not None:
            self._audio_session.release(self.owner)
        self._cancelled(utterance, SynthesisInterrupted("Stopped by the speech backend", utterance.id))

    def _cancelled(self, utterance: Utterance, reason: SynthesisInterrupted) -> None:
        logger.debug("Speech #%d cancelled: %s", utterance.id, reason.message)
        if self.on_cancelled is not None:
            self.on_cancelled(utterance, reason)

    @staticmethod
    def _emit(callback: Optional[UtteranceCallback], utterance: Utterance) -> None:
        if callback is not None:
            callback(utterance)
