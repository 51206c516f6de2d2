"""
Conversation state machine.

Sequences one conversation turn across the wake-phrase monitor, the capture
session, the synthesis queue and the dictionary:

  Idle -> PromptingUser -> AwaitingWord -> ConfirmingWord(word)
       -> LookingUpWord(word) -> SpeakingDefinition(word, definition) -> Idle

Any failure goes to Failed(message), speaks an apology and returns to Idle
after `failure_recovery_sec`. All methods run on the main queue.

Each step that waits for speech registers exactly one continuation for the
utterance it just queued. A continuation is dropped before it runs, and is
ignored if the turn generation moved on (cancel, reset, failure) since it was
registered.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from wordy.audio.permissions import MicrophonePermission, PermissionState
from wordy.capture.session import CaptureResult, CaptureSession
from wordy.conversation.states import (
    AwaitingWord,
    ConfirmingWord,
    ConversationState,
    Failed,
    Idle,
    LookingUpWord,
    PromptingUser,
    SpeakingDefinition,
    describe,
)
from wordy.dispatch import MainQueue, ScheduledCall
from wordy.errors import (
    EmptyCapture,
    EngineStartFailure,
    LookupTransportError,
    PermissionDenied,
    SynthesisInterrupted,
    WordyError,
)
from wordy.recognition.transcript import extract_word
from wordy.speech.queue import SynthesisQueue
from wordy.speech.synthesizer import Utterance
from wordy.storage.word_store import WordRecord, WordStore
from wordy.wakeword.monitor import WakePhraseMonitor

logger = logging.getLogger(__name__)

StateCallback = Callable[[ConversationState], None]


@dataclass(frozen=True)
class ConversationConfig:
    """What the assistant says and how long a failure lingers."""

    prompt_text: str = "What word would you like to learn?"
    wake_reply: str = "Yes?"
    confirmation_template: str = "Did you say {word}?"
    definition_template: str = "The definition of {word} is: {definition}"
    definition_rate: float = 0.45
    # Seconds spent in Failed before returning to Idle
    failure_recovery_sec: float = 3.0


def run_in_thread(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, name="wordy-lookup", daemon=True).start()


class ConversationOrchestrator:
    """
    Interface:
      conv = ConversationOrchestrator(monitor, capture, speech, dictionary, store, main_queue, permission)
      conv.subscribe(lambda state: print(conv.status_message))
      conv.enable_wake_word_mode()   # "hey wordy" starts a turn
      conv.start_conversation()      # manual trigger
      conv.cancel_conversation()
      conv.reset()
    """

    def __init__(
        self,
        monitor: WakePhraseMonitor,
        capture: CaptureSession,
        speech: SynthesisQueue,
        dictionary: Any,
        store: Optional[WordStore],
        main_queue: MainQueue,
        permission: MicrophonePermission,
        config: Optional[ConversationConfig] = None,
        run_in_background: Callable[[Callable[[], None]], None] = run_in_thread,
    ):
        self.config = config or ConversationConfig()
        self._monitor = monitor
        self._capture = capture
        self._speech = speech
        self._dictionary = dictionary
        self._store = store
        self._main = main_queue
        self._permission = permission
        self._run_in_background = run_in_background

        self._state: ConversationState = Idle()
        self._wake_word_mode = False
        self._captured_word: Optional[str] = None
        self._partial = ""
        self._generation = 0
        self._continuation: Optional[Tuple[int, int, Callable[[], None]]] = None
        self._apology: Optional[Utterance] = None
        self._recovery: Optional[ScheduledCall] = None
        self._subscribers: List[StateCallback] = []

        speech.on_finished = self._on_speech_finished
        speech.on_cancelled = self._on_speech_cancelled
        monitor.on_wake_phrase = self._on_wake_phrase

    # ----------------- observable state -----------------
    @property
    def current_state(self) -> ConversationState:
        return self._state

    @property
    def status_message(self) -> str:
        return describe(self._state, self._wake_word_mode)

    @property
    def captured_word(self) -> Optional[str]:
        return self._captured_word

    @property
    def partial_transcript(self) -> str:
        return self._partial

    @property
    def wake_word_mode(self) -> bool:
        return self._wake_word_mode

    @property
    def is_active(self) -> bool:
        """A turn is in progress; Failed is only waiting to recover."""
        return not isinstance(self._state, (Idle, Failed))

    @property
    def can_start(self) -> bool:
        return isinstance(self._state, Idle) and self._authorized()

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """Call `callback(state)` on every change. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ----------------- public operations -----------------
    def enable_wake_word_mode(self) -> None:
        if self._wake_word_mode:
            return
        if not self._authorized():
            self._fail(PermissionDenied())
            return
        self._wake_word_mode = True
        logger.info("Wake-word mode enabled")
        if isinstance(self._state, Idle):
            try:
                self._monitor.start()
            except EngineStartFailure as exc:
                self._wake_word_mode = False
                self._fail(exc)
                return
        self._notify()

    def disable_wake_word_mode(self) -> None:
        if not self._wake_word_mode:
            return
        self._wake_word_mode = False
        self._monitor.stop()
        logger.info("Wake-word mode disabled")
        self._notify()

    def start_conversation(self) -> None:
        """Manual trigger. Ignored unless Idle."""
        if not isinstance(self._state, Idle):
            logger.debug("start_conversation ignored in %s", type(self._state).__name__)
            return
        # The capture needs the microphone; the monitor gives it up.
        self._monitor.pause()
        if not self._authorized():
            self._fail(PermissionDenied())
            return
        self._begin_turn(self.config.prompt_text)

    def cancel_conversation(self) -> None:
        if isinstance(self._state, Idle):
            return
        logger.info("Conversation cancelled in %s", type(self._state).__name__)
        self._end_turn()

    def reset(self) -> None:
        """Tear down whatever is in flight and go back to Idle."""
        self._end_turn()

    # ----------------- turn steps -----------------
    def _on_wake_phrase(self) -> None:
        if not self._wake_word_mode or not isinstance(self._state, Idle):
            logger.debug("Wake phrase ignored in %s", type(self._state).__name__)
            return
        if not self._authorized():
            self._fail(PermissionDenied())
            return
        self._begin_turn(self.config.wake_reply)

    def _begin_turn(self, text: str) -> None:
        self._captured_word = None
        self._partial = ""
        self._transition(PromptingUser())
        self._speak_then(text, self._begin_capture)

    def _begin_capture(self) -> None:
        generation = self._generation
        self._partial = ""
        self._transition(AwaitingWord())
        try:
            self._capture.start(
                on_complete=lambda result: self._on_capture_complete(generation, result),
                on_partial=lambda text: self._on_partial(generation, text),
            )
        except EngineStartFailure as exc:
            self._fail(exc)

    def _on_partial(self, generation: int, text: str) -> None:
        if generation != self._generation:
            return
        self._partial = text
        self._notify()

    def _on_capture_complete(self, generation: int, result: CaptureResult) -> None:
        if generation != self._generation or not isinstance(self._state, AwaitingWord):
            return
        if result.error is not None:
            self._fail(result.error)
            return
        word = extract_word(result.transcript)
        if not word:
            self._fail(EmptyCapture())
            return
        logger.info("Captured %r from %r", word, result.transcript)
        self._captured_word = word
        self._transition(ConfirmingWord(word))
        self._speak_then(self.config.confirmation_template.format(word=word), lambda: self._look_up(word))

    def _look_up(self, word: str) -> None:
        generation = self._generation
        self._transition(LookingUpWord(word))
        dictionary = self._dictionary

        def worker() -> None:
            try:
                definition = dictionary.lookup(word)
            except WordyError as exc:
                self._main.post(self._on_lookup_done, generation, word, None, exc)
            except Exception as exc:
                logger.exception("Dictionary lookup crashed")
                self._main.post(self._on_lookup_done, generation, word, None, LookupTransportError(str(exc)))
            else:
                self._main.post(self._on_lookup_done, generation, word, definition, None)

        self._run_in_background(worker)

    def _on_lookup_done(
        self,
        generation: int,
        word: str,
        definition: Optional[str],
        error: Optional[WordyError],
    ) -> None:
        if generation != self._generation or self._state != LookingUpWord(word):
            logger.debug("Stale lookup result for %r dropped", word)
            return
        if error is not None:
            self._fail(error)
            return
        self._transition(SpeakingDefinition(word, definition))
        text = self.config.definition_template.format(word=word, definition=definition)
        self._speak_then(text, lambda: self._complete(word, definition), rate=self.config.definition_rate)

    def _complete(self, word: str, definition: str) -> None:
        if self._store is not None:
            try:
                self._store.save(WordRecord(word=word, definition=definition))
            except Exception:
                logger.exception("Could not save %r", word)
        self._captured_word = None
        self._partial = ""
        self._return_to_idle()

    # ----------------- speech continuations -----------------
    def _speak_then(self, text: str, fn: Callable[[], None], rate: Optional[float] = None) -> None:
        self._continuation = None
        try:
            utterance = self._speech.speak(text, rate=rate)
        except EngineStartFailure as exc:
            self._fail(exc)
            return
        self._continuation = (utterance.id, self._generation, fn)

    def _on_speech_finished(self, utterance: Utterance) -> None:
        continuation = self._continuation
        if continuation is None or continuation[0] != utterance.id:
            return
        self._continuation = None
        _, generation, fn = continuation
        if generation != self._generation:
            return
        fn()

    def _on_speech_cancelled(self, utterance: Utterance, reason: SynthesisInterrupted) -> None:
        continuation = self._continuation
        if continuation is None or continuation[0] != utterance.id:
            return
        self._continuation = None
        logger.info("%s during %s; ending the turn", reason.message, type(self._state).__name__)
        self._end_turn()

    # ----------------- failure and recovery -----------------
    def _fail(self, error: WordyError) -> None:
        logger.warning("Conversation failed: %s", error.message)
        self._generation += 1
        self._continuation = None
        self._cancel_recovery()
        self._capture.cancel()
        self._transition(Failed(error.message))
        try:
            self._apology = self._speech.speak(error.apology)
        except EngineStartFailure as exc:
            logger.warning("Could not speak apology: %s", exc)
            self._apology = None
        self._recovery = self._main.post_after(self.config.failure_recovery_sec, self._recover)

    def _recover(self) -> None:
        self._recovery = None
        if not isinstance(self._state, Failed):
            return
        apology, self._apology = self._apology, None
        if apology is not None and self._speech.is_speaking(apology):
            # Let the apology finish before listening again.
            self._continuation = (apology.id, self._generation, self._leave_failed)
            return
        self._leave_failed()

    def _leave_failed(self) -> None:
        self._captured_word = None
        self._partial = ""
        self._return_to_idle()

    def _cancel_recovery(self) -> None:
        if self._recovery is not None:
            self._recovery.cancel()
            self._recovery = None

    def _end_turn(self) -> None:
        self._generation += 1
        self._continuation = None
        self._apology = None
        self._cancel_recovery()
        self._capture.cancel()
        self._speech.stop()
        self._captured_word = None
        self._partial = ""
        self._return_to_idle()

    def _return_to_idle(self) -> None:
        self._transition(Idle())
        if self._wake_word_mode:
            self._resume_monitor()

    def _resume_monitor(self) -> None:
        if self._monitor.state.running:
            self._monitor.resume()
            return
        try:
            self._monitor.start()
        except EngineStartFailure as exc:
            logger.warning("Wake-phrase monitor could not start: %s", exc)

    # ----------------- helpers -----------------
    def _authorized(self) -> bool:
        return self._permission.state is PermissionState.AUTHORIZED

    def _transition(self, state: ConversationState) -> None:
        previous, self._state = self._state, state
        logger.info("Conversation: %s -> %s", type(previous).__name__, type(state).__name__)
        self._notify()

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._state)
            except Exception:
                logger.exception("State subscriber failed")
