"""
Continuous wake-phrase monitor.

Listens in the background and scans every transcript update for the wake
phrase. On a hit it plays the acknowledgment, pauses itself (the conversation
needs the microphone next), drops the recognition task that heard the phrase
and calls ``on_wake_phrase``; the next ``resume()`` starts a fresh task with an
empty window. The listen loop keeps restarting itself after engine hiccups
until ``stop()`` is called, and rolls over to a new task every
``max_task_sec`` so no transcript grows without bound.

running: the loop should keep restarting.
paused:  microphone released for someone else; ``running`` is untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from wordy.audio.microphone import Microphone
from wordy.audio.session import AudioSession, SessionMode
from wordy.dispatch import MainQueue, ScheduledCall
from wordy.errors import EngineStartFailure, RecognitionCancelled
from wordy.recognition.engine import RecognitionResult, StreamingRecognizer
from wordy.recognition.session import ListeningSession
from wordy.wakeword.matcher import SHORT_ALIASES, TRIGGER_PHRASES, WakePhraseMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonitorConfig:
    """Wake-phrase monitor parameters."""

    trigger_phrases: tuple = TRIGGER_PHRASES
    aliases: tuple = SHORT_ALIASES
    # Seconds between an engine failure and the automatic restart
    restart_delay_sec: float = 0.5
    # Seconds one recognition task may run before it is replaced
    max_task_sec: float = 60.0


@dataclass(frozen=True)
class MonitorState:
    running: bool
    paused: bool
    last_heard_transcript: str


class WakePhraseMonitor(ListeningSession):
    """
    Interface:
      monitor = WakePhraseMonitor(recognizer, microphone, audio_session, main_queue)
      monitor.on_wake_phrase = handler
      monitor.start()     # begin the self-restarting listen loop
      monitor.pause()     # hand the microphone to someone else
      monitor.resume()    # take it back (only if running)
      monitor.stop()      # tear everything down
    """

    owner = "wake-phrase-monitor"
    session_mode = SessionMode.RECORD

    def __init__(
        self,
        recognizer: StreamingRecognizer,
        microphone: Microphone,
        audio_session: AudioSession,
        main_queue: MainQueue,
        *,
        config: Optional[MonitorConfig] = None,
        matcher: Optional[WakePhraseMatcher] = None,
        acknowledge: Optional[Callable[[], None]] = None,
    ):
        super().__init__(recognizer, microphone, audio_session, main_queue)
        self.config = config or MonitorConfig()
        self.matcher = matcher or WakePhraseMatcher(self.config.trigger_phrases, self.config.aliases)
        self.acknowledge = acknowledge
        self.on_wake_phrase: Optional[Callable[[], None]] = None

        self._running = False
        self._paused = False
        self._listening = False
        self._last_heard = ""
        self._restart: Optional[ScheduledCall] = None
        self._rollover: Optional[ScheduledCall] = None

    @property
    def state(self) -> MonitorState:
        return MonitorState(self._running, self._paused, self._last_heard)

    @property
    def is_listening(self) -> bool:
        return self._listening

    # ----------------- control -----------------
    def start(self) -> None:
        """Begin continuous listening. Raises EngineStartFailure."""
        if self._listening:
            return
        self._cancel_restart()
        self._running = True
        self._paused = False
        try:
            self._launch()
        except EngineStartFailure:
            self._running = False
            raise
        logger.info("Wake-phrase monitor started")

    def stop(self) -> None:
        self._cancel_restart()
        self._cancel_rollover()
        self._teardown()
        was_running = self._running
        self._running = False
        self._paused = False
        self._listening = False
        self._last_heard = ""
        if was_running:
            logger.info("Wake-phrase monitor stopped")

    def pause(self) -> None:
        if self._listening:
            self._detach()
            self._listening = False
        if self._running:
            self._paused = True

    def resume(self) -> None:
        if not self._running:
            return
        self._paused = False
        if self._listening:
            return
        try:
            if self.has_task:
                self._attach()
                self._listening = True
            else:
                self._launch()
        except EngineStartFailure as exc:
            logger.warning("Wake-phrase monitor could not resume: %s", exc)
            self._schedule_restart()

    # ----------------- loop -----------------
    def _launch(self) -> None:
        self._listening = False
        self._last_heard = ""
        self._cancel_rollover()
        self._engage()
        self._listening = True
        self._rollover = self._main.post_after(self.config.max_task_sec, self._roll_over)

    def _schedule_restart(self) -> None:
        if self._restart is not None and self._restart.active:
            return
        self._restart = self._main.post_after(self.config.restart_delay_sec, self._restart_if_running)

    def _cancel_restart(self) -> None:
        if self._restart is not None:
            self._restart.cancel()
            self._restart = None

    def _cancel_rollover(self) -> None:
        if self._rollover is not None:
            self._rollover.cancel()
            self._rollover = None

    def _roll_over(self) -> None:
        self._rollover = None
        if not self._running:
            return
        if self._paused:
            self._teardown()
            return
        if not self._listening:
            return
        logger.debug("Rolling wake-phrase monitor over to a fresh recognition task")
        try:
            self._launch()
        except EngineStartFailure as exc:
            logger.warning("Wake-phrase monitor rollover failed: %s", exc)
            self._schedule_restart()

    def _restart_if_running(self) -> None:
        self._restart = None
        if not self._running:
            return
        if self._paused:
            # Drop the dead task; resume() relaunches a fresh one.
            self._teardown()
            return
        logger.debug("Restarting wake-phrase monitor")
        try:
            self._launch()
        except EngineStartFailure as exc:
            logger.warning("Wake-phrase monitor restart failed: %s", exc)
            self._schedule_restart()

    # ----------------- engine events -----------------
    def _handle_result(self, result: RecognitionResult) -> None:
        if result.is_final:
            # The task is over; whatever it heard last still counts.
            self._task = None
        if self._paused or not self._listening:
            return
        self._last_heard = result.text
        if self.matcher.matches(result.text):
            self._detected()
        elif result.is_final:
            self._listening = False
            self._detach()
            self._schedule_restart()

    def _handle_error(self, exc: Exception) -> None:
        if isinstance(exc, RecognitionCancelled):
            return
        logger.warning("Wake-phrase recognition error: %s", exc)
        self._task = None
        self._detach()
        self._listening = False
        self._schedule_restart()

    def _detected(self) -> None:
        logger.info("Wake phrase detected in %r", self._last_heard)
        if self.acknowledge is not None:
            try:
                self.acknowledge()
            except Exception:
                logger.exception("Wake acknowledgment failed")
        self.pause()
        self._cancel_rollover()
        self._teardown()
        self._last_heard = ""
        if self.on_wake_phrase is not None:
            self.on_wake_phrase()
