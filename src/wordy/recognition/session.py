"""Shared plumbing for microphone-backed recognition sessions.

The wake-phrase monitor (continuous) and the capture session (one-shot) both
wrap the same recognizer, microphone and audio session. They differ only in
how they react to results and errors, which subclasses implement in
``_handle_result`` / ``_handle_error``.

Every engine callback is tagged with the token of the recognition task that
produced it and marshalled onto the main queue. Tearing a task down bumps the
token, so late callbacks from a dead task are dropped on the queue thread.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from wordy.audio.microphone import Microphone
from wordy.audio.session import AudioSession, SessionMode
from wordy.dispatch import MainQueue
from wordy.errors import EngineStartFailure
from wordy.recognition.engine import RecognitionRequest, RecognitionResult, StreamingRecognizer

logger = logging.getLogger(__name__)


class ListeningSession:
    """Capability set {start, stop, pause, resume} over one recognition task."""

    owner = "listener"
    session_mode = SessionMode.RECORD

    def __init__(
        self,
        recognizer: StreamingRecognizer,
        microphone: Microphone,
        audio_session: AudioSession,
        main_queue: MainQueue,
    ):
        self._recognizer = recognizer
        self._microphone = microphone
        self._audio_session = audio_session
        self._main = main_queue
        self._request: Optional[RecognitionRequest] = None
        self._task: Any = None
        self._token = 0

    # ----------------- capability set -----------------
    def start(self, *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        self._teardown()

    def pause(self) -> None:
        """Release the microphone; the recognition task stays alive."""
        self._detach()

    def resume(self) -> None:
        """Re-attach the microphone to the live recognition task."""
        if self._request is not None:
            self._attach()

    # ----------------- helpers for subclasses -----------------
    @property
    def has_task(self) -> bool:
        return self._task is not None

    @property
    def attached(self) -> bool:
        return self._microphone.tap_owner == self.owner

    def _engage(self) -> None:
        """Open a fresh recognition task and attach the microphone to it.

        Raises EngineStartFailure with everything released again.
        """
        self._teardown()
        self._token += 1
        token = self._token
        try:
            request = RecognitionRequest()
            self._request = request
            self._task = self._recognizer.recognition_task(
                request,
                on_result=lambda result: self._main.post(self._deliver_result, token, result),
                on_error=lambda exc: self._main.post(self._deliver_error, token, exc),
            )
            self._attach()
        except EngineStartFailure:
            self._teardown()
            raise

    def _attach(self) -> None:
        request = self._request
        if request is None:
            return
        self._audio_session.claim(self.owner, self.session_mode)
        try:
            self._microphone.install_tap(self.owner, request.append)
            self._microphone.start()
        except EngineStartFailure:
            self._microphone.remove_tap(self.owner)
            self._audio_session.release(self.owner)
            raise

    def _detach(self) -> None:
        if self._microphone.tap_owner != self.owner:
            return
        self._microphone.remove_tap(self.owner)
        self._microphone.stop()
        self._audio_session.release(self.owner)

    def _teardown(self) -> None:
        """Synchronously release the tap, end the request and cancel the task."""
        self._token += 1
        self._detach()
        request, self._request = self._request, None
        task, self._task = self._task, None
        if request is not None:
            request.end_audio()
        if task is not None:
            task.cancel()
        self._audio_session.release(self.owner)

    def _deliver_result(self, token: int, result: RecognitionResult) -> None:
        if token != self._token:
            return
        self._handle_result(result)

    def _deliver_error(self, token: int, exc: Exception) -> None:
        if token != self._token:
            return
        self._handle_error(exc)

    def _handle_result(self, result: RecognitionResult) -> None:
        raise NotImplementedError

    def _handle_error(self, exc: Exception) -> None:
        raise NotImplementedError
