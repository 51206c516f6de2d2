"""Wiring: build the process-wide singletons and run the conversation.

Interface:
  app = build_app(WordyConfig())
  run_listen(app)     # wake-word mode until Ctrl+C
  run_learn(app)      # one manual turn
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from wordy.audio import AudioSession, Chime, Microphone, MicrophonePermission, PermissionState
from wordy.capture import CaptureSession
from wordy.config import WordyConfig
from wordy.conversation import ConversationOrchestrator, Idle
from wordy.dictionary import DictionaryClient
from wordy.dispatch import MainQueue
from wordy.recognition import NemoTranscriber, StreamingRecognizer
from wordy.speech import SpeechSynthesizer, SynthesisQueue
from wordy.storage import WordStore
from wordy.wakeword import WakePhraseMonitor

logger = logging.getLogger(__name__)


@dataclass
class WordyApp:
    config: WordyConfig
    main: MainQueue
    microphone: Microphone
    audio_session: AudioSession
    permission: MicrophonePermission
    recognizer: StreamingRecognizer
    monitor: WakePhraseMonitor
    capture: CaptureSession
    speech: SynthesisQueue
    dictionary: DictionaryClient
    store: WordStore
    conversation: ConversationOrchestrator


def build_app(
    config: Optional[WordyConfig] = None,
    transcribe: Optional[Callable[[np.ndarray], str]] = None,
) -> WordyApp:
    """One microphone, one audio session, one main queue; everything else hangs off them."""
    config = config or WordyConfig()
    logger.debug("Building app (model=%s, db=%s)", config.model, config.db_path)
    main = MainQueue()
    microphone = Microphone(config.audio)
    audio_session = AudioSession(config.audio)
    permission = MicrophonePermission(device=config.audio.input_device)
    if transcribe is None:
        transcribe = NemoTranscriber(config.model, config.model_device)
    recognizer = StreamingRecognizer(transcribe, config.recognizer)
    monitor = WakePhraseMonitor(
        recognizer,
        microphone,
        audio_session,
        main,
        config=config.monitor,
        acknowledge=Chime(config.audio),
    )
    capture = CaptureSession(recognizer, microphone, audio_session, main, config=config.capture)
    speech = SynthesisQueue(SpeechSynthesizer(config.speech.voice), main, audio_session, config.speech)
    dictionary = DictionaryClient(config.dictionary_url)
    store = WordStore(config.db_path)
    conversation = ConversationOrchestrator(
        monitor,
        capture,
        speech,
        dictionary,
        store,
        main,
        permission,
        config=config.conversation,
    )
    return WordyApp(
        config=config,
        main=main,
        microphone=microphone,
        audio_session=audio_session,
        permission=permission,
        recognizer=recognizer,
        monitor=monitor,
        capture=capture,
        speech=speech,
        dictionary=dictionary,
        store=store,
        conversation=conversation,
    )


def _print_status(app: WordyApp) -> Callable[[object], None]:
    last = [None]

    def show(_state: object) -> None:
        conv = app.conversation
        line = conv.status_message
        if conv.partial_transcript and line == "Listening for your word...":
            line = f"{line} {conv.partial_transcript!r}"
        if line != last[0]:
            last[0] = line
            print(line)

    return show


def _prepare(app: WordyApp) -> None:
    if app.permission.request() is not PermissionState.AUTHORIZED:
        print(f"Microphone unavailable ({app.permission.state.value}).")
    app.conversation.subscribe(_print_status(app))
    app.main.start()


def run_listen(app: WordyApp) -> None:
    """Hands-free mode: say the wake phrase, then the word."""
    _prepare(app)
    app.main.post(app.conversation.enable_wake_word_mode)
    print("Say 'Hey Wordy' and then the word you want to learn. Ctrl+C to quit.")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        _shutdown(app)


def run_learn(app: WordyApp, timeout: Optional[float] = None) -> Optional[object]:
    """Run one manual turn and return the last non-Idle state it reached."""
    done = threading.Event()
    seen = {"last": None}

    def watch(state: object) -> None:
        if not isinstance(state, Idle):
            seen["last"] = state
        elif seen["last"] is not None:
            done.set()

    app.conversation.subscribe(watch)
    _prepare(app)
    app.main.post(app.conversation.start_conversation)
    try:
        done.wait(timeout)
    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        _shutdown(app)
    return seen["last"]


def _shutdown(app: WordyApp) -> None:
    stopped = threading.Event()

    def teardown() -> None:
        app.conversation.disable_wake_word_mode()
        app.conversation.reset()
        app.speech.stop()
        stopped.set()

    if app.main.running:
        app.main.post(teardown)
        stopped.wait(2.0)
    app.main.stop()
