"""Top-level configuration: one frozen dataclass per subsystem, gathered here."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from wordy.audio.config import AudioConfig
from wordy.capture.session import CaptureConfig
from wordy.conversation.orchestrator import ConversationConfig
from wordy.recognition.engine import RecognizerConfig
from wordy.recognition.nemo_model import DEFAULT_MODEL
from wordy.speech.queue import SpeechConfig
from wordy.storage.word_store import DEFAULT_DB_PATH
from wordy.wakeword.monitor import MonitorConfig


@dataclass(frozen=True)
class WordyConfig:
    audio: AudioConfig = field(default_factory=AudioConfig)
    recognizer: RecognizerConfig = field(default_factory=RecognizerConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    conversation: ConversationConfig = field(default_factory=ConversationConfig)

    # NeMo checkpoint name or path to a .nemo file
    model: str = DEFAULT_MODEL
    # "cuda", "cpu" or None for auto
    model_device: Optional[str] = None
    db_path: Path = DEFAULT_DB_PATH
    dictionary_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en/"
