"""Speech-to-text engine, transcript helpers and the shared listening session."""

from wordy.recognition.engine import (
    RecognitionRequest,
    RecognitionResult,
    RecognitionTask,
    RecognizerConfig,
    StreamingRecognizer,
)
from wordy.recognition.nemo_model import NemoTranscriber
from wordy.recognition.session import ListeningSession
from wordy.recognition.transcript import extract_word, normalize, stitch_transcript

__all__ = [
    "ListeningSession",
    "NemoTranscriber",
    "RecognitionRequest",
    "RecognitionResult",
    "RecognitionTask",
    "RecognizerConfig",
    "StreamingRecognizer",
    "extract_word",
    "normalize",
    "stitch_transcript",
]
