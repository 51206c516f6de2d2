"""Text-to-speech backend and the ordered synthesis queue."""

from wordy.speech.queue import SpeechConfig, SynthesisQueue
from wordy.speech.synthesizer import SpeechSynthesizer, Utterance

__all__ = ["SpeechConfig", "SpeechSynthesizer", "SynthesisQueue", "Utterance"]
