"""
Wake-phrase matching on recognizer transcripts.

A transcript matches if it contains a trigger phrase as a substring, or if
any single token contains a short alias ("wordie", "wordys" and a clipped
"word" all match). False positives are expected; the conversation confirms
the captured word out loud.
"""

from typing import Iterable, Tuple

from wordy.recognition.transcript import normalize

# Default trigger phrases (normalized: lowercase, single spaces)
TRIGGER_PHRASES: Tuple[str, ...] = ("hey wordy", "wordy", "hey word")

# Short aliases matched inside any whitespace-delimited token
SHORT_ALIASES: Tuple[str, ...] = ("wordy", "word")


class WakePhraseMatcher:
    """Substring/token heuristic for the wake phrase."""

    def __init__(
        self,
        phrases: Iterable[str] = TRIGGER_PHRASES,
        aliases: Iterable[str] = SHORT_ALIASES,
    ):
        self.phrases = tuple(p for p in (normalize(p) for p in phrases) if p)
        self.aliases = tuple(a for a in (normalize(a) for a in aliases) if a)

    def matches(self, transcript: str) -> bool:
        text = transcript.lower().strip()
        if not text:
            return False
        flat = " ".join(text.split())
        if any(phrase in flat for phrase in self.phrases):
            return True
        return any(alias in token for token in text.split() for alias in self.aliases)

    __call__ = matches
