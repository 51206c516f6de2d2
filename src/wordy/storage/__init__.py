"""Local persistence of learned words."""

from wordy.storage.word_store import WordRecord, WordStore

__all__ = ["WordRecord", "WordStore"]
