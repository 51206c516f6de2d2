"""Remote dictionary lookup."""

from wordy.dictionary.client import DictionaryClient

__all__ = ["DictionaryClient"]
