"""Wordy: hands-free vocabulary assistant.

Say the wake phrase, say a word, hear it confirmed and defined.
"""

__version__ = "0.1.0"
