"""Error taxonomy shared by the conversation pipeline.

Every failure that can end a conversation turn is a ``WordyError``. The
orchestrator turns these into a ``Failed(message)`` state and speaks
``error.apology`` so the user gets audible feedback without a screen.
"""

from __future__ import annotations

from typing import Optional


class WordyError(Exception):
    """Base class for pipeline errors."""

    @property
    def message(self) -> str:
        return str(self)

    @property
    def apology(self) -> str:
        return f"Sorry, there was an error. {self.message}"


class PermissionDenied(WordyError):
    """Speech recognition / microphone access is not authorized."""

    def __init__(self, message: str = "Speech recognition not authorized"):
        super().__init__(message)


class EngineStartFailure(WordyError):
    """Audio hardware or audio session could not be activated."""


class MicrophoneBusy(EngineStartFailure):
    """A second consumer tried to install a tap on the single input engine."""

    def __init__(self, owner: str, holder: str):
        super().__init__(f"Microphone is in use by {holder} (requested by {owner})")
        self.owner = owner
        self.holder = holder


class RecognitionFailure(WordyError):
    """The speech recognition engine failed mid-session."""


class RecognitionCancelled(RecognitionFailure):
    """The recognition task was cancelled by the user or the system.

    Never a reason to retry.
    """

    def __init__(self, message: str = "Recognition cancelled"):
        super().__init__(message)


class EmptyCapture(WordyError):
    """Nothing intelligible was heard."""

    def __init__(self, message: str = "I didn't catch a word"):
        super().__init__(message)


class DictionaryError(WordyError):
    """Base class for dictionary lookup failures."""


class LookupNotFound(DictionaryError):
    """The dictionary has no usable definition for the word."""

    def __init__(self, message: str = "Word not found in dictionary", word: str = ""):
        super().__init__(message)
        self.word = word

    @property
    def apology(self) -> str:
        if self.word:
            return f"Sorry, I couldn't find a definition for {self.word}."
        return super().apology


class LookupTransportError(DictionaryError):
    """Network or server failure while talking to the dictionary."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SynthesisInterrupted(WordyError):
    """An utterance was pre-empted or stopped before it finished. Not a true error.

    Passed to ``SynthesisQueue.on_cancelled`` as the reason, never raised.
    """

    def __init__(self, message: str = "Speech interrupted", utterance_id: Optional[int] = None):
        super().__init__(message)
        self.utterance_id = utterance_id
