"""Conversation states. Exactly one is current at a time."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class PromptingUser:
    pass


@dataclass(frozen=True)
class AwaitingWord:
    pass


@dataclass(frozen=True)
class ConfirmingWord:
    word: str


@dataclass(frozen=True)
class LookingUpWord:
    word: str


@dataclass(frozen=True)
class SpeakingDefinition:
    word: str
    definition: str


@dataclass(frozen=True)
class Failed:
    message: str


ConversationState = Union[
    Idle, PromptingUser, AwaitingWord, ConfirmingWord, LookingUpWord, SpeakingDefinition, Failed
]


def describe(state: ConversationState, wake_word_mode: bool = False) -> str:
    """Human-readable status line for a state."""
    if isinstance(state, Idle):
        if wake_word_mode:
            return "Say 'Hey Wordy' to learn a new word"
        return "Tap to start learning a new word"
    if isinstance(state, PromptingUser):
        return "Say a word you'd like to learn..."
    if isinstance(state, AwaitingWord):
        return "Listening for your word..."
    if isinstance(state, ConfirmingWord):
        return f"Confirming: {state.word}"
    if isinstance(state, LookingUpWord):
        return f"Looking up: {state.word}"
    if isinstance(state, SpeakingDefinition):
        return "Speaking definition..."
    if isinstance(state, Failed):
        return f"Error: {state.message}"
    raise TypeError(f"Unknown conversation state: {state!r}")
