"""Conversation state machine tying the monitor, capture and speech together."""

from wordy.conversation.orchestrator import ConversationConfig, ConversationOrchestrator
from wordy.conversation.states import (
    AwaitingWord,
    ConfirmingWord,
    ConversationState,
    Failed,
    Idle,
    LookingUpWord,
    PromptingUser,
    SpeakingDefinition,
    describe,
)

__all__ = [
    "AwaitingWord",
    "ConfirmingWord",
    "ConversationConfig",
    "ConversationOrchestrator",
    "ConversationState",
    "Failed",
    "Idle",
    "LookingUpWord",
    "PromptingUser",
    "SpeakingDefinition",
    "describe",
]
