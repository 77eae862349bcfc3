"""Core data models for the chat session controller."""

from .messages import ChatMessage, UploadedFile
from .conversation import Conversation, ConversationState, Outcome, OutcomeStatus
from .settings import ChatSettings

__all__ = [
    # Messages
    "ChatMessage",
    "UploadedFile",
    # Conversation
    "Conversation",
    "ConversationState",
    "Outcome",
    "OutcomeStatus",
    # Settings
    "ChatSettings",
]
