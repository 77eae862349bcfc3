"""Conversation lifecycle module."""

from .controller import (
    ConversationLifecycle,
    ConversationStateError,
    IConversationLifecycle,
)

__all__ = ["ConversationLifecycle", "ConversationStateError", "IConversationLifecycle"]
