"""Chat session controller."""

from .app import Application, IApplication
from .chat import (
    ChatServiceError,
    ConversationBook,
    HttpChatService,
    IChatService,
    LLMChatService,
)
from .event_bus import FeedSubscription, IMessageFeed, MessageFeed
from .lifecycle import ConversationLifecycle, ConversationStateError
from .llm import ILLMProvider, LLMProvider
from .models import (
    ChatMessage,
    ChatSettings,
    Conversation,
    ConversationState,
    Outcome,
    OutcomeStatus,
    UploadedFile,
)
from .session import ISessionController, SessionController
from .settings import ISettingsStore, SettingsStore
from .store import MessageStore
from .stream import StreamReconciler

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "ChatMessage",
    "UploadedFile",
    "Conversation",
    "ConversationState",
    "Outcome",
    "OutcomeStatus",
    "ChatSettings",
    # Components
    "MessageStore",
    "IMessageFeed",
    "MessageFeed",
    "FeedSubscription",
    "StreamReconciler",
    "ConversationLifecycle",
    "ConversationStateError",
    "ISessionController",
    "SessionController",
    "IChatService",
    "ChatServiceError",
    "HttpChatService",
    "LLMChatService",
    "ConversationBook",
    "ILLMProvider",
    "LLMProvider",
    "ISettingsStore",
    "SettingsStore",
]
