"""Chat service module."""

from .http_service import HttpChatService
from .llm_service import ConversationBook, LLMChatService
from .service import ChatServiceError, IChatService

__all__ = [
    "ChatServiceError",
    "IChatService",
    "HttpChatService",
    "LLMChatService",
    "ConversationBook",
]
