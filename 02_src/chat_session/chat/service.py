"""Chat service interface."""

from pathlib import Path
from typing import Protocol

from ..event_bus import FeedSubscription
from ..models import ChatMessage, UploadedFile


class ChatServiceError(RuntimeError):
    """A chat backend call failed (transport, HTTP status or stream error)."""


class IChatService(Protocol):
    """Network side of a conversation: send, history, rename, delete, stream."""

    @property
    def current_conversation_id(self) -> str | None:
        """Conversation the service is bound to."""
        ...

    def set_conversation_id(self, conversation_id: str | None) -> None:
        """Bind the service to a conversation before any other call."""
        ...

    def subscribe(self, conversation_id: str | None = None) -> FeedSubscription:
        """Subscribe to streamed assistant messages."""
        ...

    async def send_message(
        self, text: str, files: list[UploadedFile] | None = None
    ) -> ChatMessage:
        """Send user text, return the final assistant message."""
        ...

    async def get_message_history(self, conversation_id: str) -> list[ChatMessage]:
        """Fetch past messages, oldest first."""
        ...

    async def rename_conversation(
        self, conversation_id: str, name: str, auto_generate: bool = False
    ) -> str:
        """Rename a conversation. With auto_generate the name is derived server-side."""
        ...

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation."""
        ...

    async def upload_file(self, path: str | Path) -> UploadedFile:
        """Upload a local file for use as an attachment."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
