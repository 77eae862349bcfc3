"""Message-related data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class UploadedFile:
    """An attachment reference: display name plus the server-side handle."""

    name: str
    file_id: str
    type: str = "document"  # "document", "image", "audio", "video"
    size: int | None = None
    mime_type: str | None = None


@dataclass
class ChatMessage:
    """A single message shown in a conversation."""

    content: str
    is_user: bool
    timestamp: datetime
    is_streaming: bool = False
    conversation_id: str | None = None
    files: list[UploadedFile] = field(default_factory=list)
    message_id: str | None = None
