"""Connection settings data model."""

from dataclasses import dataclass


@dataclass
class ChatSettings:
    """Where the chat backend lives and who is talking to it."""

    base_url: str
    api_key: str
    user_id: str
