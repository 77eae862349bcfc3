"""Message store module."""

from .message_store import MessageStore, StoreListener

__all__ = ["MessageStore", "StoreListener"]
