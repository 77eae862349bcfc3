"""MessageStore implementation."""

from typing import Callable, Iterable

from ..logging_config import get_logger
from ..models import ChatMessage

logger = get_logger(__name__)


StoreListener = Callable[[tuple[ChatMessage, ...]], None]


class MessageStore:
    """Ordered messages of the active conversation.

    Append-only apart from ``replace_last``. Listeners are notified
    synchronously after every mutation, in mutation order. Once closed, the
    store ignores mutations so late network results cannot touch a discarded
    conversation.
    """

    def __init__(self, messages: Iterable[ChatMessage] | None = None):
        self._messages: list[ChatMessage] = list(messages or [])
        self._listeners: list[StoreListener] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def is_empty(self) -> bool:
        return not self._messages

    @property
    def last(self) -> ChatMessage | None:
        """Most recent message, or None when empty."""
        return self._messages[-1] if self._messages else None

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> tuple[ChatMessage, ...]:
        """Read-only ordered view for rendering."""
        return tuple(self._messages)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def append(self, message: ChatMessage) -> None:
        """Add a message to the end."""
        if self._ignored("append"):
            return
        self._messages.append(message)
        self._notify()

    def replace_last(self, message: ChatMessage) -> None:
        """Replace the final message wholesale."""
        if self._ignored("replace_last"):
            return
        if not self._messages:
            raise IndexError("replace_last on an empty MessageStore")
        self._messages[-1] = message
        self._notify()

    def clear_and_load(self, messages: Iterable[ChatMessage]) -> None:
        """Discard current content and install a new sequence in one step."""
        if self._ignored("clear_and_load"):
            return
        self._messages = list(messages)
        self._notify()

    def close(self) -> None:
        """Tear down: drop listeners and ignore further mutations."""
        self._closed = True
        self._listeners.clear()

    def _ignored(self, operation: str) -> bool:
        if self._closed:
            logger.debug("Ignoring %s on closed MessageStore", operation)
        return self._closed

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error("Error in store listener %s: %s", listener, e)
