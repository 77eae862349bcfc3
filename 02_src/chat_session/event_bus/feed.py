"""Broadcast feed of streamed assistant messages."""

import asyncio
from typing import Protocol

from ..logging_config import get_logger
from ..models import ChatMessage

logger = get_logger(__name__)


class IMessageFeed(Protocol):
    """In-memory broadcast of ChatMessages to scoped subscriptions."""

    def subscribe(self, conversation_id: str | None = None) -> "FeedSubscription":
        """Open a subscription scoped to a conversation."""
        ...

    async def publish(self, message: ChatMessage) -> None:
        """Deliver a message to every subscription whose scope accepts it."""
        ...


class FeedSubscription:
    """Ordered async iterator over feed messages for one conversation.

    A subscription scoped to ``None`` accepts every message; this is the
    state of an anonymous conversation whose id the server has not assigned
    yet. Once scoped to an id it also accepts messages without an id.
    """

    def __init__(self, feed: "MessageFeed", conversation_id: str | None = None):
        self._feed = feed
        self._conversation_id = conversation_id
        self._queue: asyncio.Queue[ChatMessage | None] = asyncio.Queue()
        self._closed = False

    @property
    def conversation_id(self) -> str | None:
        return self._conversation_id

    @property
    def closed(self) -> bool:
        return self._closed

    def rebind(self, conversation_id: str | None) -> None:
        """Move the subscription to another conversation scope."""
        self._conversation_id = conversation_id

    def accepts(self, message: ChatMessage) -> bool:
        if self._conversation_id is None or message.conversation_id is None:
            return True
        return message.conversation_id == self._conversation_id

    def deliver(self, message: ChatMessage) -> None:
        """Queue a message if the subscription is open and in scope."""
        if self._closed or not self.accepts(message):
            return
        self._queue.put_nowait(message)

    def task_done(self) -> None:
        """Mark one received message as fully applied."""
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every delivered message has been marked done."""
        await self._queue.join()

    def close(self) -> None:
        """Unsubscribe and end iteration. Pending messages are dropped."""
        if self._closed:
            return
        self._closed = True
        self._feed.unsubscribe(self)

        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
        self._queue.put_nowait(None)

    def __aiter__(self) -> "FeedSubscription":
        return self

    async def __anext__(self) -> ChatMessage:
        message = await self._queue.get()
        if message is None:
            self._queue.task_done()
            raise StopAsyncIteration
        return message

    async def __aenter__(self) -> "FeedSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class MessageFeed:
    """In-memory broadcast feed."""

    def __init__(self):
        self._subscriptions: list[FeedSubscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, conversation_id: str | None = None) -> FeedSubscription:
        """Open a subscription scoped to a conversation."""
        subscription = FeedSubscription(self, conversation_id)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: FeedSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def publish(self, message: ChatMessage) -> None:
        """Deliver a message to every subscription whose scope accepts it."""
        for subscription in list(self._subscriptions):
            try:
                subscription.deliver(message)
            except Exception as e:
                logger.error("Error delivering to subscription: %s", e)
