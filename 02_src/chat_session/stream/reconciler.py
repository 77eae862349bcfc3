"""StreamReconciler implementation."""

import asyncio

from ..event_bus import FeedSubscription
from ..logging_config import get_logger
from ..models import ChatMessage
from ..store import MessageStore

logger = get_logger(__name__)


class StreamReconciler:
    """Applies streamed assistant snapshots to a MessageStore.

    Each snapshot carries the full text accumulated so far, so an assistant
    snapshot replaces a trailing assistant message instead of adding another
    bubble. A user message at the end of the store is never overwritten.
    """

    def __init__(self, store: MessageStore):
        self._store = store
        self._subscription: FeedSubscription | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def subscription(self) -> FeedSubscription | None:
        return self._subscription

    def apply(self, event: ChatMessage) -> None:
        """Replace the trailing assistant message or append."""
        last = self._store.last
        if not event.is_user and last is not None and not last.is_user:
            self._store.replace_last(event)
        else:
            self._store.append(event)

    def start(self, subscription: FeedSubscription) -> None:
        """Consume a feed subscription in the background."""
        if self._subscription is not None:
            return

        self._subscription = subscription
        self._task = asyncio.create_task(self._consume(subscription))

    async def settle(self) -> None:
        """Wait until every message delivered so far has been applied."""
        if self._subscription is None or self._subscription.closed:
            return
        if not self.running:
            return
        await self._subscription.join()

    async def stop(self) -> None:
        """Unsubscribe and stop consuming."""
        if self._subscription is not None:
            self._subscription.close()

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._subscription = None
        self._task = None

    async def _consume(self, subscription: FeedSubscription) -> None:
        async for event in subscription:
            try:
                self.apply(event)
            except Exception as e:
                logger.error("Failed to apply stream event: %s", e, exc_info=True)
            finally:
                subscription.task_done()
