"""SessionController implementation."""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Protocol

from ..chat import IChatService
from ..lifecycle import ConversationLifecycle, ConversationStateError
from ..logging_config import conversation_logger, get_logger
from ..models import (
    ChatMessage,
    Conversation,
    ConversationState,
    Outcome,
    OutcomeStatus,
    UploadedFile,
)
from ..store import MessageStore, StoreListener
from ..stream import StreamReconciler


class ISessionController(Protocol):
    """One visible conversation: messages, busy flag, error, title."""

    async def submit(
        self, text: str, files: list[UploadedFile] | None = None
    ) -> Outcome:
        """Optimistically show the user message, send it, apply the reply."""
        ...

    async def load_history(self) -> Outcome:
        """Replace the messages with the conversation's history."""
        ...

    async def rename(self, new_title: str) -> Outcome:
        """Rename the conversation."""
        ...

    async def delete(self) -> Outcome:
        """Delete the conversation and close the session."""
        ...


class SessionController:
    """Keeps one conversation's message list consistent.

    Messages come from three places: the user's own submissions (inserted
    optimistically), the chat service's stream of assistant snapshots
    (applied by the StreamReconciler) and the history load. The controller
    also drives the conversation lifecycle: the first successful send of an
    anonymous conversation assigns its id and triggers auto-naming.

    Busy covers the send and history calls only. Auto-naming runs after busy
    has been cleared so input is not blocked while the title is generated.
    """

    def __init__(
        self,
        chat_service: IChatService,
        conversation_id: str | None = None,
        title: str | None = None,
        store: MessageStore | None = None,
        logger: logging.Logger | None = None,
    ):
        self._chat = chat_service
        self._store = store if store is not None else MessageStore()
        self._reconciler = StreamReconciler(self._store)
        self._lifecycle = ConversationLifecycle(chat_service)
        self._logger = logger or get_logger(__name__)
        self._log = conversation_logger(self._logger, conversation_id)

        self._busy = False
        self._error: str | None = None
        self._started = False
        self._closed = False

        self._chat.set_conversation_id(conversation_id)
        if conversation_id:
            self._lifecycle.bind_existing(conversation_id, title)
        elif title:
            self._lifecycle.conversation.title = title

    # Presentation surface

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._store.snapshot()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def error(self) -> str | None:
        """Last failure message, until dismissed or replaced."""
        return self._error

    @property
    def visible_error(self) -> str | None:
        """Error to show in place of the message list.

        A failed reload of a populated conversation keeps showing the old
        messages instead of blanking them.
        """
        return self._error if self._store.is_empty else None

    @property
    def title(self) -> str:
        return self._lifecycle.conversation.title

    @property
    def conversation(self) -> Conversation:
        return self._lifecycle.conversation

    @property
    def conversation_id(self) -> str | None:
        return self._lifecycle.conversation.id

    @property
    def state(self) -> ConversationState:
        return self._lifecycle.state

    @property
    def closed(self) -> bool:
        return self._closed

    def on_change(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener for message list changes."""
        return self._store.subscribe(listener)

    def dismiss_error(self) -> None:
        self._error = None

    # Lifecycle

    async def start(self) -> None:
        """Subscribe to the reply stream and load history of a bound conversation."""
        if self._started or self._closed:
            return
        self._started = True

        self._reconciler.start(self._chat.subscribe(self.conversation_id))
        if self._lifecycle.conversation.is_identified:
            await self.load_history()

    async def close(self) -> None:
        """Unsubscribe from the stream and discard the message list."""
        if self._closed:
            return
        self._closed = True

        await self._reconciler.stop()
        self._store.close()
        self._log.info("Session closed")

    async def __aenter__(self) -> "SessionController":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Operations

    async def submit(
        self, text: str, files: list[UploadedFile] | None = None
    ) -> Outcome:
        """Optimistically show the user message, send it, apply the reply.

        A failed send keeps the user message visible and is not retried.
        """
        if not text.strip():
            return Outcome.skipped()
        if self._closed:
            return Outcome.skipped("Session closed")

        files = list(files or [])
        was_anonymous = self.state == ConversationState.ANONYMOUS

        self._log.info("Submitting message, file count: %d", len(files))
        if files:
            self._log.info("Files: %s", ", ".join(f.name for f in files))

        user_message = ChatMessage(
            content=text,
            is_user=True,
            timestamp=datetime.now(timezone.utc),
            conversation_id=self.conversation_id,
            files=files,
        )
        self._store.append(user_message)
        self._busy = True

        try:
            result = await self._chat.send_message(text, files=files or None)
        except Exception as e:
            self._log.error("Send message failed: %s", e, exc_info=True)
            self._error = f"Send message failed: {e}"
            if not self._closed:
                await self._reconciler.settle()
                self._finish_partial_reply()
            return Outcome.failure(self._error)
        finally:
            self._busy = False

        if self._closed:
            self._log.info("Send completed after session closed, result dropped")
            return Outcome.skipped("Session closed")

        # Let streamed snapshots land first; a reply that never came through
        # the stream is applied directly.
        await self._reconciler.settle()
        if self._store.last is user_message:
            self._reconciler.apply(result)

        if (
            was_anonymous
            and result.conversation_id
            and self.state == ConversationState.ANONYMOUS
        ):
            return await self._identify(result.conversation_id)

        return Outcome.success(title=self.title)

    async def load_history(self) -> Outcome:
        """Replace the message list with the conversation's history."""
        if not self._lifecycle.conversation.is_identified:
            raise ConversationStateError(
                f"Cannot load history: conversation is {self.state.value}"
            )
        conversation_id = self.conversation_id

        self._log.info("Loading history for %s", conversation_id)
        self._busy = True
        self._error = None
        try:
            messages = await self._chat.get_message_history(conversation_id)
        except Exception as e:
            self._log.error("Failed to load history: %s", e, exc_info=True)
            self._error = f"Load failed: {e}"
            return Outcome.failure(self._error)
        finally:
            self._busy = False

        self._store.clear_and_load(messages)
        self._log.info("Loaded %d history messages", len(messages))
        return Outcome.success()

    async def rename(self, new_title: str) -> Outcome:
        """Rename the conversation."""
        outcome = await self._lifecycle.rename(new_title)
        if outcome.status == OutcomeStatus.FAILED:
            self._error = outcome.message
        return outcome

    async def delete(self) -> Outcome:
        """Delete the conversation. A successful delete closes the session."""
        outcome = await self._lifecycle.delete()
        if outcome.status == OutcomeStatus.FAILED:
            self._error = outcome.message
        elif outcome.close:
            await self.close()
        return outcome

    def _finish_partial_reply(self) -> None:
        # A stream cut off by a failed send leaves its last snapshot open
        last = self._store.last
        if last is not None and not last.is_user and last.is_streaming:
            self._reconciler.apply(replace(last, is_streaming=False))

    async def _identify(self, conversation_id: str) -> Outcome:
        self._log = conversation_logger(self._logger, conversation_id)
        subscription = self._reconciler.subscription
        if subscription is not None:
            subscription.rebind(conversation_id)

        naming = await self._lifecycle.on_first_send_completed(conversation_id)
        if naming.status == OutcomeStatus.FAILED:
            self._error = naming.message
            return Outcome.success(naming.message, title=self.title)
        return Outcome.success(title=self.title)
