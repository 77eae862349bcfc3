"""ConversationLifecycle implementation."""

from typing import Protocol

from ..chat import IChatService
from ..config import DEFAULT_CONVERSATION_TITLE
from ..logging_config import get_logger
from ..models import Conversation, ConversationState, Outcome

logger = get_logger(__name__)


class ConversationStateError(RuntimeError):
    """A lifecycle operation was called in a state that does not allow it."""


class IConversationLifecycle(Protocol):
    """Conversation identity: anonymous -> identified -> named -> deleted."""

    @property
    def conversation(self) -> Conversation:
        """Current conversation state."""
        ...

    def bind_existing(self, conversation_id: str, title: str | None = None) -> None:
        """Adopt an existing conversation. No network effect."""
        ...

    async def on_first_send_completed(self, conversation_id: str) -> Outcome:
        """Record the server-assigned id and apply an auto-generated name."""
        ...

    async def rename(self, new_title: str) -> Outcome:
        """Rename the conversation."""
        ...

    async def delete(self) -> Outcome:
        """Delete the conversation."""
        ...


class ConversationLifecycle:
    """Owns conversation identity and title."""

    def __init__(
        self,
        chat_service: IChatService,
        conversation: Conversation | None = None,
    ):
        self._chat = chat_service
        self._conversation = conversation or Conversation()

    @property
    def conversation(self) -> Conversation:
        return self._conversation

    @property
    def state(self) -> ConversationState:
        return self._conversation.state

    def bind_existing(self, conversation_id: str, title: str | None = None) -> None:
        """Adopt an existing conversation. No network effect."""
        if self.state != ConversationState.ANONYMOUS:
            raise ConversationStateError(
                f"Cannot bind {conversation_id}: conversation is {self.state.value}"
            )

        self._conversation.id = conversation_id
        self._chat.set_conversation_id(conversation_id)
        if title:
            self._conversation.title = title
            self._conversation.state = ConversationState.NAMED
        else:
            self._conversation.state = ConversationState.IDENTIFIED
        logger.info("Bound to existing conversation %s", conversation_id)

    async def on_first_send_completed(self, conversation_id: str) -> Outcome:
        """Record the server-assigned id and apply an auto-generated name.

        The id is kept even when naming fails; the title then stays at its
        default and the failure is reported in the outcome. A name that
        arrives after the conversation was renamed or deleted is dropped.
        """
        if self.state != ConversationState.ANONYMOUS:
            raise ConversationStateError(
                f"First send already completed: conversation is {self.state.value}"
            )

        self._conversation.id = conversation_id
        self._conversation.state = ConversationState.IDENTIFIED
        self._chat.set_conversation_id(conversation_id)
        logger.info("New conversation created: %s", conversation_id)

        try:
            name = await self._chat.rename_conversation(
                conversation_id, "", auto_generate=True
            )
        except Exception as e:
            logger.error(
                "Auto-naming failed for %s: %s", conversation_id, e, exc_info=True
            )
            return Outcome.failure(f"Auto-naming failed: {e}")

        if self.state != ConversationState.IDENTIFIED:
            logger.info(
                "Dropping auto-generated name for %s: conversation is %s",
                conversation_id,
                self.state.value,
            )
            return Outcome.skipped()

        name = (name or "").strip() or DEFAULT_CONVERSATION_TITLE
        logger.info("Auto-generated name for %s: %s", conversation_id, name)
        self._conversation.title = name
        self._conversation.state = ConversationState.NAMED
        return Outcome.success(title=name)

    async def rename(self, new_title: str) -> Outcome:
        """Rename the conversation. Blank titles are skipped."""
        new_title = new_title.strip()
        if not new_title:
            return Outcome.skipped()

        conversation_id = self._require_identity("rename")
        try:
            await self._chat.rename_conversation(conversation_id, new_title)
        except Exception as e:
            logger.error("Rename of %s failed: %s", conversation_id, e, exc_info=True)
            return Outcome.failure(f"Rename failed: {e}")

        self._conversation.title = new_title
        self._conversation.state = ConversationState.NAMED
        return Outcome.success("Rename successfully", title=new_title)

    async def delete(self) -> Outcome:
        """Delete the conversation. On success the owning screen should close."""
        conversation_id = self._require_identity("delete")
        try:
            await self._chat.delete_conversation(conversation_id)
        except Exception as e:
            logger.error("Delete of %s failed: %s", conversation_id, e, exc_info=True)
            return Outcome.failure(f"Delete failed: {e}")

        self._conversation.state = ConversationState.DELETED
        logger.info("Conversation %s deleted", conversation_id)
        return Outcome.success("Conversation deleted", close=True)

    def _require_identity(self, operation: str) -> str:
        if not self._conversation.is_identified:
            raise ConversationStateError(
                f"Cannot {operation}: conversation is {self.state.value}"
            )
        return self._conversation.id
