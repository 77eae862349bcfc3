"""Chat service answered locally by an LLM provider."""

import mimetypes
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from ..config import DEFAULT_CONVERSATION_TITLE
from ..event_bus import FeedSubscription, MessageFeed
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import ChatMessage, UploadedFile
from .service import ChatServiceError

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant."
TITLE_PROMPT = (
    "Write a short title (at most six words) for the conversation below. "
    "Reply with the title only, without quotes."
)


@dataclass
class StoredConversation:
    """Server-side record of one conversation."""

    id: str
    name: str = DEFAULT_CONVERSATION_TITLE
    messages: list[ChatMessage] = field(default_factory=list)


class ConversationBook:
    """In-memory conversations shared by every LLMChatService of a process."""

    def __init__(self):
        self._conversations: dict[str, StoredConversation] = {}

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def create(self) -> StoredConversation:
        conversation = StoredConversation(id=str(uuid.uuid4()))
        self._conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: str) -> StoredConversation:
        try:
            return self._conversations[conversation_id]
        except KeyError:
            raise ChatServiceError(f"Conversation {conversation_id} not found") from None

    def delete(self, conversation_id: str) -> None:
        self.get(conversation_id)
        del self._conversations[conversation_id]


def _prompt_content(message: ChatMessage) -> str:
    if not message.files:
        return message.content
    names = ", ".join(f.name for f in message.files)
    return f"{message.content}\n\n[Attached files: {names}]"


class LLMChatService:
    """Answers with an LLM, streaming cumulative snapshots on the feed."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        book: ConversationBook | None = None,
        feed: MessageFeed | None = None,
        max_tokens: int = 1024,
    ):
        self._llm = llm_provider
        self._book = book if book is not None else ConversationBook()
        self._feed = feed or MessageFeed()
        self._max_tokens = max_tokens
        self._conversation_id: str | None = None

    @property
    def current_conversation_id(self) -> str | None:
        return self._conversation_id

    @property
    def feed(self) -> MessageFeed:
        return self._feed

    def set_conversation_id(self, conversation_id: str | None) -> None:
        self._conversation_id = conversation_id

    def subscribe(self, conversation_id: str | None = None) -> FeedSubscription:
        return self._feed.subscribe(conversation_id)

    async def send_message(
        self, text: str, files: list[UploadedFile] | None = None
    ) -> ChatMessage:
        created = self._conversation_id is None
        if not created:
            conversation = self._book.get(self._conversation_id)
        else:
            conversation = self._book.create()
            logger.info("Created conversation %s", conversation.id)

        user_message = ChatMessage(
            content=text,
            is_user=True,
            timestamp=datetime.now(timezone.utc),
            conversation_id=conversation.id,
            files=list(files or []),
        )
        conversation.messages.append(user_message)
        context = [
            {"role": "user" if m.is_user else "assistant", "content": _prompt_content(m)}
            for m in conversation.messages
        ]

        answer = ""
        started = datetime.now(timezone.utc)
        try:
            async for delta in self._llm.stream(
                messages=context, system=SYSTEM_PROMPT, max_tokens=self._max_tokens
            ):
                answer += delta
                await self._feed.publish(
                    ChatMessage(
                        content=answer,
                        is_user=False,
                        timestamp=started,
                        is_streaming=True,
                        conversation_id=conversation.id,
                    )
                )
        except Exception as e:
            # Keep the stored exchange well-formed for the next request
            conversation.messages.remove(user_message)
            if created:
                self._book.delete(conversation.id)
            raise ChatServiceError(str(e)) from e

        final = ChatMessage(
            content=answer,
            is_user=False,
            timestamp=started,
            conversation_id=conversation.id,
        )
        conversation.messages.append(final)
        await self._feed.publish(final)

        if self._conversation_id is None:
            self._conversation_id = conversation.id
        return final

    async def get_message_history(self, conversation_id: str) -> list[ChatMessage]:
        return list(self._book.get(conversation_id).messages)

    async def rename_conversation(
        self, conversation_id: str, name: str, auto_generate: bool = False
    ) -> str:
        conversation = self._book.get(conversation_id)

        if auto_generate:
            transcript = "\n".join(
                f"{'User' if m.is_user else 'Assistant'}: {m.content}"
                for m in conversation.messages[:4]
            )
            try:
                title = await self._llm.complete(
                    messages=[{"role": "user", "content": transcript}],
                    system=TITLE_PROMPT,
                    max_tokens=32,
                )
            except Exception as e:
                raise ChatServiceError(str(e)) from e
            name = title.strip().strip('"') or DEFAULT_CONVERSATION_TITLE

        conversation.name = name
        return name

    async def delete_conversation(self, conversation_id: str) -> None:
        self._book.delete(conversation_id)

    async def upload_file(self, path: str | Path) -> UploadedFile:
        """Local files are referenced in place by their resolved path."""
        path = Path(path)
        if not path.is_file():
            raise ChatServiceError(f"File not found: {path}")
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return UploadedFile(
            name=path.name,
            file_id=str(path.resolve()),
            size=path.stat().st_size,
            mime_type=mime_type,
        )

    async def close(self) -> None:
        return
