"""Chat service over a Dify-style HTTP API."""

import json
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator

import httpx

from ..config import DEFAULT_CONVERSATION_TITLE, HISTORY_PAGE_LIMIT, REQUEST_TIMEOUT
from ..event_bus import FeedSubscription, MessageFeed
from ..logging_config import get_logger
from ..models import ChatMessage, ChatSettings, UploadedFile
from .service import ChatServiceError

logger = get_logger(__name__)

# Stream events whose "answer" field is a text delta
_ANSWER_EVENTS = {"message", "agent_message"}


def _timestamp(created_at: Any) -> datetime:
    """Convert a unix timestamp from the API, falling back to now."""
    if isinstance(created_at, (int, float)):
        return datetime.fromtimestamp(created_at, tz=timezone.utc)
    return datetime.now(timezone.utc)


def _file_type(mime_type: str) -> str:
    for kind in ("image", "audio", "video"):
        if mime_type.startswith(f"{kind}/"):
            return kind
    return "document"


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("code") or body)
    return str(body)


class HttpChatService:
    """Chat backend reached over HTTP, streaming replies as server-sent events."""

    def __init__(
        self,
        settings: ChatSettings,
        client: httpx.AsyncClient | None = None,
        feed: MessageFeed | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._feed = feed or MessageFeed()
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
        """Send user text; publish each cumulative snapshot, return the final one."""
        payload: dict[str, Any] = {
            "inputs": {},
            "query": text,
            "response_mode": "streaming",
            "conversation_id": self._conversation_id or "",
            "user": self._settings.user_id,
        }
        if files:
            payload["files"] = [
                {
                    "type": f.type,
                    "transfer_method": "local_file",
                    "upload_file_id": f.file_id,
                }
                for f in files
            ]

        answer = ""
        conversation_id = self._conversation_id
        message_id: str | None = None
        final: ChatMessage | None = None

        try:
            async with self._client.stream(
                "POST",
                self._url("chat-messages"),
                json=payload,
                headers=self._headers(),
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise ChatServiceError(
                        f"HTTP {response.status_code}: {_error_detail(response)}"
                    )

                async for event in self._iter_events(response):
                    kind = event.get("event")
                    conversation_id = event.get("conversation_id") or conversation_id
                    message_id = event.get("message_id") or message_id

                    if kind in _ANSWER_EVENTS:
                        answer += event.get("answer") or ""
                        await self._feed.publish(
                            ChatMessage(
                                content=answer,
                                is_user=False,
                                timestamp=_timestamp(event.get("created_at")),
                                is_streaming=True,
                                conversation_id=conversation_id,
                                message_id=message_id,
                            )
                        )
                    elif kind == "message_end":
                        final = ChatMessage(
                            content=answer,
                            is_user=False,
                            timestamp=_timestamp(event.get("created_at")),
                            is_streaming=False,
                            conversation_id=conversation_id,
                            message_id=message_id,
                        )
                    elif kind == "error":
                        raise ChatServiceError(
                            event.get("message") or "Stream reported an error"
                        )
        except httpx.HTTPError as e:
            raise ChatServiceError(f"Chat request failed: {e}") from e

        if final is None:
            logger.warning("Stream ended without message_end event")
            final = ChatMessage(
                content=answer,
                is_user=False,
                timestamp=datetime.now(timezone.utc),
                conversation_id=conversation_id,
                message_id=message_id,
            )
        await self._feed.publish(final)

        if conversation_id and self._conversation_id is None:
            logger.info("Server assigned conversation %s", conversation_id)
            self._conversation_id = conversation_id

        return final

    async def get_message_history(self, conversation_id: str) -> list[ChatMessage]:
        """Fetch past messages, oldest first."""
        data = await self._request(
            "GET",
            "messages",
            params={
                "conversation_id": conversation_id,
                "user": self._settings.user_id,
                "limit": HISTORY_PAGE_LIMIT,
            },
        )

        # Each record is one exchange: the user's query and the answer to it
        records = sorted(data.get("data", []), key=lambda r: r.get("created_at") or 0)
        messages: list[ChatMessage] = []
        for record in records:
            ts = _timestamp(record.get("created_at"))
            files = [
                UploadedFile(
                    name=f.get("filename") or f.get("id", ""),
                    file_id=f.get("id", ""),
                    type=f.get("type", "document"),
                )
                for f in record.get("message_files") or []
                if f.get("belongs_to", "user") == "user"
            ]
            if record.get("query"):
                messages.append(
                    ChatMessage(
                        content=record["query"],
                        is_user=True,
                        timestamp=ts,
                        conversation_id=conversation_id,
                        files=files,
                        message_id=record.get("id"),
                    )
                )
            if record.get("answer"):
                messages.append(
                    ChatMessage(
                        content=record["answer"],
                        is_user=False,
                        timestamp=ts,
                        conversation_id=conversation_id,
                        message_id=record.get("id"),
                    )
                )

        return messages

    async def rename_conversation(
        self, conversation_id: str, name: str, auto_generate: bool = False
    ) -> str:
        data = await self._request(
            "POST",
            f"conversations/{conversation_id}/name",
            json={
                "name": name,
                "auto_generate": auto_generate,
                "user": self._settings.user_id,
            },
        )
        returned = (data.get("name") or "").strip()
        if auto_generate:
            return returned or DEFAULT_CONVERSATION_TITLE
        return returned or name

    async def delete_conversation(self, conversation_id: str) -> None:
        await self._request(
            "DELETE",
            f"conversations/{conversation_id}",
            json={"user": self._settings.user_id},
        )

    async def upload_file(self, path: str | Path) -> UploadedFile:
        """Upload a local file, return its attachment reference."""
        path = Path(path)
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        content = path.read_bytes()

        data = await self._request(
            "POST",
            "files/upload",
            files={"file": (path.name, content, mime_type)},
            data={"user": self._settings.user_id},
        )
        if "id" not in data:
            raise ChatServiceError(f"Upload of {path.name} returned no file id")

        return UploadedFile(
            name=data.get("name") or path.name,
            file_id=data["id"],
            type=_file_type(mime_type),
            size=data.get("size", len(content)),
            mime_type=data.get("mime_type") or mime_type,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._settings.api_key}"}

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = await self._client.request(
                method, self._url(path), headers=self._headers(), **kwargs
            )
        except httpx.HTTPError as e:
            raise ChatServiceError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            raise ChatServiceError(
                f"HTTP {response.status_code}: {_error_detail(response)}"
            )
        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise ChatServiceError(f"Invalid JSON from {path}") from e

    async def _iter_events(self, response: httpx.Response) -> AsyncIterator[dict]:
        async for line in response.aiter_lines():
            line = line.strip()
            if not line.startswith("data:"):
                continue
            data = line[len("data:"):].strip()
            if not data:
                continue
            try:
                yield json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed stream line: %s", data[:100])
