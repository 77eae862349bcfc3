"""Application bootstrap and lifecycle management."""

import os
import uuid
from typing import Callable, Protocol

from .chat import ConversationBook, HttpChatService, IChatService, LLMChatService
from .config import CHAT_BACKEND, resolve_db_path
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .models import ChatSettings
from .session import SessionController
from .settings import ISettingsStore, SettingsStore

logger = get_logger(__name__)


ChatServiceFactory = Callable[[ChatSettings], IChatService]


class IApplication(Protocol):
    """Bootstrap, settings and the registry of open sessions."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Close every session, then shut down."""
        ...

    async def open_session(
        self, conversation_id: str | None = None, title: str | None = None
    ) -> tuple[str, SessionController]:
        """Open a session for a new or existing conversation."""
        ...

    def get_session(self, session_id: str) -> SessionController:
        """Look up an open session."""
        ...

    async def close_session(self, session_id: str) -> None:
        """Tear down a session and its chat service."""
        ...

    @property
    def settings_store(self) -> ISettingsStore:
        """Settings store instance."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        chat_service_factory: ChatServiceFactory | None = None,
        backend: str | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._backend = backend or CHAT_BACKEND
        self._service_factory = chat_service_factory

        # Components (will be initialized in start())
        self._settings_store: ISettingsStore | None = None
        self._llm: ILLMProvider | None = None
        self._book = ConversationBook()

        self._sessions: dict[str, SessionController] = {}
        self._services: dict[str, IChatService] = {}

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Settings (no dependencies)
        self._settings_store = SettingsStore(self._db_path)
        await self._settings_store.init()
        logger.info("Settings store initialized")

        # 2. Chat backend (LLM backend needs ANTHROPIC_API_KEY)
        if self._service_factory is None:
            self._service_factory = self._default_service_factory()
        logger.info("Chat backend ready: %s", self._backend)

    async def stop(self) -> None:
        """Close every session, then shut down."""
        for session_id in list(self._sessions):
            await self.close_session(session_id)

        if self._settings_store:
            await self._settings_store.close()
            self._settings_store = None
            logger.info("Settings store closed")

    async def open_session(
        self, conversation_id: str | None = None, title: str | None = None
    ) -> tuple[str, SessionController]:
        """Open a session for a new or existing conversation."""
        if self._service_factory is None:
            raise RuntimeError("Application not started")

        settings = await self.settings_store.get_settings()
        service = self._service_factory(settings)
        session = SessionController(service, conversation_id=conversation_id, title=title)

        session_id = str(uuid.uuid4())
        self._sessions[session_id] = session
        self._services[session_id] = service
        logger.info("Opened session %s (conversation %s)", session_id, conversation_id)

        await session.start()
        return session_id, session

    def get_session(self, session_id: str) -> SessionController:
        """Look up an open session. Raises KeyError if unknown."""
        return self._sessions[session_id]

    async def close_session(self, session_id: str) -> None:
        """Tear down a session and its chat service."""
        session = self._sessions.pop(session_id)
        service = self._services.pop(session_id)
        await session.close()
        await service.close()
        logger.info("Closed session %s", session_id)

    @property
    def session_ids(self) -> list[str]:
        return list(self._sessions)

    @property
    def settings_store(self) -> ISettingsStore:
        """Get settings store instance."""
        if not self._settings_store:
            raise RuntimeError("Application not started")
        return self._settings_store

    def _default_service_factory(self) -> ChatServiceFactory:
        if self._backend == "http":
            return lambda settings: HttpChatService(settings)

        if self._backend == "llm":
            self._llm = LLMProvider()
            llm = self._llm
            book = self._book
            return lambda settings: LLMChatService(llm, book=book)

        raise ValueError(f"Unknown chat backend: {self._backend}")
