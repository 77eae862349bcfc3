"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def make_message():
    """Factory for ChatMessages with a fixed timestamp."""
    from chat_session.models import ChatMessage

    ts = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def factory(content: str, is_user: bool = False, **kwargs) -> ChatMessage:
        kwargs.setdefault("timestamp", ts)
        return ChatMessage(content=content, is_user=is_user, **kwargs)

    return factory


@pytest.fixture
def store():
    """Create an empty MessageStore."""
    from chat_session.store import MessageStore

    return MessageStore()


@pytest.fixture
def feed():
    """Create a MessageFeed."""
    from chat_session.event_bus import MessageFeed

    return MessageFeed()


@pytest.fixture
def mock_chat(feed, make_message):
    """Create mock chat service backed by a real feed."""
    chat = Mock()
    chat.subscribe = Mock(side_effect=feed.subscribe)
    chat.send_message = AsyncMock(
        return_value=make_message("Test response", conversation_id="c1")
    )
    chat.get_message_history = AsyncMock(return_value=[])
    chat.rename_conversation = AsyncMock(return_value="Greeting Chat")
    chat.delete_conversation = AsyncMock(return_value=None)
    chat.upload_file = AsyncMock()
    chat.close = AsyncMock()
    return chat


@pytest_asyncio.fixture
async def session(mock_chat):
    """Create a started SessionController for a new conversation."""
    from chat_session.session import SessionController

    s = SessionController(mock_chat)
    await s.start()
    yield s
    await s.close()


@pytest_asyncio.fixture
async def bound_session(mock_chat):
    """Create a started SessionController bound to conversation c1."""
    from chat_session.session import SessionController

    s = SessionController(mock_chat, conversation_id="c1", title="Existing")
    await s.start()
    yield s
    await s.close()


@pytest_asyncio.fixture
async def settings_store():
    """Create in-memory settings store for testing."""
    from chat_session.settings import SettingsStore

    st = SettingsStore(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def mock_llm():
    """Create mock LLM provider streaming 'Hel' + 'lo'."""

    async def stream(messages, system=None, max_tokens=1024):
        for delta in ["Hel", "lo"]:
            yield delta

    llm = Mock()
    llm.complete = AsyncMock(return_value="Greeting Chat")
    llm.stream = Mock(side_effect=stream)
    return llm
