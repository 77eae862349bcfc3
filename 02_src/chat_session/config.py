"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "chat_session.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_CONVERSATION_TITLE = "New Conversation"

# Chat backend connection defaults (overridden by the settings store)
DEFAULT_BASE_URL = os.getenv("CHAT_BASE_URL", "https://api.dify.ai/v1")
DEFAULT_API_KEY = os.getenv("CHAT_API_KEY", "")
DEFAULT_USER_ID = os.getenv("CHAT_USER_ID", "default-user")

CHAT_BACKEND = os.getenv("CHAT_BACKEND", "http")  # "http" or "llm"
REQUEST_TIMEOUT = float(os.getenv("CHAT_REQUEST_TIMEOUT", "60"))
HISTORY_PAGE_LIMIT = 100


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate
