"""SQLite settings storage implementation."""

from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import (
    DEFAULT_API_KEY,
    DEFAULT_BASE_URL,
    DEFAULT_USER_ID,
    resolve_db_path,
)
from ..models import ChatSettings

# Stored keys and the ChatSettings field each one fills
_KEYS = {
    "baseUrl": "base_url",
    "apiKey": "api_key",
    "userId": "user_id",
}


class ISettingsStore(Protocol):
    """Key-value persistence of chat backend settings."""

    async def init(self) -> None:
        """Open the database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def get_settings(self) -> ChatSettings:
        """Stored settings, falling back to configured defaults."""
        ...

    async def save_settings(self, base_url: str, api_key: str, user_id: str) -> None:
        """Persist all settings."""
        ...


class SettingsStore:
    """SQLite settings store."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Open the database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def get_settings(self) -> ChatSettings:
        """Stored settings, falling back to configured defaults."""
        if not self._conn:
            raise RuntimeError("SettingsStore not initialized")

        cursor = await self._conn.execute("SELECT key, value FROM settings")
        rows = await cursor.fetchall()
        stored = {row[0]: row[1] for row in rows}

        values = {
            "base_url": DEFAULT_BASE_URL,
            "api_key": DEFAULT_API_KEY,
            "user_id": DEFAULT_USER_ID,
        }
        for key, field_name in _KEYS.items():
            if key in stored:
                values[field_name] = stored[key]

        return ChatSettings(**values)

    async def save_settings(self, base_url: str, api_key: str, user_id: str) -> None:
        """Persist all settings."""
        if not self._conn:
            raise RuntimeError("SettingsStore not initialized")

        await self._conn.executemany(
            """
            INSERT OR REPLACE INTO settings (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
            [("baseUrl", base_url), ("apiKey", api_key), ("userId", user_id)],
        )
        await self._conn.commit()

    async def clear(self) -> None:
        """Forget stored settings."""
        if not self._conn:
            raise RuntimeError("SettingsStore not initialized")

        await self._conn.execute("DELETE FROM settings")
        await self._conn.commit()
