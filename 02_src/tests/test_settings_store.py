"""Tests for SettingsStore."""

import pytest

from chat_session.config import DEFAULT_API_KEY, DEFAULT_BASE_URL, DEFAULT_USER_ID
from chat_session.settings import SettingsStore


class TestSettingsStore:
    """Tests for SettingsStore get/save."""

    @pytest.mark.asyncio
    async def test_defaults_when_empty(self, settings_store):
        """Test that an empty store returns the configured defaults."""
        settings = await settings_store.get_settings()

        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.api_key == DEFAULT_API_KEY
        assert settings.user_id == DEFAULT_USER_ID

    @pytest.mark.asyncio
    async def test_save_and_get(self, settings_store):
        """Test that saved settings are returned."""
        await settings_store.save_settings("http://chat.test/v1", "key-1", "alice")

        settings = await settings_store.get_settings()

        assert settings.base_url == "http://chat.test/v1"
        assert settings.api_key == "key-1"
        assert settings.user_id == "alice"

    @pytest.mark.asyncio
    async def test_save_overwrites(self, settings_store):
        await settings_store.save_settings("http://a", "k1", "u1")
        await settings_store.save_settings("http://b", "k2", "u2")

        settings = await settings_store.get_settings()

        assert settings.base_url == "http://b"
        assert settings.user_id == "u2"

    @pytest.mark.asyncio
    async def test_clear(self, settings_store):
        await settings_store.save_settings("http://a", "k1", "u1")
        await settings_store.clear()

        settings = await settings_store.get_settings()

        assert settings.base_url == DEFAULT_BASE_URL

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        """Test that settings survive reopening the database file."""
        db_path = tmp_path / "settings.db"

        first = SettingsStore(db_path)
        await first.init()
        await first.save_settings("http://a", "k1", "u1")
        await first.close()

        second = SettingsStore(db_path)
        await second.init()
        settings = await second.get_settings()
        await second.close()

        assert settings.api_key == "k1"

    @pytest.mark.asyncio
    async def test_not_initialized(self):
        store = SettingsStore(":memory:")

        with pytest.raises(RuntimeError, match="not initialized"):
            await store.get_settings()
