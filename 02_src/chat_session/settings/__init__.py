"""Settings module."""

from .store import ISettingsStore, SettingsStore

__all__ = ["ISettingsStore", "SettingsStore"]
