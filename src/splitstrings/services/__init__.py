"""Service layer helpers (settings persistence)."""

from .settings import DecorationStyle, Settings, SettingsStore

__all__ = ["DecorationStyle", "Settings", "SettingsStore"]
