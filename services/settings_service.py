"""
Settings Service - Persisted key-value preferences.

SettingsStore is an explicit object handed to whatever needs it
(the CLI builds one per run); there is no module-level settings state.
"""

import logging

from config import config
from db.repositories import SettingRepository
from db.session import DatabaseManager, get_db


logger = logging.getLogger(__name__)

THEME_KEY = "theme"
THEMES = ("dark", "light")


class SettingsStore:
    """
    Key-value settings backed by the settings table.

    Usage:
        settings = SettingsStore(get_db())
        settings.set("theme", "light")
        settings.get("theme")  # "light"
    """

    def __init__(self, db: DatabaseManager | None = None):
        self.db = db or get_db()

    def get(self, key: str, default: str | None = None) -> str | None:
        """Value for a key, or default when unset."""
        with self.db.session() as session:
            value = SettingRepository(session).get(key)
        return default if value is None else value

    def set(self, key: str, value: str) -> None:
        """Insert or replace a setting."""
        if not key.strip():
            raise ValueError("Setting key cannot be empty")
        with self.db.session() as session:
            SettingRepository(session).set(key, str(value))
        logger.info(f"Setting updated: {key}")

    def delete(self, key: str) -> bool:
        """Remove a setting. Returns False if it was not set."""
        with self.db.session() as session:
            return SettingRepository(session).delete(key)

    def all(self) -> dict[str, str]:
        """Every stored setting."""
        with self.db.session() as session:
            return SettingRepository(session).get_all()

    def get_theme(self) -> str:
        """Current UI theme (falls back to the configured default)."""
        return self.get(THEME_KEY, config.ui.default_theme)

    def set_theme(self, theme: str) -> None:
        """Persist the UI theme."""
        if theme not in THEMES:
            raise ValueError(f"Theme must be one of: {', '.join(THEMES)}")
        self.set(THEME_KEY, theme)
