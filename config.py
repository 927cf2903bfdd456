"""
Application configuration settings.

Centralizes all configuration parameters for the trading journal.
Supports environment-based configuration and sensible defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    path: Path = field(default_factory=lambda: Path("db/journal.db"))

    @property
    def url(self) -> str:
        """SQLAlchemy connection URL."""
        # Prefer direct URL if provided in environment
        env_url = os.environ.get("JOURNAL_DB_URL") or os.environ.get("DATABASE_URL")
        if env_url:
            return env_url

        return f"sqlite:///{self.path}"


@dataclass(frozen=True)
class SearchConfig:
    """Cross-entity search configuration."""
    # Quiet window before a debounced search actually scans (milliseconds)
    debounce_ms: int = 300

    # Per-type result caps
    trade_limit: int = 10
    note_limit: int = 10
    influencer_limit: int = 5

    # Note subtitle preview length
    subtitle_length: int = 50


@dataclass(frozen=True)
class AnalyticsConfig:
    """Trading analytics configuration."""
    # Month key format for the monthly P&L series
    month_format: str = "%Y-%m"


@dataclass(frozen=True)
class DedupeConfig:
    """Duplicate trade detection settings."""
    # Quantity rounding used in the fallback duplicate key
    quantity_decimals: int = 2


@dataclass(frozen=True)
class UIConfig:
    """Presentation defaults (consumed by the CLI)."""
    default_theme: str = "dark"
    decimal_places: int = 2
    percentage_decimal_places: int = 1


@dataclass
class Config:
    """
    Main configuration container.

    Usage:
        from config import config
        db_path = config.database.path
    """
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    dedupe: DedupeConfig = field(default_factory=DedupeConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    # Base paths
    project_root: ClassVar[Path] = Path(__file__).parent

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create config from environment variables.

        Supports overrides via:
        - JOURNAL_DB_PATH: Custom database path
        - JOURNAL_SEARCH_DEBOUNCE_MS: Search quiet window in milliseconds
        """
        db_path_env = os.getenv("JOURNAL_DB_PATH")
        db_config = DatabaseConfig(
            path=Path(db_path_env) if db_path_env else DatabaseConfig().path
        )

        debounce_env = os.getenv("JOURNAL_SEARCH_DEBOUNCE_MS")
        search_config = (
            SearchConfig(debounce_ms=int(debounce_env)) if debounce_env else SearchConfig()
        )

        return cls(database=db_config, search=search_config)


# Global config instance
config = Config.from_env()
