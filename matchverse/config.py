from __future__ import annotations

from pathlib import Path
import os

from dotenv import load_dotenv

load_dotenv()

# Repository root
REPO_ROOT = Path(__file__).resolve().parent.parent
# Default database location for local development
DB_FILE = REPO_ROOT / "matchverse.db"


class BaseConfig:
    """Base settings shared across environments."""

    DB_USER = os.getenv("DB_USER", "matchverse")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_NAME: str | None = None


class ProductionConfig(BaseConfig):
    DB_NAME = "matchverse_prod"


class TrialConfig(BaseConfig):
    DB_NAME = "matchverse_trial"


class DevelopmentConfig(BaseConfig):
    # ``None`` means the local SQLite file
    DB_NAME = None


_CONFIGS = {
    "production": ProductionConfig,
    "trial": TrialConfig,
    "development": DevelopmentConfig,
}

# Current active configuration determined by the ``APP_ENV`` environment
# variable. Defaults to development.
APP_ENV = os.getenv("APP_ENV", "development")
ActiveConfig = _CONFIGS.get(APP_ENV, DevelopmentConfig)


def get_database_url() -> str:
    """Return the configured database connection string.

    ``DATABASE_URL`` wins when set. Otherwise production and trial connect to
    PostgreSQL and development uses :data:`DB_FILE`.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if ActiveConfig.DB_NAME is None:
        return f"sqlite:///{DB_FILE}"
    return (
        f"postgresql://{ActiveConfig.DB_USER}:{ActiveConfig.DB_PASSWORD}"
        f"@{ActiveConfig.DB_HOST}/{ActiveConfig.DB_NAME}"
    )


def get_log_level() -> str:
    """Return the configured log level name."""
    return os.getenv("LOG_LEVEL", "INFO").upper()


__all__ = [
    "DB_FILE",
    "get_database_url",
    "get_log_level",
]
