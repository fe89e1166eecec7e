from __future__ import annotations

"""Settings loaded from environment variables.

``get_settings`` reads the environment once and caches the resulting
``Settings`` object.  Tests may call ``reset_settings_cache`` to force a
reload after modifying environment variables at runtime.
"""

from dataclasses import dataclass
import os
from functools import lru_cache


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() == "true"


@dataclass
class Settings:
    database_url: str | None = None
    db_sqlite_path: str = ".db/chain_index.db"
    db_echo: bool = False
    db_ssl: bool = False
    db_ca_cert: str | None = None
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Return settings loaded from environment variables."""

    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        db_sqlite_path=os.getenv("DB_SQLITE_PATH", ".db/chain_index.db"),
        db_echo=_env_flag("DB_ECHO"),
        db_ssl=_env_flag("DB_SSL"),
        db_ca_cert=os.getenv("DB_CA_CERT") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def reset_settings_cache() -> None:
    """Clear the settings cache (mainly for tests)."""

    get_settings.cache_clear()
