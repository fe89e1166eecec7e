"""Persistence layer for the indexer's common tables."""

from .db import (
    common_tables_exist,
    create_common_tables,
    drop_common_tables,
    generate_sql,
    get_engine,
    init_db,
    session,
)
from .models import LevelRecord, StoredLevel
from .repo import LevelsRepository, MaxIdRepository

__all__ = [
    "common_tables_exist",
    "create_common_tables",
    "drop_common_tables",
    "generate_sql",
    "get_engine",
    "init_db",
    "session",
    "LevelRecord",
    "StoredLevel",
    "LevelsRepository",
    "MaxIdRepository",
]
