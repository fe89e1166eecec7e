"""SQLAlchemy Core definitions of the indexer's common tables."""
from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, String, Table

COMMON_TABLES = ("levels", "max_id")
MAX_ID_SEED = 1
HASH_MAX_LENGTH = 60

metadata = MetaData()

levels = Table(
    "levels",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("_level", Integer, nullable=False),
    Column("hash", String(HASH_MAX_LENGTH), nullable=True),
)

Index("levels__level", levels.c["_level"], unique=True)
Index("levels_hash", levels.c.hash, unique=True)

# Singleton by convention only: no key or check constraint backs it.
max_id = Table(
    "max_id",
    metadata,
    Column("max_id", Integer),
)

__all__ = [
    "metadata",
    "levels",
    "max_id",
    "COMMON_TABLES",
    "MAX_ID_SEED",
    "HASH_MAX_LENGTH",
]
