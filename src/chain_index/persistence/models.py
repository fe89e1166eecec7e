"""Pydantic models for rows of the ``levels`` table."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .tables import HASH_MAX_LENGTH


class LevelRecord(BaseModel):
    """Block level ready for persistence.

    The hash length is checked here because SQLite does not enforce
    ``VARCHAR`` lengths.
    """

    model_config = ConfigDict(extra="forbid")

    level: int
    hash: Optional[str] = Field(default=None, max_length=HASH_MAX_LENGTH)


class StoredLevel(BaseModel):
    """Row read back from ``levels``.

    Rows may come from other writers, and SQLite keeps hashes longer than the
    column length, so reads do not re-apply the write-side limit.
    """

    model_config = ConfigDict(extra="forbid")

    id: int
    level: int
    hash: Optional[str] = None


__all__ = ["LevelRecord", "StoredLevel"]
