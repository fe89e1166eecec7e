"""Repositories over the ``levels`` and ``max_id`` tables."""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import pandas as pd
from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..errors import (
    DuplicateHashError,
    DuplicateLevelError,
    MaxIdRowCountError,
    UniquenessViolation,
)
from .models import LevelRecord, StoredLevel
from .tables import levels, max_id

logger = logging.getLogger(__name__)

LEVEL_COLUMNS = ["id", "level", "hash"]


def _uniqueness_error(exc: IntegrityError, record: LevelRecord) -> Optional[UniquenessViolation]:
    # Backends name either the index (postgresql, mysql) or table.column (sqlite).
    message = str(exc.orig)
    if "levels_hash" in message or "levels.hash" in message:
        return DuplicateHashError(record.hash or "")
    if "levels__level" in message or "levels._level" in message:
        return DuplicateLevelError(record.level)
    return None


def _to_stored(row: Mapping[str, Any]) -> StoredLevel:
    return StoredLevel(id=row["id"], level=row["_level"], hash=row["hash"])


class LevelsRepository:
    """Operations for the ``levels`` table."""

    def __init__(self, conn: Connection):
        self.conn = conn

    def save_level(self, record: LevelRecord) -> int:
        """Insert ``record`` and return its surrogate ``id``.

        Raises ``DuplicateLevelError`` or ``DuplicateHashError`` when the row
        collides with an existing one.  On PostgreSQL the surrounding
        transaction is aborted by the failed insert and must be rolled back.
        """

        stmt = insert(levels).values({"_level": record.level, "hash": record.hash})
        try:
            result = self.conn.execute(stmt)
        except IntegrityError as exc:
            error = _uniqueness_error(exc, record)
            if error is None:
                raise
            logger.debug("rejected level %s: %s", record.level, error)
            raise error from exc
        return int(result.inserted_primary_key[0])

    def get_level(self, level: int) -> Optional[StoredLevel]:
        row = (
            self.conn.execute(select(levels).where(levels.c["_level"] == level))
            .mappings()
            .first()
        )
        return _to_stored(row) if row is not None else None

    def delete_level(self, level: int) -> int:
        result = self.conn.execute(delete(levels).where(levels.c["_level"] == level))
        return max(result.rowcount or 0, 0)

    def get_head(self) -> Optional[StoredLevel]:
        """Return the highest stored level, or ``None`` for an empty table."""

        row = (
            self.conn.execute(select(levels).order_by(levels.c["_level"].desc()).limit(1))
            .mappings()
            .first()
        )
        return _to_stored(row) if row is not None else None

    def select_levels(
        self,
        start: Optional[int] = None,
        end: Optional[int] = None,
        limit: int = 10000,
    ) -> pd.DataFrame:
        """Return stored levels within the inclusive ``[start, end]`` range."""

        stmt = select(levels)
        if start is not None:
            stmt = stmt.where(levels.c["_level"] >= start)
        if end is not None:
            stmt = stmt.where(levels.c["_level"] <= end)
        stmt = stmt.order_by(levels.c["_level"].asc()).limit(limit)
        records: List[dict] = [
            {"id": row["id"], "level": row["_level"], "hash": row["hash"]}
            for row in self.conn.execute(stmt).mappings()
        ]
        return pd.DataFrame(records, columns=LEVEL_COLUMNS)


class MaxIdRepository:
    """Read access to the ``max_id`` counter table.

    Nothing in the schema keeps ``max_id`` to a single row, so readers check
    the row count instead of picking an arbitrary row.
    """

    def __init__(self, conn: Connection):
        self.conn = conn

    def rows(self) -> List[Optional[int]]:
        return [row[0] for row in self.conn.execute(select(max_id.c["max_id"]))]

    def count(self) -> int:
        return int(self.conn.execute(select(func.count()).select_from(max_id)).scalar_one())

    def get_max_id(self) -> Optional[int]:
        values = self.rows()
        if len(values) != 1:
            raise MaxIdRowCountError(len(values))
        return values[0]


__all__ = ["LevelsRepository", "MaxIdRepository", "LEVEL_COLUMNS"]
