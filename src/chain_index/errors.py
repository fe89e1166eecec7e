"""Exceptions raised by the chain index persistence layer."""
from __future__ import annotations


class ChainIndexError(Exception):
    """Base class for chain index errors."""


class UniquenessViolation(ChainIndexError, ValueError):
    """An insert collided with one of the unique indexes on ``levels``."""

    index_name: str = ""


class DuplicateLevelError(UniquenessViolation):
    index_name = "levels__level"

    def __init__(self, level: int):
        super().__init__(f"level {level} is already stored")
        self.level = level


class DuplicateHashError(UniquenessViolation):
    index_name = "levels_hash"

    def __init__(self, block_hash: str):
        super().__init__(f"block hash {block_hash} is already stored")
        self.hash = block_hash


class MaxIdRowCountError(ChainIndexError, RuntimeError):
    """``max_id`` does not hold exactly one row."""

    def __init__(self, count: int):
        super().__init__(f"max_id table holds {count} rows, expected exactly 1")
        self.count = count


class UnknownDialectError(ChainIndexError, ValueError):
    def __init__(self, dialect: str):
        super().__init__(f"unknown SQL dialect: {dialect!r}")
        self.dialect = dialect


__all__ = [
    "ChainIndexError",
    "UniquenessViolation",
    "DuplicateLevelError",
    "DuplicateHashError",
    "MaxIdRowCountError",
    "UnknownDialectError",
]
